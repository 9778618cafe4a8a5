"""Tests for settings defaults and environment overrides."""

import pytest
from pydantic import ValidationError

from openrtx_companion.core import CompanionSettings
from openrtx_companion.core.messages import StatusMessage, remediation_for
from openrtx_companion.core.errors import DeviceIOError, NoTargetSelected, ResourceBusy
from openrtx_companion.core.settings import ENV_PREFIX
from openrtx_companion.protocol import RadioNoContact


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in CompanionSettings.model_fields:
        monkeypatch.delenv(ENV_PREFIX + name.upper(), raising=False)
    return monkeypatch


def test_defaults() -> None:
    settings = CompanionSettings()
    assert settings.tick_interval == 0.5
    assert settings.simulate is False


def test_from_env_applies_overrides(clean_env) -> None:
    clean_env.setenv("OPENRTX_COMPANION_TICK_INTERVAL", "0.25")
    clean_env.setenv("OPENRTX_COMPANION_BACKUP_SIZE", "0x2000")
    clean_env.setenv("OPENRTX_COMPANION_SIMULATE", "yes")
    clean_env.setenv("OPENRTX_COMPANION_BLOCK_SIZE", "")
    clean_env.setenv("UNRELATED", "1")

    settings = CompanionSettings.from_env()

    assert settings.tick_interval == 0.25
    assert settings.backup_size == 0x2000
    assert settings.simulate is True
    assert settings.block_size == 1024
    assert settings.baudrate == 115200


def test_from_env_rejects_bad_values(clean_env) -> None:
    clean_env.setenv("OPENRTX_COMPANION_BAUDRATE", "fast")
    with pytest.raises(ValueError) as ei:
        CompanionSettings.from_env()
    assert "OPENRTX_COMPANION_BAUDRATE" in str(ei.value)


def test_from_env_rejects_non_positive_tick(clean_env) -> None:
    clean_env.setenv("OPENRTX_COMPANION_TICK_INTERVAL", "0")
    with pytest.raises(ValueError) as ei:
        CompanionSettings.from_env()
    assert "OPENRTX_COMPANION_TICK_INTERVAL" in str(ei.value)


def test_settings_are_frozen() -> None:
    settings = CompanionSettings()
    with pytest.raises(ValidationError):
        settings.simulate = True


def test_with_overrides_skips_none() -> None:
    base = CompanionSettings()
    settings = base.with_overrides(tick_interval=None, simulate=True)
    assert settings.tick_interval == 0.5
    assert settings.simulate is True
    assert base.simulate is False


def test_remediation_follows_error_hierarchy() -> None:
    """Transport errors inherit the device I/O hint."""
    assert remediation_for(RadioNoContact("timeout")) == remediation_for(DeviceIOError("x"))
    assert "targets" in remediation_for(NoTargetSelected())

    message = StatusMessage.from_error(ResourceBusy("COM3"))
    assert message.title == "COM3 is busy with another operation"
    assert "→" in message.to_cli_string(verbose=True)
    assert "→" not in message.to_cli_string()
