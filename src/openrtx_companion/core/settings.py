"""
Runtime settings for the companion.

Defaults live on the model. OPENRTX_COMPANION_* environment variables are
read by pydantic-settings; CLI options are applied on top of that by the
caller through ``with_overrides``.
"""

from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "OPENRTX_COMPANION_"

TICK_INTERVAL = 0.5


class CompanionSettings(BaseSettings):
    """
    Attributes:
        tick_interval: Seconds between progress drains
        baudrate: Serial baud rate for device links
        timeout: Serial read/write timeout in seconds
        block_size: Bytes per serial transfer block
        backup_size: Bytes read by a backup when the model is unknown
        simulate: Use the simulated backend instead of real hardware
        simulate_delay: Seconds between simulated blocks
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    tick_interval: float = Field(default=TICK_INTERVAL, gt=0)
    baudrate: int = Field(default=115200, gt=0)
    timeout: float = Field(default=3.0, gt=0)
    block_size: int = Field(default=1024, gt=0)
    backup_size: int = Field(default=0x100000, ge=0)
    simulate: bool = False
    simulate_delay: float = Field(default=0.01, ge=0)

    @field_validator("block_size", "backup_size", mode="before")
    @classmethod
    def parse_size(cls, v: Any) -> Any:
        """Accept sizes written as hex (``0x100000``) as well as decimal."""
        if isinstance(v, str):
            try:
                return int(v.strip(), 0)
            except ValueError:
                return v
        return v

    @classmethod
    def from_env(cls) -> "CompanionSettings":
        """
        Build settings from defaults plus environment overrides.

        Raises:
            ValueError: naming the offending environment variable
        """
        try:
            return cls()
        except ValidationError as e:
            problems = ", ".join(
                f"{ENV_PREFIX}{str(err['loc'][0]).upper()}={err.get('input')!r} ({err['msg']})"
                for err in e.errors()
            )
            raise ValueError(f"Invalid settings: {problems}") from e

    def with_overrides(self, **kwargs) -> "CompanionSettings":
        """Return a copy with non-None keyword values applied."""
        return self.model_copy(update={k: v for k, v in kwargs.items() if v is not None})
