"""Tests for serial and simulated device backends."""

from datetime import datetime

import pytest

from openrtx_companion.core import DeviceIOError
from openrtx_companion.protocol import (
    RadioNoContact,
    SerialBackend,
    SimulatedBackend,
    backup_filename,
)


class FakeTransport:
    """In-memory stand-in for SerialTransport."""

    instances = []

    def __init__(self, port, baudrate=115200, timeout=3.0, rx=b""):
        self.port = port
        self.baudrate = baudrate
        self.sent = []
        self.rx = bytearray(rx)
        self.opened = False
        self.closed = False
        FakeTransport.instances.append(self)

    def __enter__(self):
        self.opened = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    def send_raw(self, data):
        self.sent.append(bytes(data))

    def recv_raw(self, length):
        if not self.rx:
            raise RadioNoContact("Radio did not respond (timeout)")
        chunk = bytes(self.rx[:length])
        del self.rx[:length]
        return chunk


@pytest.fixture
def transports():
    FakeTransport.instances = []
    return FakeTransport.instances


def _recorder():
    samples = []
    return samples, lambda transferred, total: samples.append((transferred, total))


def test_backup_filename_format() -> None:
    assert backup_filename(datetime(2024, 3, 5, 7, 8, 9)) == "openrtx_backup_20240305_070809.bin"


class TestSerialBackend:

    def test_flash_streams_firmware_in_blocks(self, tmp_path, fast_settings, transports, radio):
        firmware = tmp_path / "openrtx.bin"
        firmware.write_bytes(bytes(range(256)) * 3)
        backend = SerialBackend(fast_settings, transport_factory=FakeTransport)
        samples, sink = _recorder()

        result = backend.flash(radio, radio.port, str(firmware), sink)

        assert result.ok
        assert result.bytes_len == 768
        transport = transports[0]
        assert transport.port == "COM3"
        assert transport.baudrate == fast_settings.baudrate
        assert b"".join(transport.sent) == firmware.read_bytes()
        assert [len(b) for b in transport.sent] == [256, 256, 256]
        assert samples == [(0, 768), (256, 768), (512, 768), (768, 768)]
        assert transport.closed

    def test_flash_missing_firmware_fails_without_opening_port(self, tmp_path, fast_settings, transports, radio):
        backend = SerialBackend(fast_settings, transport_factory=FakeTransport)
        result = backend.flash(radio, radio.port, str(tmp_path / "missing.bin"), lambda *a: None)

        assert not result.ok
        assert "not found" in result.detail
        assert transports == []

    def test_backup_writes_image_into_folder(self, tmp_path, fast_settings):
        payload = bytes(range(256)) * 4

        def factory(port, **kwargs):
            return FakeTransport(port, rx=payload, **kwargs)

        backend = SerialBackend(fast_settings, transport_factory=factory)
        samples, sink = _recorder()

        result = backend.backup("COM3", str(tmp_path), sink)

        assert result.ok
        written = list(tmp_path.glob("openrtx_backup_*.bin"))
        assert len(written) == 1
        assert written[0].read_bytes() == payload
        assert result.metadata["backup_path"] == str(written[0])
        assert samples[0] == (0, 1024)
        assert samples[-1] == (1024, 1024)

    def test_backup_timeout_raises_device_error(self, tmp_path, fast_settings):
        def factory(port, **kwargs):
            return FakeTransport(port, rx=b"\x00" * 100, **kwargs)

        backend = SerialBackend(fast_settings, transport_factory=factory)
        with pytest.raises(DeviceIOError):
            backend.backup("COM3", str(tmp_path), lambda *a: None)
        assert list(tmp_path.iterdir()) == []

    def test_backup_requires_existing_folder(self, tmp_path, fast_settings):
        backend = SerialBackend(fast_settings, transport_factory=FakeTransport)
        result = backend.backup("COM3", str(tmp_path / "nope"), lambda *a: None)
        assert not result.ok

    def test_restore_sends_image(self, tmp_path, fast_settings, transports):
        image = tmp_path / "backup.bin"
        image.write_bytes(b"\xAA" * 300)
        backend = SerialBackend(fast_settings, transport_factory=FakeTransport)

        result = backend.restore("COM3", str(image), lambda *a: None)

        assert result.ok
        assert result.operation == "restore"
        assert b"".join(transports[0].sent) == image.read_bytes()


class TestSimulatedBackend:

    def test_simulated_backup_reports_full_progress(self, fast_settings):
        backend = SimulatedBackend(fast_settings, total=600)
        samples, sink = _recorder()

        result = backend.backup("COM3", "/tmp/backup", sink)

        assert result.ok
        assert result.metadata["simulated"] is True
        assert result.warnings
        assert samples == [(0, 600), (256, 600), (512, 600), (600, 600)]

    def test_simulated_failure(self, fast_settings, radio):
        backend = SimulatedBackend(fast_settings, total=1000, fail_at=500)
        samples, sink = _recorder()

        with pytest.raises(DeviceIOError):
            backend.flash(radio, radio.port, "/tmp/fw.bin", sink)
        assert samples == [(0, 1000), (256, 1000)]
