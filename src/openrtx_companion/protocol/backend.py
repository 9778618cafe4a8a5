"""
Device backends invoked from operation workers.

A backend performs the blocking byte-level work of one operation and
reports ``(transferred, total)`` through the progress sink it is handed.
It returns an OperationResult or raises DeviceIOError; it never touches
orchestrator state.
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from openrtx_companion.core.errors import DeviceIOError
from openrtx_companion.core.results import OperationResult
from openrtx_companion.core.settings import CompanionSettings
from .transport import SerialTransport

logger = logging.getLogger(__name__)

ProgressSink = Callable[[int, int], None]


def backup_filename(now: Optional[datetime] = None) -> str:
    """File name for a new backup image."""
    now = now or datetime.now()
    return f"openrtx_backup_{now.strftime('%Y%m%d_%H%M%S')}.bin"


class DeviceBackend:
    """Interface implemented by hardware and simulated backends."""

    def flash(self, target, port: str, firmware_path: str, progress_sink: ProgressSink) -> OperationResult:
        raise NotImplementedError

    def backup(self, port: str, destination_path: str, progress_sink: ProgressSink) -> OperationResult:
        raise NotImplementedError

    def restore(self, port: str, source_path: str, progress_sink: ProgressSink) -> OperationResult:
        raise NotImplementedError


class SerialBackend(DeviceBackend):
    """
    Raw serial backend.

    Streams image bytes to the radio in fixed-size blocks and reads backups
    back the same way. Protocol framing is left to the radio's link layer.
    """

    def __init__(
        self,
        settings: Optional[CompanionSettings] = None,
        transport_factory: Callable[..., SerialTransport] = SerialTransport,
    ):
        self.settings = settings or CompanionSettings()
        self.transport_factory = transport_factory

    def _transport(self, port: str) -> SerialTransport:
        return self.transport_factory(
            port,
            baudrate=self.settings.baudrate,
            timeout=self.settings.timeout,
        )

    def _send_image(self, port: str, data: bytes, progress_sink: ProgressSink) -> None:
        total = len(data)
        block = self.settings.block_size
        progress_sink(0, total)
        with self._transport(port) as transport:
            for offset in range(0, total, block):
                chunk = data[offset:offset + block]
                transport.send_raw(chunk)
                progress_sink(offset + len(chunk), total)

    def flash(self, target, port: str, firmware_path: str, progress_sink: ProgressSink) -> OperationResult:
        path = Path(firmware_path)
        if not path.is_file():
            return OperationResult.failure(
                operation="flash",
                error=f"Firmware image not found: {firmware_path}",
                target=str(target),
                path=firmware_path,
            )

        firmware = path.read_bytes()
        logger.info("Flashing %s (%d bytes) to %s", path.name, len(firmware), port)
        self._send_image(port, firmware, progress_sink)

        logger.info("Firmware flash completed, please reboot the radio")
        return OperationResult.success(
            operation="flash",
            target=str(target),
            path=firmware_path,
            bytes_len=len(firmware),
        )

    def backup(self, port: str, destination_path: str, progress_sink: ProgressSink) -> OperationResult:
        dest_dir = Path(destination_path)
        if not dest_dir.is_dir():
            return OperationResult.failure(
                operation="backup",
                error=f"Backup folder not found: {destination_path}",
                target=port,
                path=destination_path,
            )

        total = self.settings.backup_size
        block = self.settings.block_size
        data = bytearray()
        progress_sink(0, total)
        logger.info("Reading %d bytes from %s", total, port)
        with self._transport(port) as transport:
            while len(data) < total:
                data.extend(transport.recv_raw(min(block, total - len(data))))
                progress_sink(len(data), total)

        out_path = dest_dir / backup_filename()
        try:
            out_path.write_bytes(bytes(data))
        except OSError as e:
            raise DeviceIOError(f"Cannot write backup to {out_path}: {e}")

        logger.info("Backup saved to %s", out_path)
        result = OperationResult.success(
            operation="backup",
            target=port,
            path=str(out_path),
            bytes_len=len(data),
        )
        result.metadata["backup_path"] = str(out_path)
        return result

    def restore(self, port: str, source_path: str, progress_sink: ProgressSink) -> OperationResult:
        path = Path(source_path)
        if not path.is_file():
            return OperationResult.failure(
                operation="restore",
                error=f"Backup image not found: {source_path}",
                target=port,
                path=source_path,
            )

        image = path.read_bytes()
        logger.info("Restoring %s (%d bytes) to %s", path.name, len(image), port)
        self._send_image(port, image, progress_sink)

        return OperationResult.success(
            operation="restore",
            target=port,
            path=source_path,
            bytes_len=len(image),
        )


class SimulatedBackend(DeviceBackend):
    """
    Backend that fakes transfers without touching hardware.

    Used for ``--simulate`` runs and tests. Progress is emitted in
    ``block_size`` steps with ``simulate_delay`` seconds between them.

    Args:
        settings: Supplies block size, delay and backup size
        total: Bytes per simulated transfer (defaults to the file size for
               flash/restore and ``backup_size`` for backup)
        fail_at: If set, raise DeviceIOError once this many bytes are sent
    """

    def __init__(
        self,
        settings: Optional[CompanionSettings] = None,
        total: Optional[int] = None,
        fail_at: Optional[int] = None,
    ):
        self.settings = settings or CompanionSettings(simulate=True)
        self.total = total
        self.fail_at = fail_at

    def _run(self, total: int, progress_sink: ProgressSink) -> None:
        block = max(self.settings.block_size, 1)
        sent = 0
        progress_sink(0, total)
        while sent < total:
            sent = min(sent + block, total)
            if self.fail_at is not None and sent >= self.fail_at:
                raise DeviceIOError(f"Simulated I/O error at byte {self.fail_at}")
            if self.settings.simulate_delay:
                time.sleep(self.settings.simulate_delay)
            progress_sink(sent, total)

    def _file_total(self, path: str) -> int:
        if self.total is not None:
            return self.total
        p = Path(path)
        return p.stat().st_size if p.is_file() else self.settings.block_size * 64

    def _simulated(self, operation: str, target: str, path: str, total: int) -> OperationResult:
        result = OperationResult.success(
            operation=operation,
            target=target,
            path=path,
            bytes_len=total,
        )
        result.metadata["simulated"] = True
        result.add_warning("Simulation mode - no actual transfer performed")
        return result

    def flash(self, target, port: str, firmware_path: str, progress_sink: ProgressSink) -> OperationResult:
        total = self._file_total(firmware_path)
        logger.info("Simulating flash of %d bytes to %s", total, port)
        self._run(total, progress_sink)
        return self._simulated("flash", str(target), firmware_path, total)

    def backup(self, port: str, destination_path: str, progress_sink: ProgressSink) -> OperationResult:
        total = self.total if self.total is not None else self.settings.backup_size
        logger.info("Simulating backup of %d bytes from %s", total, port)
        self._run(total, progress_sink)
        return self._simulated("backup", port, destination_path, total)

    def restore(self, port: str, source_path: str, progress_sink: ProgressSink) -> OperationResult:
        total = self._file_total(source_path)
        logger.info("Simulating restore of %d bytes to %s", total, port)
        self._run(total, progress_sink)
        return self._simulated("restore", port, source_path, total)


def create_backend(settings: CompanionSettings) -> DeviceBackend:
    """Pick the backend matching the settings."""
    if settings.simulate:
        return SimulatedBackend(settings)
    return SerialBackend(settings)
