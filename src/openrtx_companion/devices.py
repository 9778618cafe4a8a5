"""
Device and serial port discovery.

Wraps pyserial's port enumeration and the model registry. Both listings
return a single placeholder entry instead of an empty list, so selectors
always have something to render.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

try:
    import serial.tools.list_ports
except ImportError:
    raise ImportError("PySerial required: pip install pyserial")

from openrtx_companion.models import detect_model

logger = logging.getLogger(__name__)

NO_SERIAL_PORT = "No serial port found!"
NO_FLASH_TARGET = "No radio found!"


@dataclass(frozen=True)
class SerialPort:
    """A serial port as shown in the port selector."""
    name: str
    vendor: str = ""
    product: str = ""
    placeholder: bool = False

    @property
    def resource(self) -> str:
        return self.name

    @property
    def port(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class FlashTarget:
    """A connected radio that firmware can be flashed onto."""
    index: int
    manufacturer: str
    model: str
    port: str
    placeholder: bool = False

    @property
    def resource(self) -> str:
        return self.port

    def __str__(self) -> str:
        if self.placeholder:
            return self.model
        return f"{self.manufacturer} {self.model} ({self.port})"


def placeholder_port() -> SerialPort:
    return SerialPort(name=NO_SERIAL_PORT, placeholder=True)


def placeholder_target() -> FlashTarget:
    return FlashTarget(index=-1, manufacturer="", model=NO_FLASH_TARGET, port="", placeholder=True)


def _comports(ports: Optional[Iterable] = None) -> List:
    if ports is not None:
        return list(ports)
    return list(serial.tools.list_ports.comports())


def list_serial_ports(ports: Optional[Iterable] = None) -> List[SerialPort]:
    """
    List available serial ports.

    Args:
        ports: Optional pre-fetched ``ListPortInfo`` objects (defaults to
               ``serial.tools.list_ports.comports()``)

    Returns:
        List of SerialPort, or a single placeholder if none were found
    """
    found = [
        SerialPort(
            name=p.device,
            vendor=p.manufacturer or "",
            product=p.product or "",
        )
        for p in _comports(ports)
    ]
    logger.debug("Found %d serial port(s)", len(found))
    if not found:
        return [placeholder_port()]
    return found


def list_flash_targets(ports: Optional[Iterable] = None) -> List[FlashTarget]:
    """
    List connected radios that match a supported model.

    Returns:
        List of FlashTarget, or a single placeholder if no radio matched
    """
    targets = []
    for p in _comports(ports):
        config = detect_model(vid=p.vid, pid=p.pid, product=p.product or "")
        if config is None:
            continue
        targets.append(FlashTarget(
            index=len(targets),
            manufacturer=config.manufacturer,
            model=config.name,
            port=p.device,
        ))
    logger.debug("Found %d flashable radio(s)", len(targets))
    if not targets:
        return [placeholder_target()]
    return targets


def is_selectable(target) -> bool:
    """Whether a target is a real device rather than a placeholder."""
    return target is not None and not getattr(target, "placeholder", False)
