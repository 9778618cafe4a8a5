"""
Application context.

Everything the orchestrator and tab state machine share is held here and
passed in explicitly: settings, the device backend, the picker and the
device lists discovered at startup.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from openrtx_companion.core.settings import CompanionSettings
from openrtx_companion.devices import (
    FlashTarget,
    SerialPort,
    is_selectable,
    list_flash_targets,
    list_serial_ports,
)
from openrtx_companion.pickers import Picker, PromptPicker
from openrtx_companion.protocol.backend import DeviceBackend, create_backend

logger = logging.getLogger(__name__)


@dataclass
class CompanionContext:
    """Shared collaborators for one application run."""
    settings: CompanionSettings = field(default_factory=CompanionSettings)
    backend: Optional[DeviceBackend] = None
    picker: Optional[Picker] = None
    serial_ports: List[SerialPort] = field(default_factory=list)
    flash_targets: List[FlashTarget] = field(default_factory=list)

    def __post_init__(self):
        if self.backend is None:
            self.backend = create_backend(self.settings)
        if self.picker is None:
            self.picker = PromptPicker()

    @classmethod
    def discover(
        cls,
        settings: Optional[CompanionSettings] = None,
        backend: Optional[DeviceBackend] = None,
        picker: Optional[Picker] = None,
        ports: Optional[Iterable] = None,
    ) -> "CompanionContext":
        """Build a context and enumerate devices once."""
        port_infos = None if ports is None else list(ports)
        context = cls(
            settings=settings or CompanionSettings(),
            backend=backend,
            picker=picker,
            serial_ports=list_serial_ports(port_infos),
            flash_targets=list_flash_targets(port_infos),
        )
        logger.debug(
            "Discovered %d port(s), %d radio(s)",
            sum(1 for p in context.serial_ports if is_selectable(p)),
            sum(1 for t in context.flash_targets if is_selectable(t)),
        )
        return context

    def find_port(self, name: str) -> Optional[SerialPort]:
        """Serial port by device name; unlisted names are still usable."""
        for port in self.serial_ports:
            if port.name == name and not port.placeholder:
                return port
        if name:
            return SerialPort(name=name)
        return None

    def find_target(self, index: int) -> Optional[FlashTarget]:
        """Flash target by its listing index."""
        for target in self.flash_targets:
            if target.index == index and not target.placeholder:
                return target
        return None
