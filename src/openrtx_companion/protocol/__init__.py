"""Radio link layer - serial transport and device backends."""

from .transport import (
    SerialTransport,
    RadioTransportError,
    RadioNoContact,
)
from .backend import (
    DeviceBackend,
    SerialBackend,
    SimulatedBackend,
    create_backend,
    backup_filename,
)

__all__ = [
    # Transport
    "SerialTransport",
    "RadioTransportError",
    "RadioNoContact",
    # Backends
    "DeviceBackend",
    "SerialBackend",
    "SimulatedBackend",
    "create_backend",
    "backup_filename",
]
