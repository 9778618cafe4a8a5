"""
Operation state records owned by the orchestrator.

One OperationState exists per tab. The orchestrator is the only writer:
synchronously in response to user events, and from ``drain`` on each tick.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union, TYPE_CHECKING

from .results import OperationResult

if TYPE_CHECKING:
    from .channel import ProgressReceiver
    from .worker import WorkerHandle
    from ..devices import SerialPort, FlashTarget

Target = Union["SerialPort", "FlashTarget"]


class OperationKind(Enum):
    """Kind of hardware operation."""
    FLASH = "flash"
    BACKUP = "backup"
    RESTORE = "restore"

    @property
    def label(self) -> str:
        """Capitalized name used in status text."""
        return self.value.capitalize()


class OperationStatus(Enum):
    """Lifecycle status of an OperationState."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OperationStatus.COMPLETE, OperationStatus.FAILED)


STATUS_SELECT_ACTION = "Select an action"
STATUS_STARTING = "Starting…"


@dataclass
class OperationState:
    """
    Current operation of one tab.

    Attributes:
        name: Tab name, used in log messages
        selected_target: Device or serial port to operate on
        selected_path: Firmware image, backup folder or restore image
        kind: Kind of the current or last operation
        status: Lifecycle status
        failure: Failure reason when status is FAILED
        progress: Percentage in [0, 100], never decreasing while running
        status_text: Last known human-readable message
        result: Final result once the operation has finished
    """
    name: str
    selected_target: Optional[Target] = None
    selected_path: Optional[str] = None
    kind: Optional[OperationKind] = None
    status: OperationStatus = OperationStatus.IDLE
    failure: Optional[str] = None
    progress: float = 0.0
    status_text: str = STATUS_SELECT_ACTION
    result: Optional[OperationResult] = None

    # Owned exclusively by this state while running
    receiver: Optional["ProgressReceiver"] = field(default=None, repr=False)
    worker: Optional["WorkerHandle"] = field(default=None, repr=False)

    @property
    def is_running(self) -> bool:
        return self.status == OperationStatus.RUNNING

    @property
    def resource(self) -> Optional[str]:
        """Physical resource claimed by the selected target, if any."""
        if self.selected_target is None:
            return None
        return self.selected_target.resource
