"""
Standardized status text and user messages.

Keeps every string the orchestrator writes into ``status_text`` in one
place, plus remediation hints the CLI prints next to errors.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type

from .errors import (
    CompanionError,
    DeviceIOError,
    NoPathSelected,
    NoTargetSelected,
    OperationInProgress,
    ResourceBusy,
)
from .state import OperationKind


class MessageLevel(Enum):
    """Severity level for messages."""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


STATUS_NO_FILE = "No file selected"


def progress_text(transferred: int, total: int) -> str:
    return f"{transferred}/{total}"


def complete_text(kind: OperationKind) -> str:
    return f"{kind.label} complete!"


def failed_text(kind: OperationKind, detail: str) -> str:
    return f"{kind.label} failed: {detail}"


def selected_text(path: str) -> str:
    return f"Selected {path}"


REMEDIATIONS: Dict[Type[CompanionError], str] = {
    NoTargetSelected:
        "Connect the radio and pick it with --target/--port. Run 'targets' or 'ports' to list devices.",
    NoPathSelected:
        "Pass a file or folder on the command line, or pick one when prompted.",
    ResourceBusy:
        "Wait for the running operation on this port to finish.",
    OperationInProgress:
        "Wait for the current operation on this tab to finish.",
    DeviceIOError:
        "Check the USB cable and that the radio is powered on. Close other serial apps.",
}


@dataclass
class StatusMessage:
    """
    User-facing message with optional remediation.

    Attributes:
        level: Severity (INFO, WARN, ERROR)
        title: Short, user-facing title
        remediation: Suggested action to resolve the issue
    """
    level: MessageLevel
    title: str
    remediation: str = ""

    @classmethod
    def from_error(cls, error: CompanionError) -> "StatusMessage":
        return cls(MessageLevel.ERROR, error.reason, remediation_for(error) or "")

    def to_cli_string(self, verbose: bool = False) -> str:
        """Format for CLI output."""
        icons = {
            MessageLevel.INFO: "ℹ️ ",
            MessageLevel.WARN: "⚠️ ",
            MessageLevel.ERROR: "❌",
        }
        icon = icons.get(self.level, "")
        if verbose and self.remediation:
            return f"{icon} {self.title}\n   → {self.remediation}"
        return f"{icon} {self.title}"


def remediation_for(error: CompanionError) -> Optional[str]:
    """Return the remediation hint for an error, walking its class hierarchy."""
    for cls in type(error).__mro__:
        if cls in REMEDIATIONS:
            return REMEDIATIONS[cls]
    return None
