"""
Exception hierarchy for companion operations.

Precondition errors are raised synchronously by the orchestrator before any
worker is spawned. Device errors originate inside a worker and travel back
through its final result signal.
"""

from typing import Optional


class CompanionError(Exception):
    """
    Base class for all companion errors.

    Attributes:
        reason: Human-readable explanation, suitable for status text
        details: Additional context (target, path, kind, etc.)
    """
    def __init__(self, reason: str, details: Optional[dict] = None):
        self.reason = reason
        self.details = details or {}
        super().__init__(reason)


class PreconditionError(CompanionError):
    """An operation was refused before it started."""
    pass


class NoTargetSelected(PreconditionError):
    """No device or serial port was selected."""

    def __init__(self, details: Optional[dict] = None):
        super().__init__("No device selected! Select a radio or serial port first.", details)


class NoPathSelected(PreconditionError):
    """No firmware image, backup folder or restore image was selected."""

    def __init__(self, details: Optional[dict] = None):
        super().__init__("No file selected! Pick a file or folder first.", details)


class ResourceBusy(PreconditionError):
    """Another running operation already owns the serial resource."""

    def __init__(self, resource: str, details: Optional[dict] = None):
        self.resource = resource
        super().__init__(f"{resource} is busy with another operation", details)


class OperationInProgress(PreconditionError):
    """The tab already has a running operation."""

    def __init__(self, details: Optional[dict] = None):
        super().__init__("An operation is already running on this tab", details)


class DeviceIOError(CompanionError):
    """Hardware I/O failed while an operation was running."""

    def __init__(self, detail: str, details: Optional[dict] = None):
        self.detail = detail
        super().__init__(detail, details)
