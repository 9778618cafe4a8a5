"""
Core module for OpenRTX Companion.

This module provides the operation orchestration layer:
- Exceptions (errors.py)
- Result objects (results.py)
- Runtime settings (settings.py)
- Progress channel (channel.py)
- Per-tab operation state (state.py)
- Background workers (worker.py)
- Orchestrator (orchestrator.py)
- Tab state machine and events (tabs.py)
- Tick driver (ticker.py)
- Status text and messages (messages.py)

Front-ends should call into this module rather than run device I/O
themselves.
"""

from .errors import (
    CompanionError,
    PreconditionError,
    NoTargetSelected,
    NoPathSelected,
    ResourceBusy,
    OperationInProgress,
    DeviceIOError,
)
from .results import OperationResult
from .settings import CompanionSettings, TICK_INTERVAL
from .channel import ProgressSender, ProgressReceiver, DrainResult, open_channel
from .state import OperationKind, OperationStatus, OperationState
from .worker import OperationWorker, WorkerHandle
from .orchestrator import Orchestrator
from .tabs import (
    TabId,
    TabStateMachine,
    TAB_KINDS,
    TabSelected,
    TargetSelected,
    PathRequested,
    FilePath,
    StartPressed,
    Tick,
)
from .ticker import TickDriver
from .messages import MessageLevel, StatusMessage, remediation_for

__all__ = [
    # Errors
    "CompanionError",
    "PreconditionError",
    "NoTargetSelected",
    "NoPathSelected",
    "ResourceBusy",
    "OperationInProgress",
    "DeviceIOError",
    # Results / settings
    "OperationResult",
    "CompanionSettings",
    "TICK_INTERVAL",
    # Channel
    "ProgressSender",
    "ProgressReceiver",
    "DrainResult",
    "open_channel",
    # State
    "OperationKind",
    "OperationStatus",
    "OperationState",
    # Workers
    "OperationWorker",
    "WorkerHandle",
    # Orchestration
    "Orchestrator",
    "TabId",
    "TabStateMachine",
    "TAB_KINDS",
    "TabSelected",
    "TargetSelected",
    "PathRequested",
    "FilePath",
    "StartPressed",
    "Tick",
    "TickDriver",
    # Messages
    "MessageLevel",
    "StatusMessage",
    "remediation_for",
]
