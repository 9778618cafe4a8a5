"""
Operation orchestrator.

Starts workers, owns the receiving end of each ProgressChannel, and turns
drained samples into OperationState updates. Also keeps the registry of
serial resources claimed by running operations, so two workers never open
the same port.
"""

import logging
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from .channel import open_channel
from .errors import (
    NoPathSelected,
    NoTargetSelected,
    OperationInProgress,
    PreconditionError,
    ResourceBusy,
)
from .messages import complete_text, failed_text, progress_text
from .results import OperationResult
from .state import (
    OperationKind,
    OperationState,
    OperationStatus,
    STATUS_STARTING,
    Target,
)
from .worker import OperationWorker, WorkerHandle

if TYPE_CHECKING:
    from ..context import CompanionContext

logger = logging.getLogger(__name__)

NO_RESULT_DETAIL = "worker exited without reporting a result"


def _is_placeholder(target) -> bool:
    return getattr(target, "placeholder", False)


class Orchestrator:
    """
    Runs operations for any number of OperationStates.

    All methods are meant to be called from the interactive thread; only
    workers run elsewhere, and they never see an OperationState.
    """

    def __init__(
        self,
        context: "CompanionContext",
        worker_factory: Callable[..., OperationWorker] = OperationWorker,
    ):
        self.context = context
        self.worker_factory = worker_factory
        self._claims: Dict[str, OperationState] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_busy(self, resource: str) -> bool:
        """Whether a running operation holds ``resource``."""
        return resource in self._claims

    def running_states(self) -> List[OperationState]:
        return list(self._claims.values())

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_target(self, state: OperationState, target: Optional[Target]) -> bool:
        """
        Select the device for the next operation.

        Returns False (and changes nothing) while the state is running.
        """
        if state.is_running:
            logger.info("Ignoring target change on %s: operation running", state.name)
            return False
        state.selected_target = target
        logger.debug("%s target -> %s", state.name, target)
        return True

    def select_path(self, state: OperationState, path: Optional[str]) -> bool:
        """
        Select the file or folder for the next operation.

        Returns False (and changes nothing) while the state is running.
        """
        if state.is_running:
            logger.info("Ignoring path change on %s: operation running", state.name)
            return False
        state.selected_path = path
        logger.debug("%s path -> %s", state.name, path)
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _check_preconditions(
        self,
        state: OperationState,
        target: Optional[Target],
        path: Optional[str],
    ) -> None:
        if state.is_running:
            raise OperationInProgress({"state": state.name})
        if target is None or _is_placeholder(target):
            raise NoTargetSelected({"state": state.name})
        if not path:
            raise NoPathSelected({"state": state.name, "target": str(target)})
        resource = target.resource
        if resource in self._claims:
            raise ResourceBusy(resource, {"state": state.name, "owner": self._claims[resource].name})

    def start(
        self,
        state: OperationState,
        kind: OperationKind,
        target: Optional[Target],
        path: Optional[str],
    ) -> WorkerHandle:
        """
        Start an operation on a background worker.

        Preconditions are checked before anything is spawned. On failure the
        error's message becomes the status text, status is left as it was,
        and the PreconditionError is re-raised for the caller.

        Returns:
            Handle of the spawned worker

        Raises:
            OperationInProgress, NoTargetSelected, NoPathSelected, ResourceBusy
        """
        try:
            self._check_preconditions(state, target, path)
        except PreconditionError as e:
            if not isinstance(e, OperationInProgress):
                state.status_text = e.reason
            logger.debug("%s %s refused: %s", state.name, kind.value, e.reason)
            raise

        sender, receiver = open_channel()
        worker = self.worker_factory(kind, target, path, self.context.backend, sender)

        state.kind = kind
        state.status = OperationStatus.RUNNING
        state.failure = None
        state.result = None
        state.progress = 0.0
        state.status_text = STATUS_STARTING
        state.receiver = receiver
        self._claims[target.resource] = state

        state.worker = worker.spawn()
        logger.info("Started %s on %s (%s)", kind.value, target.resource, path)
        return state.worker

    def drain(self, state: OperationState) -> None:
        """
        Apply whatever the worker has produced since the last tick.

        Never blocks. Only the newest buffered sample is used; a closed
        channel finishes the operation using the worker's final result.
        """
        if not state.is_running or state.receiver is None:
            return

        drained = state.receiver.drain()
        if drained.skipped:
            logger.debug("%s: skipped %d stale sample(s)", state.name, drained.skipped)

        if drained.sample is not None:
            self._apply_sample(state, *drained.sample)

        if drained.closed:
            result = state.worker.result() if state.worker is not None else None
            self._finish(state, result)

    def _apply_sample(self, state: OperationState, transferred: int, total: int) -> None:
        state.status_text = progress_text(transferred, total)
        if total <= 0:
            return
        percent = min(max(transferred / total * 100.0, 0.0), 100.0)
        if percent > state.progress:
            state.progress = percent

    def _finish(self, state: OperationState, result: Optional[OperationResult]) -> None:
        kind = state.kind

        if result is None:
            result = OperationResult.failure(operation=kind.value, error=NO_RESULT_DETAIL)

        if result.ok:
            state.progress = 100.0
            state.status = OperationStatus.COMPLETE
            state.status_text = complete_text(kind)
            logger.info("%s on %s complete", kind.label, state.name)
        else:
            state.status = OperationStatus.FAILED
            state.failure = result.detail
            state.status_text = failed_text(kind, result.detail)
            logger.error("%s on %s failed: %s", kind.label, state.name, result.detail)

        state.result = result
        state.receiver = None
        self._release(state)

    def _release(self, state: OperationState) -> None:
        for resource, owner in list(self._claims.items()):
            if owner is state:
                del self._claims[resource]
