"""
Background execution of one hardware operation.

A worker owns the sending end of a ProgressChannel and nothing else. Its
only observable outputs are progress samples, the final OperationResult
posted on its result future, and the channel close that always follows.
"""

import logging
import threading
from concurrent.futures import Future
from contextlib import contextmanager
from typing import Optional, TYPE_CHECKING

from .channel import ProgressSender
from .errors import DeviceIOError
from .results import OperationResult
from .state import OperationKind

if TYPE_CHECKING:
    from ..protocol.backend import DeviceBackend
    from .state import Target

logger = logging.getLogger(__name__)


class _ThreadLogHandler(logging.Handler):
    """Capture log records emitted by a single thread into a list."""

    def __init__(self, thread_id: int, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.thread_id = thread_id
        self.records = []
        self.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        if record.thread == self.thread_id:
            self.records.append(self.format(record))


@contextmanager
def _capture_logs(logger_name: str = "openrtx_companion"):
    """
    Capture this thread's logs for one operation into a list.

    Logger levels are left untouched since the interactive thread keeps
    logging while workers run; the handler filters by thread and level, so
    only records the logging configuration lets through are captured.
    """
    target_logger = logging.getLogger(logger_name)
    handler = _ThreadLogHandler(threading.get_ident())
    target_logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        target_logger.removeHandler(handler)


class WorkerHandle:
    """
    Managed handle to a running worker.

    The orchestrator keeps one per running OperationState. It exposes the
    thread lifecycle and the final result signal; cancellation is not
    supported yet.
    """

    def __init__(self, thread: threading.Thread, result: "Future[OperationResult]"):
        self._thread = thread
        self._result = result

    @property
    def name(self) -> str:
        return self._thread.name

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the worker thread; returns True if it has exited."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def done(self) -> bool:
        """Whether the final result has been posted."""
        return self._result.done()

    def result(self) -> Optional[OperationResult]:
        """Final result, or None if the worker has not posted one."""
        if not self._result.done():
            return None
        return self._result.result()


class OperationWorker:
    """
    Runs one flash, backup or restore against a device backend.

    Example:
        sender, receiver = open_channel()
        worker = OperationWorker(OperationKind.BACKUP, port, "/tmp/backup", backend, sender)
        handle = worker.spawn()
    """

    def __init__(
        self,
        kind: OperationKind,
        target: "Target",
        path: str,
        backend: "DeviceBackend",
        sender: ProgressSender,
    ):
        self.kind = kind
        self.target = target
        self.path = path
        self.backend = backend
        self.sender = sender
        self._result: "Future[OperationResult]" = Future()

    def spawn(self) -> WorkerHandle:
        """Start the worker on a daemon thread and return its handle."""
        thread = threading.Thread(
            target=self.run,
            name=f"{self.kind.value}-{self.target.resource}",
            daemon=True,
        )
        handle = WorkerHandle(thread, self._result)
        thread.start()
        return handle

    def run(self) -> None:
        """Thread body. Always posts a result, then closes the channel."""
        result: Optional[OperationResult] = None
        with _capture_logs() as logs:
            try:
                logger.info("%s started on %s", self.kind.label, self.target.resource)
                result = self._invoke()
            except DeviceIOError as e:
                logger.error("%s failed on %s: %s", self.kind.label, self.target.resource, e)
                result = OperationResult.failure(
                    operation=self.kind.value,
                    error=e.detail,
                    target=str(self.target),
                    path=self.path,
                )
            except Exception as e:
                logger.exception("%s crashed", self.kind.label)
                result = OperationResult.failure(
                    operation=self.kind.value,
                    error=f"Unexpected error: {e}",
                    target=str(self.target),
                    path=self.path,
                )
            finally:
                if result is None:
                    result = OperationResult.failure(
                        operation=self.kind.value,
                        error="Operation interrupted",
                        target=str(self.target),
                        path=self.path,
                    )
                result.logs = list(logs)
                self._result.set_result(result)
                self.sender.close()

    def _invoke(self) -> OperationResult:
        if self.kind == OperationKind.FLASH:
            return self.backend.flash(self.target, self.target.port, self.path, self.sender)
        if self.kind == OperationKind.BACKUP:
            return self.backend.backup(self.target.resource, self.path, self.sender)
        if self.kind == OperationKind.RESTORE:
            return self.backend.restore(self.target.resource, self.path, self.sender)
        raise ValueError(f"Unsupported operation kind: {self.kind}")
