"""
Tab state machine.

Holds one OperationState per tab and routes tagged events to the tab that
originated them. Picker results in particular are routed by the tab that
asked for them, never by whichever tab happens to be active when the
result arrives.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from .errors import PreconditionError
from .messages import STATUS_NO_FILE, selected_text
from .orchestrator import Orchestrator
from .state import OperationKind, OperationState, Target
from .worker import WorkerHandle

if TYPE_CHECKING:
    from ..context import CompanionContext

logger = logging.getLogger(__name__)


class TabId(Enum):
    """Functional areas of the application."""
    FLASH = "flash"
    BACKUP = "backup"


# Operation kinds each tab can start; the first one is the default
TAB_KINDS: Dict[TabId, Tuple[OperationKind, ...]] = {
    TabId.FLASH: (OperationKind.FLASH,),
    TabId.BACKUP: (OperationKind.BACKUP, OperationKind.RESTORE),
}


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class TabSelected:
    tab: TabId


@dataclass(frozen=True)
class TargetSelected:
    tab: TabId
    target: Optional[Target]


@dataclass(frozen=True)
class PathRequested:
    """Ask the picker for a path; the answer comes back as FilePath."""
    tab: TabId
    kind: OperationKind


@dataclass(frozen=True)
class FilePath:
    """Picker result. ``path`` is None when the user cancelled."""
    tab: TabId
    path: Optional[str]


@dataclass(frozen=True)
class StartPressed:
    tab: TabId
    kind: Optional[OperationKind] = None


@dataclass(frozen=True)
class Tick:
    pass


# =============================================================================
# State machine
# =============================================================================

class TabStateMachine:
    """
    Routes user events and ticks to per-tab operation state.

    Example:
        machine = TabStateMachine(context, Orchestrator(context))
        machine.dispatch(TargetSelected(TabId.BACKUP, port))
        machine.dispatch(FilePath(TabId.BACKUP, "/tmp/backup"))
        machine.dispatch(StartPressed(TabId.BACKUP))
        TickDriver(machine.tick).run(until=lambda: not machine.any_running())
    """

    def __init__(self, context: "CompanionContext", orchestrator: Orchestrator):
        self.context = context
        self.orchestrator = orchestrator
        self.active_tab = TabId.FLASH
        self.states: Dict[TabId, OperationState] = {
            tab: OperationState(name=tab.value) for tab in TabId
        }
        self._inbox: "queue.SimpleQueue" = queue.SimpleQueue()
        self._picker_threads: List[threading.Thread] = []

    def state(self, tab: Optional[TabId] = None) -> OperationState:
        """State of ``tab``, or of the active tab."""
        return self.states[tab or self.active_tab]

    @property
    def active_state(self) -> OperationState:
        return self.states[self.active_tab]

    def any_running(self) -> bool:
        return any(s.is_running for s in self.states.values())

    def select_tab(self, tab: TabId) -> None:
        """Change the rendered tab. Running operations are unaffected."""
        self.active_tab = tab

    # ------------------------------------------------------------------
    # Event intake
    # ------------------------------------------------------------------

    def post(self, event) -> None:
        """Queue an event from any thread for the next ``process_pending``."""
        self._inbox.put(event)

    def process_pending(self) -> int:
        """Dispatch queued events on the calling (interactive) thread."""
        count = 0
        while True:
            try:
                event = self._inbox.get_nowait()
            except queue.Empty:
                return count
            self.dispatch(event)
            count += 1

    def dispatch(self, event) -> Optional[WorkerHandle]:
        """
        Handle one event synchronously.

        Returns the worker handle for a StartPressed that spawned one,
        otherwise None.
        """
        if isinstance(event, Tick):
            self.tick()
        elif isinstance(event, TabSelected):
            self.select_tab(event.tab)
        elif isinstance(event, TargetSelected):
            self.orchestrator.select_target(self.states[event.tab], event.target)
        elif isinstance(event, PathRequested):
            self._request_path(event.tab, event.kind)
        elif isinstance(event, FilePath):
            self._on_file_path(event.tab, event.path)
        elif isinstance(event, StartPressed):
            return self._on_start(event.tab, event.kind)
        else:
            raise TypeError(f"Unknown event: {event!r}")
        return None

    def tick(self) -> None:
        """Deliver pending events, then drain every running operation."""
        self.process_pending()
        for state in self.states.values():
            if state.is_running:
                self.orchestrator.drain(state)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _request_path(self, tab: TabId, kind: OperationKind) -> threading.Thread:
        picker = self.context.picker
        pick = picker.pick_folder if kind == OperationKind.BACKUP else picker.pick_file

        def run() -> None:
            path = None
            try:
                path = pick()
            except Exception:
                logger.exception("File picker failed")
            self.post(FilePath(tab=tab, path=path))

        thread = threading.Thread(target=run, name=f"picker-{tab.value}", daemon=True)
        self._picker_threads.append(thread)
        thread.start()
        return thread

    def wait_for_pickers(self, timeout: Optional[float] = None) -> None:
        """Join outstanding picker threads."""
        for thread in self._picker_threads:
            thread.join(timeout)
        self._picker_threads = [t for t in self._picker_threads if t.is_alive()]

    def _on_file_path(self, tab: TabId, path: Optional[str]) -> None:
        state = self.states[tab]
        if path is None:
            logger.info("%s: file selection cancelled", tab.value)
            if not state.is_running:
                state.status_text = STATUS_NO_FILE
            return
        if self.orchestrator.select_path(state, path):
            state.status_text = selected_text(path)

    def _on_start(self, tab: TabId, kind: Optional[OperationKind]) -> Optional[WorkerHandle]:
        allowed = TAB_KINDS[tab]
        kind = kind or allowed[0]
        if kind not in allowed:
            raise ValueError(f"{kind.value} cannot be started from the {tab.value} tab")

        state = self.states[tab]
        try:
            return self.orchestrator.start(state, kind, state.selected_target, state.selected_path)
        except PreconditionError as e:
            logger.warning("%s: %s", tab.value, e.reason)
            return None
