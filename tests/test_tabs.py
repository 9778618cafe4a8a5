"""Tests for tab routing and the tick-driven drain loop."""

import pytest

from conftest import WAIT, Gate, ScriptedBackend

from openrtx_companion.core import (
    FilePath,
    NoTargetSelected,
    OperationKind,
    OperationStatus,
    PathRequested,
    StartPressed,
    TabId,
    TabSelected,
    TargetSelected,
    Tick,
    TickDriver,
)
from openrtx_companion.core.messages import STATUS_NO_FILE
from openrtx_companion.pickers import Picker, StaticPicker


class TestRouting:

    def test_picker_result_goes_to_originating_tab(self, make_machine):
        """A folder picked for Backup lands there even after switching to Flash."""
        machine = make_machine(picker=StaticPicker(folder="/tmp/backup"))
        machine.dispatch(TabSelected(TabId.BACKUP))
        machine.dispatch(PathRequested(TabId.BACKUP, OperationKind.BACKUP))
        machine.dispatch(TabSelected(TabId.FLASH))

        machine.wait_for_pickers(WAIT)
        assert machine.process_pending() == 1

        assert machine.state(TabId.BACKUP).selected_path == "/tmp/backup"
        assert machine.state(TabId.FLASH).selected_path is None
        assert machine.active_tab == TabId.FLASH

    def test_flash_requests_a_file(self, make_machine):
        machine = make_machine(picker=StaticPicker(file="/tmp/fw.bin", folder="/tmp"))
        machine.dispatch(PathRequested(TabId.FLASH, OperationKind.FLASH))
        machine.wait_for_pickers(WAIT)
        machine.tick()
        assert machine.state(TabId.FLASH).selected_path == "/tmp/fw.bin"

    def test_cancelled_pick_is_not_an_error(self, make_machine):
        machine = make_machine()
        state = machine.state(TabId.BACKUP)
        state.selected_path = "/previous"

        machine.dispatch(FilePath(TabId.BACKUP, None))

        assert state.selected_path == "/previous"
        assert state.status_text == STATUS_NO_FILE
        assert state.status == OperationStatus.IDLE

    def test_picker_exception_is_reported_as_cancel(self, make_machine):
        class BrokenPicker(Picker):
            def pick_folder(self):
                raise OSError("no display")

        machine = make_machine(picker=BrokenPicker())
        machine.dispatch(PathRequested(TabId.BACKUP, OperationKind.BACKUP))
        machine.wait_for_pickers(WAIT)
        machine.process_pending()
        assert machine.state(TabId.BACKUP).status_text == STATUS_NO_FILE

    def test_unknown_event_raises(self, make_machine):
        with pytest.raises(TypeError):
            make_machine().dispatch(object())

    def test_kind_must_belong_to_tab(self, make_machine):
        with pytest.raises(ValueError):
            make_machine().dispatch(StartPressed(TabId.FLASH, OperationKind.RESTORE))


class TestStart:

    def test_start_without_target_reports_status(self, make_machine):
        """Flash with no target: NoTargetSelected text, nothing spawned."""
        machine = make_machine()
        machine.dispatch(FilePath(TabId.FLASH, "/tmp/fw.bin"))

        handle = machine.dispatch(StartPressed(TabId.FLASH))

        state = machine.state(TabId.FLASH)
        assert handle is None
        assert state.worker is None
        assert state.status == OperationStatus.IDLE
        assert state.progress == 0.0
        assert state.status_text == NoTargetSelected().reason

    def test_switching_tabs_does_not_touch_running_operation(self, make_machine, com3):
        gate = Gate()
        machine = make_machine(ScriptedBackend([(30, 100), gate]))
        machine.dispatch(TabSelected(TabId.BACKUP))
        machine.dispatch(TargetSelected(TabId.BACKUP, com3))
        machine.dispatch(FilePath(TabId.BACKUP, "/tmp/backup"))
        machine.dispatch(StartPressed(TabId.BACKUP))
        gate.wait_reached()
        machine.dispatch(Tick())

        backup = machine.state(TabId.BACKUP)
        snapshot = (backup.status, backup.progress, backup.status_text)
        machine.dispatch(TabSelected(TabId.FLASH))
        assert (backup.status, backup.progress, backup.status_text) == snapshot
        assert machine.active_state is machine.state(TabId.FLASH)

        gate.release.set()
        TickDriver(machine.tick, interval=0.01).run(until=lambda: not machine.any_running(), max_ticks=500)
        assert backup.status == OperationStatus.COMPLETE
        assert backup.progress == 100.0

    def test_restore_runs_from_backup_tab(self, make_machine, com3):
        backend = ScriptedBackend([(1, 2)])
        machine = make_machine(backend)
        machine.dispatch(TargetSelected(TabId.BACKUP, com3))
        machine.dispatch(FilePath(TabId.BACKUP, "/tmp/img.bin"))

        handle = machine.dispatch(StartPressed(TabId.BACKUP, OperationKind.RESTORE))
        assert handle.join(WAIT)
        machine.tick()

        state = machine.state(TabId.BACKUP)
        assert state.status == OperationStatus.COMPLETE
        assert state.status_text == "Restore complete!"
        assert backend.calls == [("restore", "COM3", "/tmp/img.bin")]

    def test_path_change_ignored_while_running(self, make_machine, com3):
        gate = Gate()
        machine = make_machine(ScriptedBackend([gate]))
        machine.dispatch(TargetSelected(TabId.BACKUP, com3))
        machine.dispatch(FilePath(TabId.BACKUP, "/tmp/backup"))
        machine.dispatch(StartPressed(TabId.BACKUP))

        machine.dispatch(FilePath(TabId.BACKUP, "/other"))
        machine.dispatch(FilePath(TabId.BACKUP, None))
        state = machine.state(TabId.BACKUP)
        assert state.selected_path == "/tmp/backup"
        assert state.status_text != STATUS_NO_FILE

        gate.release.set()
        assert state.worker.join(WAIT)
        machine.tick()
        assert state.status == OperationStatus.COMPLETE
