"""Shared fixtures: scripted backends, fast settings and fake serial ports."""

import threading
from types import SimpleNamespace

import pytest

from openrtx_companion.context import CompanionContext
from openrtx_companion.core import CompanionSettings, Orchestrator, TabStateMachine
from openrtx_companion.core.results import OperationResult
from openrtx_companion.devices import FlashTarget, SerialPort
from openrtx_companion.pickers import StaticPicker
from openrtx_companion.protocol.backend import DeviceBackend

WAIT = 5.0


class Gate:
    """Pause point inside a scripted backend."""

    def __init__(self):
        self.reached = threading.Event()
        self.release = threading.Event()

    def pass_through(self):
        self.reached.set()
        assert self.release.wait(WAIT), "gate never released"

    def wait_reached(self):
        assert self.reached.wait(WAIT), "worker never reached gate"


class ScriptedBackend(DeviceBackend):
    """
    Backend that plays a script for every operation.

    Script items: ``(transferred, total)`` tuples are sent as samples,
    Gate objects pause the worker, exceptions are raised.
    """

    def __init__(self, script=(), ok=True):
        self.script = list(script)
        self.ok = ok
        self.calls = []

    def _play(self, operation, target, path, sink):
        self.calls.append((operation, str(target), path))
        for item in self.script:
            if isinstance(item, tuple):
                sink(*item)
            elif isinstance(item, Gate):
                item.pass_through()
            elif isinstance(item, BaseException):
                raise item
        if self.ok:
            return OperationResult.success(operation=operation, target=str(target), path=path)
        return OperationResult.failure(operation=operation, error="scripted failure", target=str(target))

    def flash(self, target, port, firmware_path, progress_sink):
        return self._play("flash", target, firmware_path, progress_sink)

    def backup(self, port, destination_path, progress_sink):
        return self._play("backup", port, destination_path, progress_sink)

    def restore(self, port, source_path, progress_sink):
        return self._play("restore", port, source_path, progress_sink)


def port_info(device, vid=None, pid=None, product=None, manufacturer=None):
    """Stand-in for pyserial's ListPortInfo."""
    return SimpleNamespace(
        device=device,
        vid=vid,
        pid=pid,
        product=product,
        manufacturer=manufacturer,
    )


@pytest.fixture
def fast_settings():
    return CompanionSettings(
        tick_interval=0.01,
        block_size=256,
        backup_size=1024,
        simulate_delay=0.0,
    )


@pytest.fixture
def make_context(fast_settings):
    def _make(backend=None, picker=None):
        return CompanionContext(
            settings=fast_settings,
            backend=backend or ScriptedBackend(),
            picker=picker or StaticPicker(),
        )
    return _make


@pytest.fixture
def make_orchestrator(make_context):
    def _make(backend=None, **kwargs):
        return Orchestrator(make_context(backend), **kwargs)
    return _make


@pytest.fixture
def make_machine(make_context):
    def _make(backend=None, picker=None):
        context = make_context(backend, picker)
        return TabStateMachine(context, Orchestrator(context))
    return _make


@pytest.fixture
def com3():
    return SerialPort(name="COM3", vendor="STMicroelectronics", product="OpenRTX")


@pytest.fixture
def radio():
    return FlashTarget(index=0, manufacturer="TYT", model="MD-UV3x0", port="COM3")
