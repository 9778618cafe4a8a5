"""
OpenRTX Companion - flash, back up and restore radios running OpenRTX

Long-running device operations run on background workers while the
interactive thread polls their progress on a fixed tick.
"""

__version__ = "0.3.0"

from openrtx_companion.core import Orchestrator, TabStateMachine, TickDriver

__all__ = [
    "Orchestrator",
    "TabStateMachine",
    "TickDriver",
    "__version__",
]
