"""Run-state and serial event vocabulary shared by the engine and its observers."""

from __future__ import annotations

from enum import Enum


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class SerialCategory(str, Enum):
    """Tag attached to every serial event.

    ``PRINT`` output is buffered and never reported on its own; it is
    prepended to the next event of any other category.
    """

    PRINT = "print"
    PRINTLN = "println"
    PRINTF = "printf"
    SYSTEM = "system"
    ERROR = "error"
