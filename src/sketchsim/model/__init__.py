"""Pydantic models: the sketch AST, pins, circuits and run-state enums."""

from .circuit import Circuit, Connection, Part, PeripheralDescriptor
from .pins import Pin, PinConnection, PinId, PinMode
from .runtime import RunState, SerialCategory
from .sketch import FunctionDef, Sketch

__all__ = [
    "Circuit",
    "Connection",
    "FunctionDef",
    "Part",
    "PeripheralDescriptor",
    "Pin",
    "PinConnection",
    "PinId",
    "PinMode",
    "RunState",
    "SerialCategory",
    "Sketch",
]
