"""Circuit persistence and peripheral registration shapes.

The simulator does not interpret part attributes, positions or wire
colors; they are carried through as given.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .pins import PinId


class Part(BaseModel):
    type: str
    id: str | int
    attrs: dict[str, Any] = {}
    position: Any = None

    @field_validator("attrs", mode="before")
    @classmethod
    def _default_attrs(cls, value: Any) -> Any:
        return {} if value is None else value


class Connection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Any = Field(alias="from")
    to: Any
    color: Any = None


class Circuit(BaseModel):
    version: int = 1
    editor: str = "esp32-simulator"
    parts: list[Part] = []
    connections: list[Connection] = []


class PeripheralDescriptor(BaseModel):
    """An external component attached to the board.

    *connected_pins* are linked to ``(id, type)`` in the pin table on
    registration.  *reset* is called when the engine is reset.
    """

    model_config = ConfigDict(populate_by_name=True)

    connected_pins: list[PinId] = Field(default=[], alias="connectedPins")
    type: str = ""
    reset: Callable[[], None] | None = None
