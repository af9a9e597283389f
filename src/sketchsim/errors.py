"""Exceptions raised by the simulator package."""

from __future__ import annotations

from typing import Any


class SimulationError(Exception):
    """Runtime error during simulation.

    Raised inside a run it aborts the sketch; the engine reports it as a
    serial error event and moves to the ``error`` state.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(SimulationError):
    """Raised when a board profile or simulator config cannot be loaded."""

    def __init__(self, source: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(f"Configuration error in '{source}': {message}", details)
        self.source = source
