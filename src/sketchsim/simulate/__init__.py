"""sketchsim runtime: interprets parsed sketches against a simulated board.

Entry point::

    import asyncio
    from sketchsim.simulate import Engine

    engine = Engine()
    engine.on_serial(lambda text, category, elapsed: print(text))
    asyncio.run(engine.run_for(source, seconds=2.0))
    engine.pins.read_digital(2)
"""

from __future__ import annotations

from ._builtins import STDLIB_FUNCTIONS
from ._clock import SimulationClock
from ._engine import Engine
from ._evaluator import Evaluator, evaluate_arithmetic
from ._executor import ExecutionEngine, SketchRuntime
from ._pins import PinManager, normalize_pin_id
from ._state import InterpreterState
from ._values import SimulationError

__all__ = [
    "Engine",
    "Evaluator",
    "ExecutionEngine",
    "InterpreterState",
    "PinManager",
    "STDLIB_FUNCTIONS",
    "SimulationClock",
    "SimulationError",
    "SketchRuntime",
    "evaluate_arithmetic",
    "normalize_pin_id",
]
