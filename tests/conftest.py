"""Shared test helpers for the sketchsim test suite."""

import asyncio
import textwrap

from sketchsim.model.runtime import SerialCategory
from sketchsim.parse import parse_block
from sketchsim.simulate import Evaluator, ExecutionEngine, InterpreterState, PinManager


class FakeRuntime:
    """In-memory stand-in for the engine: records delays, pauses and serial output.

    With *max_pauses* set, the run stops after that many loop yields.
    """

    def __init__(self, max_pauses: int | None = None):
        self.running = True
        self.delays: list[float] = []
        self.pauses = 0
        self.emitted: list[tuple[str, SerialCategory]] = []
        self.max_pauses = max_pauses

    async def delay(self, ms):
        self.delays.append(ms)

    async def pause(self):
        self.pauses += 1
        if self.max_pauses is not None and self.pauses >= self.max_pauses:
            self.running = False

    def emit(self, text, category):
        self.emitted.append((text, category))


def make_executor(globals_=None, functions=None, runtime=None, pins=None):
    """Build an ExecutionEngine over fresh state, pins and a FakeRuntime."""
    state = InterpreterState(globals=dict(globals_ or {}), functions=dict(functions or {}))
    pins = pins or PinManager()
    runtime = runtime or FakeRuntime()
    return ExecutionEngine(state, pins, runtime, Evaluator(state, pins))


def run_block(source: str, globals_=None, scope=None, **kwargs):
    """Parse *source* as a block body, execute it, and return the executor."""
    executor = make_executor(globals_, **kwargs)
    body = parse_block(textwrap.dedent(source))
    asyncio.run(executor.execute(body, scope if scope is not None else {}))
    return executor


def make_evaluator(globals_=None, pins=None, clock=None):
    state = InterpreterState(globals=dict(globals_ or {}))
    return Evaluator(state, pins or PinManager(), clock)


class ManualTime:
    """Controllable time source for SimulationClock tests (seconds)."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
