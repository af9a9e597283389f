"""Run-loop scheduler: lifecycle, suspension, serial output, peripherals."""

from __future__ import annotations

import asyncio
import json
import logging
import math
import random
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from sketchsim.config import BoardProfile, SimulatorConfig, get_board
from sketchsim.model.circuit import Circuit, Connection, Part, PeripheralDescriptor
from sketchsim.model.runtime import RunState, SerialCategory
from sketchsim.parse import parse_sketch

from ._clock import SimulationClock
from ._evaluator import Evaluator
from ._executor import ExecutionEngine
from ._pins import PinManager
from ._state import InterpreterState
from ._values import to_number

logger = logging.getLogger(__name__)

SerialListener = Callable[[str, SerialCategory, float], None]
StatusListener = Callable[[RunState], None]


def _unsubscriber(listeners: list, listener: Callable) -> Callable[[], None]:
    def unsubscribe() -> None:
        if listener in listeners:
            listeners.remove(listener)
    return unsubscribe


class Engine:
    """Runs one sketch at a time against a simulated board.

    ``start()`` parses the source, runs ``setup`` once and then ``loop``
    until ``stop()``.  Every suspension (delays, loop yields) waits on a
    stop event, so ``stop()`` wakes a pending ``delay(10000)`` at once.

    Parameters
    ----------
    config : SimulatorConfig, optional
        Speed, yield and delay settings.  Defaults to ``SimulatorConfig()``.
    board : BoardProfile, optional
        Pin table.  Defaults to the bundled profile named by ``config.board``.
    """

    def __init__(self, config: SimulatorConfig | None = None, board: BoardProfile | None = None) -> None:
        self.config = config or SimulatorConfig()
        self.board = board or get_board(self.config.board)
        self.pins = PinManager(self.board)
        self.state = InterpreterState()
        self.clock = SimulationClock(self.config.speed)
        self.rng = random.Random(self.config.seed)
        self.peripherals: dict[str, PeripheralDescriptor] = {}

        self._status = RunState.IDLE
        self._running = False
        self._stop_event: asyncio.Event | None = None
        self._serial_buffer = ""
        self._serial_listeners: list[SerialListener] = []
        self._status_listeners: list[StatusListener] = []

    # -----------------------------------------------------------------------
    # State
    # -----------------------------------------------------------------------

    @property
    def status(self) -> RunState:
        return self._status

    @property
    def running(self) -> bool:
        return self._running

    @property
    def speed(self) -> float:
        return self.clock.speed

    def elapsed_time(self) -> float:
        """Simulated seconds since the current run started."""
        return self.clock.seconds()

    def set_speed(self, speed: float) -> None:
        """Scale delays and ``millis()`` from now on."""
        if speed <= 0:
            raise ValueError(f"Speed must be positive, got {speed}")
        self.clock.set_speed(speed)
        logger.debug("Speed set to %s", speed)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    async def start(self, source: str) -> RunState:
        """Run *source* until stopped or aborted; returns the final status."""
        if self._running:
            logger.warning("Start ignored: a sketch is already running")
            return self._status

        self._stop_event = asyncio.Event()
        self._running = True
        self.clock.start()
        self._set_status(RunState.RUNNING)

        try:
            self.state = InterpreterState.from_sketch(parse_sketch(source))
            evaluator = Evaluator(self.state, self.pins, self.clock, self.rng)
            executor = ExecutionEngine(
                self.state,
                self.pins,
                self,
                evaluator,
                while_yield_interval=self.config.while_yield_interval,
            )
            await executor.execute(self.state.setup)
            while self._running:
                await executor.execute(self.state.loop)
                await self.pause()
        except asyncio.CancelledError:
            self.stop()
            raise
        except Exception as exc:
            logger.exception("Sketch aborted")
            self._running = False
            self.clock.stop()
            self.emit(f"[Error] {str(exc) or type(exc).__name__}", SerialCategory.ERROR)
            self._set_status(RunState.ERROR)

        if self._status == RunState.RUNNING:
            self.stop()
        return self._status

    def stop(self) -> None:
        """Clear the running flag and wake any pending suspension."""
        self._running = False
        if self._stop_event is not None:
            self._stop_event.set()
        self.clock.stop()
        if self._status == RunState.RUNNING:
            self._set_status(RunState.STOPPED)

    def reset(self) -> None:
        """Stop, rebuild the pin table, clear variables and serial buffer."""
        self.stop()
        self.pins.reset_all()
        self.state = InterpreterState()
        self._serial_buffer = ""
        self.clock.reset()
        self._set_status(RunState.IDLE)
        for descriptor in list(self.peripherals.values()):
            if descriptor.reset is not None:
                descriptor.reset()

    async def run_for(self, source: str, seconds: float) -> RunState:
        """Start *source*, stop it after *seconds* of host time, return the status."""
        task = asyncio.ensure_future(self.start(source))
        # Let start() reach its first suspension so stop() has a run to end
        await asyncio.sleep(0)
        done, _ = await asyncio.wait({task}, timeout=seconds)
        if not done:
            self.stop()
        return await task

    # -----------------------------------------------------------------------
    # Suspension
    # -----------------------------------------------------------------------

    async def delay(self, ms: float) -> None:
        """Suspend for *ms* simulated milliseconds."""
        ms = to_number(ms)
        if math.isnan(ms):
            ms = 0
        await self._sleep(max(self.config.min_delay_ms, ms / self.speed))

    async def pause(self) -> None:
        """Short yield between loop iterations."""
        await self._sleep(self.config.loop_yield_ms)

    async def _sleep(self, ms: float) -> None:
        if ms <= 0:
            await asyncio.sleep(0)
            return
        if self._stop_event is None:
            await asyncio.sleep(ms / 1000)
            return
        if not math.isfinite(ms):
            await self._stop_event.wait()
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=ms / 1000)
        except TimeoutError:
            pass

    # -----------------------------------------------------------------------
    # Serial output and status
    # -----------------------------------------------------------------------

    def emit(self, text: str, category: SerialCategory) -> None:
        """Report serial output.  ``print`` text is held until the next emission."""
        if category == SerialCategory.PRINT:
            self._serial_buffer += text
            return
        output = self._serial_buffer + text
        self._serial_buffer = ""
        elapsed = round(self.clock.seconds(), 3)
        for listener in list(self._serial_listeners):
            listener(output, category, elapsed)

    def on_serial(self, listener: SerialListener) -> Callable[[], None]:
        self._serial_listeners.append(listener)
        return _unsubscriber(self._serial_listeners, listener)

    def on_status(self, listener: StatusListener) -> Callable[[], None]:
        self._status_listeners.append(listener)
        return _unsubscriber(self._status_listeners, listener)

    def _set_status(self, status: RunState) -> None:
        self._status = status
        logger.debug("Status -> %s", status.value)
        for listener in list(self._status_listeners):
            listener(status)

    # -----------------------------------------------------------------------
    # Peripherals
    # -----------------------------------------------------------------------

    def register_peripheral(self, peripheral_id: str, descriptor: PeripheralDescriptor | Mapping[str, Any]) -> None:
        """Attach an external component; its pins are linked to ``(id, type)``."""
        if not isinstance(descriptor, PeripheralDescriptor):
            descriptor = PeripheralDescriptor.model_validate(dict(descriptor))
        self.peripherals[peripheral_id] = descriptor
        for pin in descriptor.connected_pins:
            self.pins.connect(pin, peripheral_id, descriptor.type)

    def remove_peripheral(self, peripheral_id: str) -> None:
        descriptor = self.peripherals.pop(peripheral_id, None)
        if descriptor is None:
            return
        for pin in descriptor.connected_pins:
            self.pins.disconnect(pin)

    # -----------------------------------------------------------------------
    # Circuit persistence
    # -----------------------------------------------------------------------

    def export_circuit(self, parts: Iterable[Part | Mapping[str, Any]], connections: Iterable[Connection | Mapping[str, Any]]) -> str:
        """Serialize parts and wires as circuit JSON."""
        circuit = Circuit(
            parts=[Part.model_validate(p) for p in parts],
            connections=[Connection.model_validate(c) for c in connections],
        )
        return circuit.model_dump_json(indent=2, by_alias=True)

    def import_circuit(self, text: str) -> Any:
        """Parse circuit JSON.  Malformed text is reported on serial and gives None."""
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            self.emit(f"[Error] Invalid circuit file: {exc}", SerialCategory.ERROR)
            return None
