"""Pin table of the simulated board.

Operations on unknown pin ids are silently ignored: writes do nothing,
reads return 0.  Power-rail pins keep their fixed level; writes to them
are ignored too.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from sketchsim.config import BoardProfile, get_board
from sketchsim.model.pins import Pin, PinConnection, PinId, PinMode

from ._values import is_truthy, to_number

logger = logging.getLogger(__name__)

PinListener = Callable[[PinId, Pin], None]

PWM_MAX = 255
ADC_MAX = 4095

_WRITABLE_MODES = frozenset({PinMode.INPUT.value, PinMode.OUTPUT.value, PinMode.INPUT_PULLUP.value})


def normalize_pin_id(pin: object) -> PinId | None:
    """Map ``2``, ``2.0`` and ``"2"`` to GPIO 2; other text is a rail name."""
    if isinstance(pin, bool):
        return int(pin)
    if isinstance(pin, int):
        return pin
    if isinstance(pin, float):
        return int(pin) if math.isfinite(pin) and pin.is_integer() else None
    if isinstance(pin, str):
        text = pin.strip()
        number = to_number(text)
        if isinstance(number, int):
            return number
        return text
    return None


def _clamp(value: object, high: int) -> int:
    number = to_number(value)
    if math.isnan(number):
        return 0
    if math.isfinite(number):
        number = math.floor(number + 0.5)
    return int(max(0, min(high, number)))


class PinManager:
    """Owns the pins of one board and notifies listeners on every change.

    Parameters
    ----------
    board : BoardProfile, optional
        Pin table to build from.  Defaults to the bundled ``esp32`` profile.
    """

    def __init__(self, board: BoardProfile | None = None) -> None:
        self.board = board or get_board("esp32")
        self._pins: dict[PinId, Pin] = {}
        self._listeners: list[PinListener] = []
        self._create_pins()

    def _create_pins(self) -> None:
        adc = set(self.board.adc_pins)
        dac = set(self.board.dac_pins)
        pins: dict[PinId, Pin] = {}
        for number in self.board.gpio_pins:
            pins[number] = Pin(id=number, is_adc=number in adc, is_dac=number in dac)
        for rail, level in self.board.power_rails.items():
            pins[rail] = Pin(id=rail, mode=PinMode.POWER, digital_value=level)
        self._pins = pins

    # -----------------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------------

    def get(self, pin: object) -> Pin | None:
        key = normalize_pin_id(pin)
        if key is None:
            return None
        return self._pins.get(key)

    def _writable(self, pin: object) -> Pin | None:
        p = self.get(pin)
        if p is None or p.is_power:
            return None
        return p

    @property
    def pin_ids(self) -> list[PinId]:
        return list(self._pins)

    def get_state(self) -> dict[PinId, Pin]:
        """Snapshot of every pin, keyed by id."""
        return {pin_id: p.model_copy(deep=True) for pin_id, p in self._pins.items()}

    # -----------------------------------------------------------------------
    # Writes and reads
    # -----------------------------------------------------------------------

    def set_mode(self, pin: object, mode: str | PinMode) -> None:
        p = self._writable(pin)
        name = mode.value if isinstance(mode, PinMode) else str(mode).strip()
        if p is None or name not in _WRITABLE_MODES:
            return
        p.mode = PinMode(name)
        self._notify(p)

    def write_digital(self, pin: object, value: object) -> None:
        p = self._writable(pin)
        if p is None:
            return
        p.digital_value = 1 if is_truthy(value) else 0
        self._notify(p)

    def read_digital(self, pin: object) -> int:
        p = self.get(pin)
        return p.digital_value if p is not None else 0

    def write_analog(self, pin: object, duty: object) -> None:
        """PWM write: duty clamped to 0..255, digital level follows duty > 0."""
        p = self._writable(pin)
        if p is None:
            return
        p.pwm_value = _clamp(duty, PWM_MAX)
        p.digital_value = 1 if p.pwm_value > 0 else 0
        self._notify(p)

    def set_analog_value(self, pin: object, raw: object) -> None:
        """Inject an ADC reading, clamped to 0..4095.  Does not notify."""
        p = self._writable(pin)
        if p is None:
            return
        p.analog_value = _clamp(raw, ADC_MAX)

    def read_analog(self, pin: object) -> int:
        p = self.get(pin)
        return p.analog_value if p is not None else 0

    # -----------------------------------------------------------------------
    # Bookkeeping
    # -----------------------------------------------------------------------

    def connect(self, pin: object, component_id: str, label: str) -> None:
        p = self.get(pin)
        if p is not None:
            p.connection = PinConnection(component_id=str(component_id), pin_name=str(label))

    def disconnect(self, pin: object) -> None:
        p = self.get(pin)
        if p is not None:
            p.connection = None

    def reset_all(self) -> None:
        """Recreate the pin table and notify once per pin."""
        self._create_pins()
        logger.debug("Pin table reset (%d pins)", len(self._pins))
        for p in list(self._pins.values()):
            self._notify(p)

    # -----------------------------------------------------------------------
    # Listeners
    # -----------------------------------------------------------------------

    def subscribe(self, listener: PinListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: PinListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, p: Pin) -> None:
        snapshot = p.model_copy(deep=True)
        for listener in list(self._listeners):
            listener(p.id, snapshot)
