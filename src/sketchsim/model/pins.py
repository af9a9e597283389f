"""Pin state for the simulated board."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


PinId = int | str


class PinMode(str, Enum):
    INPUT = "INPUT"
    OUTPUT = "OUTPUT"
    INPUT_PULLUP = "INPUT_PULLUP"
    POWER = "POWER"


class PinConnection(BaseModel):
    """Which external component is wired to a pin.  Bookkeeping only."""

    component_id: str
    pin_name: str


class Pin(BaseModel):
    """One GPIO or power-rail pin.

    *digital_value* is 0/1, *analog_value* the ADC reading (0..4095)
    injected from outside, *pwm_value* the 8-bit duty last written.
    """

    id: PinId
    mode: PinMode = PinMode.INPUT
    digital_value: int = 0
    analog_value: int = 0
    pwm_value: int = 0
    is_adc: bool = False
    is_dac: bool = False
    connection: PinConnection | None = None

    @property
    def is_power(self) -> bool:
        return self.mode == PinMode.POWER
