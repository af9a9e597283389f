"""Board profiles and simulator settings.

Board profiles live in ``sketchsim/boards/<name>.yaml``; a simulator
config file may point at one by name::

    board: esp32
    speed: 2
    loop_yield_ms: 1
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import ConfigurationError


BOARDS_DIR = Path(__file__).parent / "boards"


class BoardProfile(BaseModel):
    """Static pin table of a board.

    *power_rails* maps rail names to their fixed logic level.
    """

    name: str
    gpio_pins: list[int]
    adc_pins: list[int] = []
    dac_pins: list[int] = []
    power_rails: dict[str, int] = {"3V3": 1, "GND": 0, "VIN": 1}

    @model_validator(mode="after")
    def _check_pin_table(self) -> Self:
        gpios = set(self.gpio_pins)
        for label, pins in (("adc_pins", self.adc_pins), ("dac_pins", self.dac_pins)):
            unknown = sorted(set(pins) - gpios)
            if unknown:
                raise ValueError(f"{label} not in gpio_pins: {unknown}")
        for rail, level in self.power_rails.items():
            if level not in (0, 1):
                raise ValueError(f"power rail {rail!r} level must be 0 or 1, got {level}")
        return self


class SimulatorConfig(BaseModel):
    """Engine settings.

    *loop_yield_ms* is the pause between ``loop()`` passes and after each
    ``for`` iteration; ``while`` loops pause every *while_yield_interval*
    iterations.  Delays never sleep less than *min_delay_ms* of host time.
    """

    board: str = "esp32"
    speed: float = Field(default=1.0, gt=0)
    loop_yield_ms: float = Field(default=1.0, ge=0)
    while_yield_interval: int = Field(default=100, ge=1)
    min_delay_ms: float = Field(default=1.0, ge=0)
    seed: int | None = None


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_BOARD_CACHE: dict[str, BoardProfile] = {}
_CACHE_LOCK = threading.RLock()


def _load_yaml_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigurationError(str(path), f"cannot read file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(str(path), f"invalid YAML: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return raw


def load_board(path: str | Path) -> BoardProfile:
    """Load and validate a board profile from a YAML file."""
    p = Path(path)
    raw = _load_yaml_file(p)
    try:
        return BoardProfile.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(str(p), "invalid board profile", {"errors": exc.errors()}) from exc


def load_config(path: str | Path) -> SimulatorConfig:
    """Load and validate simulator settings from a YAML file."""
    p = Path(path)
    raw = _load_yaml_file(p)
    try:
        return SimulatorConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(str(p), "invalid simulator config", {"errors": exc.errors()}) from exc


def get_board(name: str) -> BoardProfile:
    """Return the bundled board profile *name*, loading and caching it once."""
    with _CACHE_LOCK:
        if name not in _BOARD_CACHE:
            path = BOARDS_DIR / f"{name}.yaml"
            if not path.is_file():
                raise ConfigurationError(name, "unknown board")
            _BOARD_CACHE[name] = load_board(path)
        return _BOARD_CACHE[name]


def clear_board_cache() -> None:
    with _CACHE_LOCK:
        _BOARD_CACHE.clear()
