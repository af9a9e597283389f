"""Headless runner: ``python -m sketchsim [SKETCH] [options]``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sketchsim.config import SimulatorConfig, load_config
from sketchsim.errors import ConfigurationError
from sketchsim.examples import DEFAULT_SKETCH
from sketchsim.model.runtime import RunState, SerialCategory
from sketchsim.simulate import Engine, normalize_pin_id

logger = logging.getLogger("sketchsim")


def _pin_value(text: str) -> tuple[int | str, float]:
    """Parse ``PIN=VALUE`` for the input injection options."""
    pin, sep, value = text.partition("=")
    if not sep or not pin.strip():
        raise argparse.ArgumentTypeError(f"expected PIN=VALUE, got {text!r}")
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"value must be a number, got {value!r}") from None
    return normalize_pin_id(pin), number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sketchsim",
        description="Run an Arduino-style sketch against a simulated ESP32 board.",
    )
    parser.add_argument("sketch", nargs="?", help="Path to the sketch source (default: bundled blink demo)")
    parser.add_argument("--duration", type=float, default=5.0, help="Host seconds to run before stopping")
    parser.add_argument("--speed", type=float, default=None, help="Simulation speed multiplier")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--board", default=None, help="Bundled board profile name")
    source.add_argument("--config", default=None, help="Simulator config YAML file")
    parser.add_argument(
        "--adc", action="append", type=_pin_value, default=[], metavar="PIN=VALUE",
        help="Preset an ADC reading (0-4095); may be repeated",
    )
    parser.add_argument(
        "--digital", action="append", type=_pin_value, default=[], metavar="PIN=0|1",
        help="Preset a digital input level; may be repeated",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    if args.speed is not None and args.speed <= 0:
        parser.error("--speed must be positive")
    if args.duration < 0:
        parser.error("--duration must not be negative")
    return args


def _print_serial(text: str, category: SerialCategory, elapsed: float) -> None:
    stream = sys.stderr if category == SerialCategory.ERROR else sys.stdout
    print(f"[{elapsed:8.3f}] {text}", file=stream, flush=True)


def _print_status(status: RunState) -> None:
    print(f"status: {status.value}", file=sys.stderr, flush=True)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else SimulatorConfig(board=args.board or "esp32")
        if args.speed is not None:
            config = config.model_copy(update={"speed": args.speed})
        engine = Engine(config)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.sketch:
        try:
            source = Path(args.sketch).read_text(encoding="utf-8")
        except OSError as exc:
            print(f"error: cannot read sketch: {exc}", file=sys.stderr)
            return 2
    else:
        source = DEFAULT_SKETCH

    for pin, value in args.adc:
        engine.pins.set_analog_value(pin, value)
    for pin, value in args.digital:
        engine.pins.write_digital(pin, value)

    engine.on_serial(_print_serial)
    engine.on_status(_print_status)

    logger.debug("Running %s for %.1fs", args.sketch or "<demo>", args.duration)
    status = asyncio.run(engine.run_for(source, args.duration))
    return 1 if status == RunState.ERROR else 0


if __name__ == "__main__":
    sys.exit(main())
