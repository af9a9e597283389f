import argparse
import asyncio
from pathlib import Path

from sketchsim import Engine, SimulatorConfig


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the potentiometer dimmer sketch and sweep the input.")
    parser.add_argument(
        "--sketch",
        default=str(Path(__file__).with_name("pot_dimmer.ino")),
        help="Path to the sketch source",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=5,
        help="Number of potentiometer positions to try",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=4.0,
        help="Simulation speed multiplier",
    )
    return parser.parse_args()


async def sweep(engine: Engine, source: str, steps: int) -> None:
    task = asyncio.ensure_future(engine.start(source))
    for i in range(steps):
        engine.pins.set_analog_value(34, 4095 * i // max(steps - 1, 1))
        await asyncio.sleep(0.5 / engine.speed)
    engine.stop()
    await task


def main() -> None:
    args = parse_args()
    engine = Engine(SimulatorConfig(speed=args.speed))
    engine.on_serial(lambda text, category, elapsed: print(f"[{elapsed:6.3f}] {text}", end="" if text.endswith("\n") else "\n"))
    engine.pins.subscribe(lambda pin, state: print("  pin", pin, "pwm", state.pwm_value) if pin == 2 else None)
    asyncio.run(sweep(engine, Path(args.sketch).read_text(encoding="utf-8"), args.steps))


if __name__ == "__main__":
    main()
