"""sketchsim: run Arduino-style ESP32 sketches without hardware.

Entry point::

    import asyncio
    from sketchsim import Engine

    engine = Engine()
    engine.on_serial(lambda text, category, elapsed: print(text))
    engine.pins.set_analog_value(34, 2048)
    asyncio.run(engine.run_for(source, seconds=3))
"""

from sketchsim.config import BoardProfile, SimulatorConfig, get_board, load_config
from sketchsim.errors import ConfigurationError, SimulationError
from sketchsim.examples import DEFAULT_SKETCH
from sketchsim.model import RunState, SerialCategory
from sketchsim.parse import parse_sketch
from sketchsim.simulate import Engine, PinManager

__all__ = [
    "BoardProfile",
    "ConfigurationError",
    "DEFAULT_SKETCH",
    "Engine",
    "PinManager",
    "RunState",
    "SerialCategory",
    "SimulationError",
    "SimulatorConfig",
    "get_board",
    "load_config",
    "parse_sketch",
]
