"""Light state and model descriptor types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ColorMode(Enum):
    """Which colour setting the lamp last applied."""

    COLOR_TEMPERATURE = "color_temperature"
    RGB = "rgb"
    HSV = "hsv"


class ConnectionState(Enum):
    """Transport connection status of a device."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class DeviceState:
    """Snapshot of a lamp's state.

    Replaced wholesale on every successful read; setters derive a new
    snapshot with ``dataclasses.replace``.
    """

    power: bool = False
    brightness: int = 100  # 1-100
    color_temp: int = 4000  # Kelvin
    hue: int = 0  # 0-hue_max
    saturation: int = 0  # 0-100
    color_mode: ColorMode = ColorMode.COLOR_TEMPERATURE

    def to_state_dict(self) -> dict[str, Any]:
        """Return state as dict."""
        return {
            "power": self.power,
            "brightness": self.brightness,
            "color_temp": self.color_temp,
            "hue": self.hue,
            "saturation": self.saturation,
            "color_mode": self.color_mode.value,
        }


@dataclass(frozen=True)
class DeviceCapabilities:
    """Which state dimensions a model supports."""

    power: bool = True
    brightness: bool = False
    color_temperature: bool = False
    color: bool = False


@dataclass(frozen=True)
class ColorTempRange:
    """Supported colour temperature range in Kelvin."""

    min: int
    max: int


# get_prop names, in the order the state parser expects them
TRACKED_PROPERTIES = ("power", "bright", "ct", "rgb", "hue", "sat", "color_mode")


@dataclass(frozen=True)
class CommandSet:
    """miio method names used to talk to a model."""

    get_prop: str = "get_prop"
    set_power: str = "set_power"
    set_bright: str = "set_bright"
    set_ct_abx: str = "set_ct_abx"
    set_hsv: str = "set_hsv"
    properties: tuple[str, ...] = TRACKED_PROPERTIES


@dataclass(frozen=True)
class ModelDescriptor:
    """Everything model-specific about a lamp.

    New models are added as descriptor entries, not as new device classes.
    """

    model: str
    name: str
    capabilities: DeviceCapabilities
    color_temp_range: ColorTempRange
    hue_max: int = 360
    commands: CommandSet = field(default_factory=CommandSet)
