"""Utility modules for Lightsync."""

from utils.backoff import backoff_delay
from utils.color import clamp, clamp_mired, kelvin_to_mired, mired_to_kelvin
from utils.errors import (
    ConfigurationError,
    ConnectivityError,
    LightsyncError,
    ProtocolError,
    UnsupportedCharacteristicError,
    UnsupportedModelError,
)

__all__ = [
    "ConfigurationError",
    "ConnectivityError",
    "LightsyncError",
    "ProtocolError",
    "UnsupportedCharacteristicError",
    "UnsupportedModelError",
    "backoff_delay",
    "clamp",
    "clamp_mired",
    "kelvin_to_mired",
    "mired_to_kelvin",
]
