"""Data models for Lightsync."""

from models.light import (
    TRACKED_PROPERTIES,
    ColorMode,
    ColorTempRange,
    CommandSet,
    ConnectionState,
    DeviceCapabilities,
    DeviceState,
    ModelDescriptor,
)

__all__ = [
    "TRACKED_PROPERTIES",
    "ColorMode",
    "ColorTempRange",
    "CommandSet",
    "ConnectionState",
    "DeviceCapabilities",
    "DeviceState",
    "ModelDescriptor",
]
