"""Device implementations for Lightsync."""

from devices.registry import YEELIGHT_MODELS, ModelRegistry, build_default_registry
from devices.transport import MiioTransport, TransportHandle, connect_miio, miio_connector
from devices.yeelight import YeelightDevice, parse_properties

__all__ = [
    "MiioTransport",
    "ModelRegistry",
    "TransportHandle",
    "YEELIGHT_MODELS",
    "YeelightDevice",
    "build_default_registry",
    "connect_miio",
    "miio_connector",
    "parse_properties",
]
