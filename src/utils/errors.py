"""Error types for Lightsync.

Connectivity problems are recoverable and feed the polling backoff,
protocol problems are soft for reads and hard for writes, and configuration
problems only ever disable the single device they belong to.
"""


class LightsyncError(Exception):
    """Base class for all Lightsync errors."""


class ConnectivityError(LightsyncError):
    """Raised when a device cannot be reached or stops answering."""

    def __init__(self, device: str, message: str | None = None):
        self.device = device
        super().__init__(message or f"Device {device} is unreachable")


class ProtocolError(LightsyncError):
    """Raised when a device answers with something we cannot use."""

    def __init__(self, device: str, message: str | None = None):
        self.device = device
        super().__init__(message or f"Device {device} sent a malformed response")


class ConfigurationError(LightsyncError):
    """Raised when a configured device cannot be set up."""


class UnsupportedModelError(ConfigurationError):
    """Raised when a model identifier has no registered descriptor."""

    def __init__(self, model: str, supported: list[str]):
        self.model = model
        self.supported = supported
        super().__init__(
            f"Unsupported device model: {model}. "
            f"Supported models: {', '.join(supported)}"
        )


class UnsupportedCharacteristicError(LightsyncError):
    """Raised when a characteristic is not exposed by an accessory."""

    def __init__(self, accessory: str, characteristic: str):
        self.accessory = accessory
        self.characteristic = characteristic
        super().__init__(f"{accessory} does not support {characteristic}")
