"""Supported lamp models and the registry that looks them up."""

from models.light import ColorTempRange, DeviceCapabilities, ModelDescriptor
from utils.errors import UnsupportedModelError

FULL_COLOR = DeviceCapabilities(
    power=True,
    brightness=True,
    color_temperature=True,
    color=True,
)

DIMMABLE = DeviceCapabilities(power=True, brightness=True)

# Hue ceilings follow what each lamp accepts for set_hsv
YEELIGHT_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        model="yeelink.light.color3",
        name="Yeelight Color Bulb 3",
        capabilities=FULL_COLOR,
        color_temp_range=ColorTempRange(min=1700, max=6500),
        hue_max=360,
    ),
    ModelDescriptor(
        model="yeelink.light.bslamp2",
        name="Yeelight Bedside Lamp 2",
        capabilities=FULL_COLOR,
        color_temp_range=ColorTempRange(min=1700, max=6500),
        hue_max=359,
    ),
    # Single-temperature white bulb, fixed at 2700 K as python-miio's
    # Yeelight model table lists it. hue_max only bounds the clamp.
    ModelDescriptor(
        model="yeelink.light.mono1",
        name="Yeelight White Bulb",
        capabilities=DIMMABLE,
        color_temp_range=ColorTempRange(min=2700, max=2700),
        hue_max=359,
    ),
)


class ModelRegistry:
    """Maps model identifiers to their descriptors."""

    def __init__(self, descriptors: tuple[ModelDescriptor, ...] | list[ModelDescriptor]):
        self._descriptors: dict[str, ModelDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.model in self._descriptors:
                raise ValueError(f"Duplicate model descriptor: {descriptor.model}")
            self._descriptors[descriptor.model] = descriptor

    def get(self, model: str) -> ModelDescriptor:
        """Look up a model.

        Raises:
            UnsupportedModelError: If the model is not registered
        """
        descriptor = self._descriptors.get(model)
        if descriptor is None:
            raise UnsupportedModelError(model, self.supported_models())
        return descriptor

    def supported_models(self) -> list[str]:
        """Get the registered model identifiers."""
        return list(self._descriptors)

    def __contains__(self, model: object) -> bool:
        return model in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


def build_default_registry() -> ModelRegistry:
    """Registry of every model Lightsync ships with."""
    return ModelRegistry(YEELIGHT_MODELS)
