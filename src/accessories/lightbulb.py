"""Lightbulb accessory: the bridge-facing side of a lamp.

Maps bridge characteristics onto a ``YeelightDevice`` and keeps the last
value pushed for each characteristic. Commands go straight to the device;
polling runs through a ``PollingSupervisor``.
"""

import logging
from typing import Any, Callable

from devices.yeelight import YeelightDevice
from polling.supervisor import PollingSupervisor, Sleeper
from utils.color import clamp_mired, kelvin_to_mired, mired_to_kelvin
from utils.errors import UnsupportedCharacteristicError

logger = logging.getLogger(__name__)

MANUFACTURER = "Xiaomi"

Listener = Callable[[str, str, Any], None]


class LightbulbAccessory:
    """Bridge accessory wrapping a single lamp."""

    def __init__(
        self,
        accessory_id: str,
        display_name: str,
        device: YeelightDevice,
        polling_interval: float | None = None,
        listener: Listener | None = None,
        sleep: Sleeper | None = None,
    ):
        self.id = accessory_id
        self.display_name = display_name
        self.device = device
        self.characteristics: dict[str, Any] = {}

        self._listener = listener
        self.supervisor = PollingSupervisor(
            device,
            self.update_characteristic,
            interval=polling_interval,
            sleep=sleep,
        )

    @property
    def information(self) -> dict[str, str]:
        """Accessory information shown by the bridge."""
        return {
            "manufacturer": MANUFACTURER,
            "model": self.device.model,
            "serial_number": self.device.ip,
            "name": self.display_name,
        }

    @property
    def mired_range(self) -> tuple[int, int]:
        """(min, max) mired; the warmest Kelvin gives the largest mired."""
        ct_range = self.device.color_temp_range
        return kelvin_to_mired(ct_range.max), kelvin_to_mired(ct_range.min)

    def supported_characteristics(self) -> list[str]:
        """Characteristics exposed for this lamp's capabilities."""
        capabilities = self.device.capabilities
        supported = ["on"]
        if capabilities.brightness:
            supported.append("brightness")
        if capabilities.color_temperature:
            supported.append("color_temperature")
        if capabilities.color:
            supported.extend(["hue", "saturation"])
        return supported

    def _require(self, characteristic: str) -> None:
        if characteristic not in self.supported_characteristics():
            raise UnsupportedCharacteristicError(self.display_name, characteristic)

    def update_characteristic(self, characteristic: str, value: Any) -> None:
        """Store a pushed value and forward it to the listener."""
        self.characteristics[characteristic] = value
        if self._listener is not None:
            self._listener(self.id, characteristic, value)

    # Lifecycle

    def start(self) -> None:
        """Start polling the lamp."""
        self.supervisor.start_polling()

    def shutdown(self) -> None:
        """Stop polling and release the lamp's connection."""
        self.supervisor.stop_polling()
        self.device.disconnect()

    # Handlers

    async def get_on(self) -> bool:
        state = await self.device.get_state()
        return state.power

    async def set_on(self, value: bool) -> None:
        await self.device.set_power(bool(value))
        self.supervisor.record_command_success()

    async def get_brightness(self) -> int:
        state = await self.device.get_state()
        return state.brightness

    async def set_brightness(self, value: float) -> None:
        self._require("brightness")
        await self.device.set_brightness(value)
        self.supervisor.record_command_success()

    async def get_color_temperature(self) -> int:
        """Current colour temperature in mired."""
        state = await self.device.get_state()
        return clamp_mired(kelvin_to_mired(state.color_temp), *self.mired_range)

    async def set_color_temperature(self, mired: float) -> None:
        self._require("color_temperature")
        await self.device.set_color_temperature(mired_to_kelvin(mired))
        self.supervisor.record_command_success()

    async def get_hue(self) -> int:
        state = await self.device.get_state()
        return state.hue

    async def set_hue(self, value: float) -> None:
        self._require("hue")
        await self.device.set_hue(value)
        self.supervisor.record_command_success()

    async def get_saturation(self) -> int:
        state = await self.device.get_state()
        return state.saturation

    async def set_saturation(self, value: float) -> None:
        self._require("saturation")
        await self.device.set_saturation(value)
        self.supervisor.record_command_success()
