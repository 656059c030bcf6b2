"""Device manager for Lightsync."""

import logging
import uuid
from typing import Any

from pydantic import ValidationError

from accessories.lightbulb import LightbulbAccessory, Listener
from config import DeviceConfig, LightsyncConfig
from devices.registry import ModelRegistry
from devices.transport import Connector, miio_connector
from devices.yeelight import YeelightDevice
from polling.supervisor import Sleeper
from utils.errors import ConfigurationError, LightsyncError

logger = logging.getLogger(__name__)

ACCESSORY_NAMESPACE = uuid.UUID("6f1f3c52-8d4b-4a3e-9c1e-2b7a5d0e9f41")


def accessory_id_for(ip: str, model: str) -> str:
    """Stable accessory id for a lamp, derived from its address and model."""
    return str(uuid.uuid5(ACCESSORY_NAMESPACE, f"{ip}-{model}"))


class DeviceManager:
    """Builds lamps and accessories from configuration and owns them."""

    def __init__(
        self,
        config: LightsyncConfig,
        registry: ModelRegistry,
        connector: Connector | None = None,
        listener: Listener | None = None,
        sleep: Sleeper | None = None,
    ):
        self.config = config
        self.registry = registry
        self._connector = connector or miio_connector(config.transport_timeout)
        self._listener = listener
        self._sleep = sleep
        self._accessories: dict[str, LightbulbAccessory] = {}

    async def initialize(self) -> None:
        """Create every configured lamp."""
        if not self.config.devices:
            logger.warning("No devices configured. Add devices to your config.yaml.")
            return

        await self.sync_devices(self.config.devices)

    async def sync_devices(self, raw_devices: list[dict[str, Any]]) -> None:
        """Bring the set of accessories in line with a device list.

        Accessories that are gone are torn down before new entries are
        created, so a lamp that changed model keeps its ip. Invalid entries
        are logged and skipped.
        """
        wanted: dict[str, DeviceConfig] = {}
        for raw in raw_devices:
            try:
                device_config = self.validate_device_config(raw)
            except ConfigurationError as e:
                logger.error(f"Invalid device config, skipping: {e}")
                continue
            wanted.setdefault(accessory_id_for(device_config.ip, device_config.model), device_config)

        stale = [aid for aid in self._accessories if aid not in wanted]
        if stale:
            logger.info(
                f"Removing stale accessories: "
                f"{', '.join(self._accessories[aid].display_name for aid in stale)}"
            )
            for accessory_id in stale:
                self.remove_device(accessory_id)

        for accessory_id, device_config in wanted.items():
            if accessory_id in self._accessories:
                continue
            try:
                await self._create_accessory(accessory_id, device_config)
            except ConfigurationError as e:
                logger.error(f"Failed to initialize device {device_config.name}: {e}")

    def validate_device_config(self, raw: dict[str, Any]) -> DeviceConfig:
        """Validate one raw device entry.

        Raises:
            ConfigurationError: If fields are missing or malformed
        """
        try:
            return DeviceConfig.model_validate(raw)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ConfigurationError(f"{raw.get('name', '<unnamed>')}: invalid {fields}") from e

    async def _create_accessory(
        self, accessory_id: str, device_config: DeviceConfig
    ) -> LightbulbAccessory:
        descriptor = self.registry.get(device_config.model)

        for existing in self._accessories.values():
            if existing.device.ip == device_config.ip:
                raise ConfigurationError(
                    f"{device_config.ip} is already used by {existing.display_name}"
                )

        device = YeelightDevice(
            descriptor,
            device_config.ip,
            device_config.token,
            connector=self._connector,
        )

        try:
            await device.connect()
        except LightsyncError as e:
            # Polling reconnects lazily, so the lamp still joins
            logger.warning(f"{device_config.name} is not reachable yet: {e}")

        accessory = LightbulbAccessory(
            accessory_id,
            device_config.name,
            device,
            polling_interval=self.config.polling_interval,
            listener=self._listener,
            sleep=self._sleep,
        )
        self._accessories[accessory_id] = accessory
        accessory.start()
        logger.info(f"Added accessory: {device_config.name} ({descriptor.name})")
        return accessory

    def remove_device(self, accessory_id: str) -> bool:
        """Tear down an accessory. Returns False if it does not exist."""
        accessory = self._accessories.pop(accessory_id, None)
        if accessory is None:
            return False
        accessory.shutdown()
        logger.info(f"Removed accessory: {accessory.display_name}")
        return True

    async def shutdown(self) -> None:
        """Stop polling and disconnect every lamp."""
        logger.info("Shutting down, disconnecting devices...")
        accessories = list(self._accessories.values())
        self._accessories.clear()
        for accessory in accessories:
            accessory.shutdown()
        for accessory in accessories:
            await accessory.supervisor.wait_stopped()

    def get_accessory(self, accessory_id: str) -> LightbulbAccessory | None:
        """Get an accessory by ID."""
        return self._accessories.get(accessory_id)

    def get_accessories(self) -> list[LightbulbAccessory]:
        """Get all accessories."""
        return list(self._accessories.values())

    def accessory_to_response(self, accessory: LightbulbAccessory) -> dict[str, Any]:
        """Describe an accessory and its poll health."""
        health = accessory.supervisor.health
        response: dict[str, Any] = {
            "id": accessory.id,
            "information": accessory.information,
            "connection": accessory.device.connection_state.value,
            "state": accessory.device.cached_state.to_state_dict(),
            "characteristics": dict(accessory.characteristics),
            "health": {
                "consecutive_failures": health.consecutive_failures,
                "backoff": health.backoff,
                "is_offline": health.is_offline,
            },
        }
        if health.last_successful_contact:
            response["health"]["last_success"] = health.last_successful_contact.isoformat()
        return response
