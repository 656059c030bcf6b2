"""Tests for the lightbulb accessory."""

import pytest

from accessories.lightbulb import LightbulbAccessory
from conftest import TEST_IP, TEST_TOKEN
from devices.yeelight import YeelightDevice
from utils.errors import ConnectivityError, UnsupportedCharacteristicError


@pytest.fixture
def accessory(device, clock) -> LightbulbAccessory:
    return LightbulbAccessory("acc-1", "Bedroom", device, sleep=clock.sleep)


@pytest.fixture
def white_accessory(mono1, connector, clock) -> LightbulbAccessory:
    device = YeelightDevice(mono1, "192.168.1.51", TEST_TOKEN, connector=connector)
    return LightbulbAccessory("acc-2", "Hallway", device, sleep=clock.sleep)


class TestCharacteristics:
    """Tests for capability gating and accessory information."""

    def test_color_lamp_exposes_everything(self, accessory):
        assert accessory.supported_characteristics() == [
            "on",
            "brightness",
            "color_temperature",
            "hue",
            "saturation",
        ]

    def test_white_lamp_exposes_on_and_brightness(self, white_accessory):
        assert white_accessory.supported_characteristics() == ["on", "brightness"]

    def test_mired_range(self, accessory):
        assert accessory.mired_range == (154, 588)

    def test_information(self, accessory):
        assert accessory.information == {
            "manufacturer": "Xiaomi",
            "model": "yeelink.light.color3",
            "serial_number": TEST_IP,
            "name": "Bedroom",
        }

    def test_update_characteristic_notifies_listener(self, device):
        seen = []
        accessory = LightbulbAccessory(
            "acc-1", "Bedroom", device, listener=lambda *event: seen.append(event)
        )

        accessory.update_characteristic("on", True)

        assert accessory.characteristics == {"on": True}
        assert seen == [("acc-1", "on", True)]


class TestHandlers:
    """Tests for characteristic get and set handlers."""

    @pytest.mark.asyncio
    async def test_getters_read_device(self, accessory):
        assert await accessory.get_on() is True
        assert await accessory.get_brightness() == 75
        assert await accessory.get_color_temperature() == 250
        assert await accessory.get_hue() == 180
        assert await accessory.get_saturation() == 50

    @pytest.mark.asyncio
    async def test_getters_fall_back_when_unreachable(self, accessory, connector):
        connector.fail_with = ConnectivityError(TEST_IP)

        assert await accessory.get_on() is False
        assert await accessory.get_brightness() == 100

    @pytest.mark.asyncio
    async def test_set_color_temperature_converts_mired(self, accessory, connector):
        await accessory.set_color_temperature(370)

        assert connector.sent("set_ct_abx") == [[2703, "smooth", 500]]

    @pytest.mark.asyncio
    async def test_setters_forward_to_device(self, accessory, connector):
        await accessory.set_on(True)
        await accessory.set_brightness(40)
        await accessory.set_hue(200)
        await accessory.set_saturation(30)

        assert connector.sent("set_power") == [["on", "smooth", 500]]
        assert connector.sent("set_bright") == [[40, "smooth", 500]]
        assert connector.sent("set_hsv") == [[200, 0, "smooth", 500], [200, 30, "smooth", 500]]

    @pytest.mark.asyncio
    async def test_successful_command_resets_backoff(self, accessory, connector):
        connector.fail_with = ConnectivityError(TEST_IP)
        for _ in range(6):
            await accessory.supervisor.poll_once()
        assert accessory.supervisor.backoff == 60.0

        connector.fail_with = None
        await accessory.set_on(True)

        assert accessory.supervisor.consecutive_failures == 0
        assert accessory.supervisor.backoff == 0.0

    @pytest.mark.asyncio
    async def test_failed_command_propagates_and_keeps_backoff(self, accessory, connector):
        connector.fail_with = ConnectivityError(TEST_IP)
        for _ in range(5):
            await accessory.supervisor.poll_once()

        with pytest.raises(ConnectivityError):
            await accessory.set_on(True)

        assert accessory.supervisor.backoff == 30.0

    @pytest.mark.asyncio
    async def test_unsupported_characteristic_rejected(self, white_accessory, connector):
        with pytest.raises(UnsupportedCharacteristicError):
            await white_accessory.set_hue(120)
        with pytest.raises(UnsupportedCharacteristicError):
            await white_accessory.set_color_temperature(300)

        assert connector.sent("set_hsv") == []
        assert connector.sent("set_ct_abx") == []


class TestLifecycle:
    """Tests for starting and shutting down an accessory."""

    @pytest.mark.asyncio
    async def test_shutdown_stops_polling_and_disconnects(self, accessory, device, clock):
        accessory.start()
        await device.connect()

        accessory.shutdown()
        await accessory.supervisor.wait_stopped()

        assert not device.is_connected
        assert clock.pending == 0
