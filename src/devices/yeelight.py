"""Yeelight lamp state machine.

One ``YeelightDevice`` per lamp owns the transport handle, the cached
state and the clamped command methods. Model differences come from the
``ModelDescriptor`` it is built with.
"""

import asyncio
import dataclasses
import logging
from typing import Any, Sequence

from devices.transport import Connector, TransportHandle, miio_connector
from models.light import (
    ColorMode,
    ColorTempRange,
    ConnectionState,
    DeviceCapabilities,
    DeviceState,
    ModelDescriptor,
)
from utils.color import clamp
from utils.errors import ConnectivityError, LightsyncError, ProtocolError

logger = logging.getLogger(__name__)

SMOOTH = "smooth"
TRANSITION_MS = 500


def _parse_int(value: Any, fallback: int) -> int:
    try:
        return int(str(value).strip(), 10)
    except (TypeError, ValueError):
        pass
    # Some firmware reports numbers as floats, e.g. "75.0" or 2700.0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return fallback


def _parse_color_mode(value: Any) -> ColorMode:
    # Lamps report the mode either as a string or as a number
    raw = str(value)
    if raw == "1":
        return ColorMode.COLOR_TEMPERATURE
    if raw == "2":
        return ColorMode.RGB
    return ColorMode.HSV


def parse_properties(props: Any, previous: DeviceState) -> DeviceState | None:
    """Parse a get_prop response into a new state.

    Args:
        props: Raw response, expected to be power, bright, ct, rgb, hue,
            sat, color_mode
        previous: State to take a field from when its value is unparseable

    Returns:
        The parsed state, or None if the response is not a sequence of at
        least seven values
    """
    if isinstance(props, (str, bytes)) or not isinstance(props, Sequence):
        return None
    if len(props) < 7:
        return None

    return DeviceState(
        power=props[0] == "on",
        brightness=_parse_int(props[1], previous.brightness),
        color_temp=_parse_int(props[2], previous.color_temp),
        hue=_parse_int(props[4], previous.hue),
        saturation=_parse_int(props[5], previous.saturation),
        color_mode=_parse_color_mode(props[6]),
    )


def _is_ack(result: Any) -> bool:
    if result is None or result == "ok":
        return True
    if isinstance(result, Sequence) and not isinstance(result, (str, bytes)):
        return len(result) > 0 and result[0] == "ok"
    return False


class YeelightDevice:
    """A single miio lamp.

    Reads never raise past ``get_state``; writes propagate every failure so
    the caller learns that a command did not take effect.
    """

    def __init__(
        self,
        descriptor: ModelDescriptor,
        ip: str,
        token: str,
        connector: Connector | None = None,
    ):
        self.descriptor = descriptor
        self.ip = ip
        self._token = token
        self._connector = connector or miio_connector()

        self._handle: TransportHandle | None = None
        self._connection_state = ConnectionState.DISCONNECTED
        self._connect_task: asyncio.Task | None = None
        # Bumped by disconnect() so an in-flight connect cannot land afterwards
        self._generation = 0
        self._call_lock = asyncio.Lock()
        self._cached_state = DeviceState()

    def __repr__(self) -> str:
        return f"YeelightDevice(model={self.model!r}, ip={self.ip!r})"

    @property
    def model(self) -> str:
        return self.descriptor.model

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def capabilities(self) -> DeviceCapabilities:
        return self.descriptor.capabilities

    @property
    def color_temp_range(self) -> ColorTempRange:
        return self.descriptor.color_temp_range

    @property
    def hue_max(self) -> int:
        return self.descriptor.hue_max

    @property
    def cached_state(self) -> DeviceState:
        """Last known state, for display when a refresh fails."""
        return self._cached_state

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection_state

    @property
    def is_connected(self) -> bool:
        return self._connection_state == ConnectionState.CONNECTED

    # Connection lifecycle

    async def connect(self) -> None:
        """Connect to the lamp.

        Concurrent callers share a single in-flight attempt.

        Raises:
            ConnectivityError: If the attempt fails, or ``disconnect`` was
                called before it finished
        """
        if self.is_connected:
            return

        if self._connect_task is None:
            self._connection_state = ConnectionState.CONNECTING
            self._connect_task = asyncio.create_task(self._open(self._generation))

        # Shielded so a cancelled waiter does not abort the others' attempt
        await asyncio.shield(self._connect_task)

    async def _open(self, generation: int) -> None:
        try:
            handle = await self._connector(self.ip, self._token)
        except Exception as e:
            if generation == self._generation:
                self._connect_task = None
                self._handle = None
                self._connection_state = ConnectionState.DISCONNECTED
            logger.debug(f"Failed to connect to {self.name} at {self.ip}: {e}")
            if isinstance(e, ConnectivityError):
                raise
            raise ConnectivityError(self.ip, f"Failed to connect to {self.ip}: {e}") from e

        if generation != self._generation:
            # disconnect() ran while the handshake was in flight
            try:
                handle.destroy()
            except Exception as e:
                logger.warning(f"Error destroying transport for {self.ip}: {e}")
            raise ConnectivityError(self.ip, f"Connection to {self.ip} was closed while connecting")

        self._connect_task = None
        self._handle = handle
        self._connection_state = ConnectionState.CONNECTED
        logger.info(f"Connected to {self.name} at {self.ip}")

    def disconnect(self) -> None:
        """Release the transport handle and abandon any pending connect.

        No-op when already disconnected.
        """
        self._generation += 1
        self._connect_task = None
        if self._handle is None:
            self._connection_state = ConnectionState.DISCONNECTED
            return

        self._release_handle()
        logger.info(f"Disconnected from {self.name}")

    def _release_handle(self) -> None:
        handle, self._handle = self._handle, None
        self._connection_state = ConnectionState.DISCONNECTED
        if handle is not None:
            try:
                handle.destroy()
            except Exception as e:
                logger.warning(f"Error destroying transport for {self.ip}: {e}")

    async def _call(self, method: str, params: Sequence[str | int]) -> Any:
        """Send one request, connecting first if needed.

        Calls are serialized per device. Any failure drops the handle so the
        next call starts from a fresh connection.
        """
        async with self._call_lock:
            if not self.is_connected or self._handle is None:
                await self.connect()

            handle = self._handle
            try:
                return await handle.call(method, list(params))
            except Exception as e:
                if handle is self._handle:
                    self._release_handle()
                logger.debug(f"{method} to {self.ip} failed, marked disconnected: {e}")
                if isinstance(e, LightsyncError):
                    raise
                raise ConnectivityError(self.ip, f"{method} to {self.ip} failed: {e}") from e

    # State

    async def fetch_state(self) -> DeviceState:
        """Read the lamp's state, updating the cache.

        Raises:
            ConnectivityError: If the lamp cannot be reached
            ProtocolError: If the response is malformed
        """
        commands = self.descriptor.commands
        props = await self._call(commands.get_prop, commands.properties)

        state = parse_properties(props, self._cached_state)
        if state is None:
            raise ProtocolError(self.ip, f"Invalid get_prop response from {self.ip}: {props!r}")

        self._cached_state = state
        return state

    async def get_state(self) -> DeviceState:
        """Read the lamp's state, falling back to the cache on any failure."""
        try:
            return await self.fetch_state()
        except ProtocolError as e:
            logger.warning(f"{e}, using cached state")
        except LightsyncError as e:
            logger.error(f"Failed to get state of {self.name} at {self.ip}: {e}")
        return self._cached_state

    async def _send(self, method: str, params: Sequence[str | int]) -> None:
        result = await self._call(method, params)
        if not _is_ack(result):
            raise ProtocolError(self.ip, f"{method} not acknowledged by {self.ip}: {result!r}")

    def _update(self, **changes: Any) -> None:
        self._cached_state = dataclasses.replace(self._cached_state, **changes)

    # Commands

    async def set_power(self, on: bool) -> None:
        """Turn the lamp on or off."""
        await self._send(
            self.descriptor.commands.set_power,
            ["on" if on else "off", SMOOTH, TRANSITION_MS],
        )
        self._update(power=on)

    async def set_brightness(self, level: float) -> None:
        """Set brightness, clamped to 1-100."""
        clamped = clamp(level, 1, 100)
        await self._send(self.descriptor.commands.set_bright, [clamped, SMOOTH, TRANSITION_MS])
        self._update(brightness=clamped)

    async def set_color_temperature(self, kelvin: float) -> None:
        """Set colour temperature, clamped to the model's range."""
        clamped = clamp(kelvin, self.color_temp_range.min, self.color_temp_range.max)
        await self._send(self.descriptor.commands.set_ct_abx, [clamped, SMOOTH, TRANSITION_MS])
        self._update(color_temp=clamped, color_mode=ColorMode.COLOR_TEMPERATURE)

    async def set_hue(self, hue: float) -> None:
        """Set hue, clamped to 0 and the model's hue ceiling."""
        clamped = clamp(hue, 0, self.hue_max)
        await self._send(
            self.descriptor.commands.set_hsv,
            [clamped, self._cached_state.saturation, SMOOTH, TRANSITION_MS],
        )
        self._update(hue=clamped, color_mode=ColorMode.HSV)

    async def set_saturation(self, saturation: float) -> None:
        """Set saturation, clamped to 0-100."""
        clamped = clamp(saturation, 0, 100)
        await self._send(
            self.descriptor.commands.set_hsv,
            [self._cached_state.hue, clamped, SMOOTH, TRANSITION_MS],
        )
        self._update(saturation=clamped, color_mode=ColorMode.HSV)
