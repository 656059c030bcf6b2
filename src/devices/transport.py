"""miio transport handles.

A transport handle is an exclusive, non-pipelined channel to one lamp. The
device state machine is its only owner.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol, Sequence

from utils.errors import ConnectivityError, ProtocolError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class TransportHandle(Protocol):
    """Connection to a single lamp."""

    async def call(self, method: str, params: Sequence[str | int]) -> Any:
        """Send one request and return the result. Raises on failure."""
        ...

    def destroy(self) -> None:
        """Release resources. Must not raise."""
        ...


Connector = Callable[[str, str], Awaitable[TransportHandle]]


class MiioTransport:
    """Transport handle backed by python-miio's blocking client."""

    def __init__(self, client: Any, ip: str):
        self._client = client
        self._ip = ip

    async def _run_sync(self, func: Any, *args: Any) -> Any:
        """Run a synchronous miio function in a thread."""
        return await asyncio.to_thread(func, *args)

    async def call(self, method: str, params: Sequence[str | int]) -> Any:
        from miio import DeviceError, DeviceException

        if self._client is None:
            raise ConnectivityError(self._ip, f"Transport to {self._ip} was destroyed")

        try:
            return await self._run_sync(self._client.send, method, list(params))
        except DeviceError as e:
            raise ProtocolError(self._ip, f"{method} rejected by {self._ip}: {e}") from e
        except (DeviceException, OSError) as e:
            raise ConnectivityError(self._ip, f"{method} to {self._ip} failed: {e}") from e

    def destroy(self) -> None:
        # miio opens a socket per request, so dropping the client is enough
        self._client = None


async def connect_miio(ip: str, token: str, timeout: float = DEFAULT_TIMEOUT) -> MiioTransport:
    """Open a miio session and perform the handshake.

    Raises:
        ConnectivityError: If the lamp does not answer the handshake
    """
    try:
        import miio
    except ImportError:
        logger.error("python-miio package not installed. Install with: pip install python-miio")
        raise

    client = miio.Device(ip, token, timeout=timeout)
    try:
        await asyncio.to_thread(client.send_handshake)
    except (miio.DeviceException, OSError) as e:
        raise ConnectivityError(ip, f"Handshake with {ip} failed: {e}") from e

    return MiioTransport(client, ip)


def miio_connector(timeout: float = DEFAULT_TIMEOUT) -> Connector:
    """Build a connector that opens miio transports with the given timeout."""

    async def connect(ip: str, token: str) -> TransportHandle:
        return await connect_miio(ip, token, timeout=timeout)

    return connect
