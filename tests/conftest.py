"""Pytest configuration and fixtures for Lightsync tests."""

import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devices.registry import ModelRegistry, build_default_registry
from devices.yeelight import YeelightDevice
from models.light import ModelDescriptor

TEST_IP = "192.168.1.50"
TEST_TOKEN = "0123456789abcdef0123456789abcdef"

GOOD_PROPS = ["on", "75", "4000", "16711680", "180", "50", "1"]


async def settle(rounds: int = 50) -> None:
    """Let every ready task run until the loop is quiet."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeTransport:
    """In-memory transport handle.

    ``responses`` maps a method name to a result, an exception to raise, or
    a callable taking the params.
    """

    def __init__(self, responses: dict[str, Any]):
        self.responses = responses
        self.calls: list[tuple[str, list[Any]]] = []
        self.destroyed = False

    async def call(self, method: str, params: list[Any]) -> Any:
        self.calls.append((method, list(params)))
        result = self.responses.get(method, ["ok"])
        if isinstance(result, BaseException):
            raise result
        if callable(result):
            return result(params)
        return result

    def destroy(self) -> None:
        self.destroyed = True


class FakeConnector:
    """Connector that hands out FakeTransports and counts attempts."""

    def __init__(self) -> None:
        self.attempts = 0
        self.transports: list[FakeTransport] = []
        self.responses: dict[str, Any] = {"get_prop": list(GOOD_PROPS)}
        self.fail_with: BaseException | None = None
        self.gate: asyncio.Event | None = None

    async def __call__(self, ip: str, token: str) -> FakeTransport:
        self.attempts += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        transport = FakeTransport(self.responses)
        self.transports.append(transport)
        return transport

    @property
    def transport(self) -> FakeTransport:
        return self.transports[-1]

    def sent(self, method: str) -> list[list[Any]]:
        """Params of every call to ``method`` across all transports."""
        return [
            params
            for transport in self.transports
            for called, params in transport.calls
            if called == method
        ]


class VirtualClock:
    """Drop-in for asyncio.sleep that only advances when told to."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []
        self._waiters: list[tuple[float, asyncio.Future]] = []

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        future = asyncio.get_running_loop().create_future()
        self._waiters.append((self.now + delay, future))
        await future

    @property
    def pending(self) -> int:
        return sum(1 for _, future in self._waiters if not future.done())

    async def advance(self, seconds: float) -> None:
        """Move time forward, waking sleepers in deadline order."""
        target = self.now + seconds
        while True:
            self._waiters = [(d, f) for d, f in self._waiters if not f.done()]
            due = [w for w in self._waiters if w[0] <= target]
            if not due:
                break
            deadline, future = min(due, key=lambda w: w[0])
            self.now = deadline
            future.set_result(None)
            await settle()
        self.now = target


@pytest.fixture
def registry() -> ModelRegistry:
    return build_default_registry()


@pytest.fixture
def color3(registry: ModelRegistry) -> ModelDescriptor:
    return registry.get("yeelink.light.color3")


@pytest.fixture
def bslamp2(registry: ModelRegistry) -> ModelDescriptor:
    return registry.get("yeelink.light.bslamp2")


@pytest.fixture
def mono1(registry: ModelRegistry) -> ModelDescriptor:
    return registry.get("yeelink.light.mono1")


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def device(color3: ModelDescriptor, connector: FakeConnector) -> YeelightDevice:
    return YeelightDevice(color3, TEST_IP, TEST_TOKEN, connector=connector)
