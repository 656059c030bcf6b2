"""Periodic state polling with backoff for unreachable lamps.

Each accessory runs one supervisor. A supervisor is a single asyncio task
that sleeps, refreshes, pushes the new state out, and backs off once a lamp
has failed several polls in a row.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable

from devices.yeelight import YeelightDevice
from utils.backoff import BACKOFF_THRESHOLD, backoff_delay
from utils.color import clamp_mired, kelvin_to_mired

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 15.0
MIN_INTERVAL = 5.0
MAX_INTERVAL = 60.0

Publisher = Callable[[str, Any], None]
Sleeper = Callable[[float], Awaitable[Any]]


def normalize_interval(interval: float | None) -> float:
    """Clamp a configured polling interval (seconds) to 5-60, default 15."""
    if interval is None:
        return DEFAULT_INTERVAL
    return float(max(MIN_INTERVAL, min(MAX_INTERVAL, interval)))


class SupervisorState(Enum):
    """Lifecycle of a polling supervisor."""

    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class PollHealth:
    """Poll outcome counters for one lamp."""

    consecutive_failures: int = 0
    total_failures: int = 0
    total_successes: int = 0
    backoff: float = 0.0  # seconds added to the base interval
    last_successful_contact: datetime | None = None
    last_failed_contact: datetime | None = None

    def record_success(self) -> None:
        """Record a successful contact with the lamp."""
        self.last_successful_contact = datetime.now()
        self.total_successes += 1
        self.reset()

    def record_failure(self) -> None:
        """Record a failed poll and recompute the backoff."""
        self.last_failed_contact = datetime.now()
        self.consecutive_failures += 1
        self.total_failures += 1
        self.backoff = backoff_delay(self.consecutive_failures)

    def reset(self) -> None:
        """Forget the current failure streak."""
        self.consecutive_failures = 0
        self.backoff = 0.0

    @property
    def is_offline(self) -> bool:
        return self.consecutive_failures >= BACKOFF_THRESHOLD


class PollingSupervisor:
    """Polls one lamp and publishes its state."""

    def __init__(
        self,
        device: YeelightDevice,
        publish: Publisher,
        interval: float | None = None,
        sleep: Sleeper | None = None,
    ):
        """Initialize supervisor.

        Args:
            device: Lamp to poll
            publish: Receives (characteristic, value) update events
            interval: Base polling interval in seconds, clamped to 5-60
            sleep: Coroutine function used to wait, injectable for tests
        """
        self.device = device
        self.interval = normalize_interval(interval)
        self.health = PollHealth()

        self._publish = publish
        self._sleep = sleep or asyncio.sleep
        self._state = SupervisorState.IDLE
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self.health.consecutive_failures

    @property
    def backoff(self) -> float:
        return self.health.backoff

    @property
    def next_delay(self) -> float:
        """Seconds until the next poll. Backoff only ever adds to the interval."""
        return self.interval + self.health.backoff

    def start_polling(self) -> None:
        """Start the polling task. No-op if already started or stopped."""
        if self._state != SupervisorState.IDLE:
            return

        self._state = SupervisorState.SCHEDULED
        self._task = asyncio.create_task(self._poll_loop())
        logger.debug(f"Polling {self.device.name} at {self.device.ip} every {self.interval:.0f}s")

    def stop_polling(self) -> None:
        """Stop polling. Idempotent.

        A refresh already in flight is allowed to finish; only the next poll
        is suppressed.
        """
        if self._state == SupervisorState.STOPPED:
            return

        scheduled = self._state == SupervisorState.SCHEDULED
        self._state = SupervisorState.STOPPED
        if scheduled and self._task is not None:
            self._task.cancel()
        logger.debug(f"Stopped polling {self.device.name} at {self.device.ip}")

    async def wait_stopped(self) -> None:
        """Wait for the polling task to exit after ``stop_polling``."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    def record_command_success(self) -> None:
        """A lamp that just acknowledged a command is reachable."""
        if self.health.consecutive_failures:
            logger.info(f"{self.device.name} at {self.device.ip} answered a command, resetting backoff")
        self.health.reset()

    async def refresh(self) -> None:
        """Read the lamp and publish every capability-relevant field.

        Raises:
            LightsyncError: If the lamp could not be read
        """
        state = await self.device.fetch_state()
        capabilities = self.device.capabilities

        self._publish("on", state.power)

        if capabilities.brightness:
            self._publish("brightness", state.brightness)

        if capabilities.color_temperature:
            ct_range = self.device.color_temp_range
            self._publish(
                "color_temperature",
                clamp_mired(
                    kelvin_to_mired(state.color_temp),
                    kelvin_to_mired(ct_range.max),
                    kelvin_to_mired(ct_range.min),
                ),
            )

        if capabilities.color:
            self._publish("hue", state.hue)
            self._publish("saturation", state.saturation)

    async def poll_once(self) -> None:
        """Run one refresh and update the failure and backoff counters."""
        try:
            await self.refresh()
        except Exception as e:
            self.health.record_failure()
            failures = self.health.consecutive_failures
            if self.health.is_offline:
                logger.warning(
                    f"{self.device.name} at {self.device.ip} appears offline "
                    f"({failures} consecutive failures), next retry in {self.next_delay:.0f}s"
                )
            else:
                logger.debug(f"Polling {self.device.name} failed ({failures} in a row): {e}")
            return

        if self.health.is_offline:
            logger.info(f"{self.device.name} at {self.device.ip} is back online")
        self.health.record_success()

    async def _poll_loop(self) -> None:
        while self._state != SupervisorState.STOPPED:
            self._state = SupervisorState.SCHEDULED
            try:
                await self._sleep(self.next_delay)
            except asyncio.CancelledError:
                if self._state == SupervisorState.STOPPED:
                    break
                raise

            if self._state == SupervisorState.STOPPED:
                break

            self._state = SupervisorState.RUNNING
            await self.poll_once()
