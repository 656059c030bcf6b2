"""State polling for Lightsync."""

from polling.supervisor import (
    PollHealth,
    PollingSupervisor,
    SupervisorState,
    normalize_interval,
)

__all__ = [
    "PollHealth",
    "PollingSupervisor",
    "SupervisorState",
    "normalize_interval",
]
