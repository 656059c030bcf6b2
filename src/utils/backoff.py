"""Backoff calculation for devices that stop answering."""

# Consecutive failures before backoff kicks in
BACKOFF_THRESHOLD = 5
BACKOFF_INITIAL = 30.0
BACKOFF_MAX = 300.0


def backoff_delay(
    consecutive_failures: int,
    threshold: int = BACKOFF_THRESHOLD,
    initial_delay: float = BACKOFF_INITIAL,
    max_delay: float = BACKOFF_MAX,
    exponential_base: float = 2.0,
) -> float:
    """Extra delay to add before the next attempt.

    Args:
        consecutive_failures: Failures since the last success
        threshold: Failure count at which backoff starts
        initial_delay: Delay at the threshold (seconds)
        max_delay: Upper bound on the delay (seconds)
        exponential_base: Growth factor per additional failure

    Returns:
        0.0 below the threshold, otherwise the capped exponential delay
    """
    if consecutive_failures < threshold:
        return 0.0
    exponent = consecutive_failures - threshold
    return min(max_delay, initial_delay * exponential_base**exponent)
