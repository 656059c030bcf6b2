"""Colour temperature conversions shared by devices and accessories."""

# Fallbacks for non-positive inputs
SAFE_MAX_MIRED = 500
SAFE_MIN_KELVIN = 2000


def clamp(value: float, minimum: int, maximum: int) -> int:
    """Clamp a value into [minimum, maximum] and round it to an integer."""
    return int(round(max(minimum, min(maximum, value))))


def kelvin_to_mired(kelvin: float) -> int:
    """Convert a colour temperature in Kelvin to mired.

    Non-positive input returns the safe maximum mired value.
    """
    if kelvin <= 0:
        return SAFE_MAX_MIRED
    return round(1_000_000 / kelvin)


def mired_to_kelvin(mired: float) -> int:
    """Convert mired to Kelvin. Non-positive input returns 2000K."""
    if mired <= 0:
        return SAFE_MIN_KELVIN
    return round(1_000_000 / mired)


def clamp_mired(mired: float, minimum: int, maximum: int) -> int:
    """Clamp a mired value into the characteristic range."""
    return clamp(mired, minimum, maximum)
