"""
Tower Idle - Number Handling
============================
Integer flooring with overflow saturation, and the compact number format
used everywhere a magnitude is shown to the player.

Late-game values pass 1e300, so every float that becomes a stored integer
goes through floor_int(), which saturates instead of raising.
"""

import math
import sys
from typing import Union

Number = Union[int, float]

# Largest magnitude we keep as a stored integer
MAX_MAGNITUDE = int(sys.float_info.max)

# k = 1e3, m = 1e6, g = 1e9, t = 1e12; two-letter suffixes start at 1e15
NAMED_SUFFIXES = ["", "k", "m", "g", "t"]


def floor_int(value: Number) -> int:
    """
    Floor a magnitude to an int.

    +inf saturates to the largest finite float. NaN and -inf become 0.
    """
    if isinstance(value, int):
        return value
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return MAX_MAGNITUDE if value > 0 else 0
    return int(math.floor(value))


def scaled_pow(base: float, exponent: float) -> float:
    """base ** exponent as a float, returning inf instead of raising on overflow."""
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf


def safe_mul(*factors: Number) -> float:
    """Multiply magnitudes as floats, saturating to inf if an int operand is too large."""
    result = 1.0
    for factor in factors:
        try:
            result *= factor
        except OverflowError:
            return math.inf
    return result


def get_suffix(magnitude: int) -> str:
    """
    Get the suffix for a power-of-1000 magnitude.

    Args:
        magnitude: floor(log10(n) / 3)

    Returns:
        '' / 'k' / 'm' / 'g' / 't', then 'aa', 'ab', ... 'zz'.
        Empty string past 'zz' (caller shows MAX).
    """
    if magnitude < len(NAMED_SUFFIXES):
        return NAMED_SUFFIXES[magnitude]
    offset = magnitude - len(NAMED_SUFFIXES)
    first, second = divmod(offset, 26)
    if first > 25:
        return ""
    return chr(97 + first) + chr(97 + second)


def format_number(num: Number) -> str:
    """
    Format a magnitude compactly.

    Examples:
        999       -> "999"
        12_345    -> "12k"
        4.2e7     -> "42m"
        1e15      -> "1aa"
        1e18      -> "1ab"

    Values below 1000 are floored and comma-grouped. Values above the 'zz'
    suffix, and inf/NaN, render as "MAX".
    """
    if isinstance(num, float) and not math.isfinite(num):
        return "MAX"

    sign = "-" if num < 0 else ""
    abs_num = abs(num)

    if abs_num < 1000:
        return f"{math.floor(num):,}"

    magnitude = int(math.floor(math.log10(abs_num) / 3))
    # log10 of a large int can round across a power of 1000
    if abs_num < 10 ** (magnitude * 3):
        magnitude -= 1
    elif abs_num >= 10 ** ((magnitude + 1) * 3):
        magnitude += 1
    suffix = get_suffix(magnitude)
    if not suffix:
        return "MAX"

    if isinstance(abs_num, int):
        leading = abs_num // (10 ** (magnitude * 3))
    else:
        leading = math.floor(abs_num / (10.0 ** (magnitude * 3)))
    return f"{sign}{leading}{suffix}"


if __name__ == "__main__":
    for sample in [0, 999, 1_234, 56_789_000, 1e15, 3.3e20, 1e100, 1e308, math.inf]:
        print(f"{sample!r:>24} -> {format_number(sample)}")
