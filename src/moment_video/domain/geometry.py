"""Resolution geometry helpers."""

from typing import Tuple


def _divide_half_up(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def target_size(
    original_width: int,
    original_height: int,
    bound_width: int,
    bound_height: int
) -> Tuple[int, int]:
    """
    Fit ``original`` inside ``bound`` preserving aspect ratio.

    Wider-than-box sources are limited by width, everything else by height.
    Results are rounded half up to the nearest pixel and never drop below 1.
    Integer arithmetic keeps ties exact.

    Raises:
        ValueError: If any dimension is not positive
    """
    if min(original_width, original_height, bound_width, bound_height) <= 0:
        raise ValueError("All dimensions must be positive")

    # ow/oh > bw/bh, cross-multiplied
    if original_width * bound_height > bound_width * original_height:
        width = bound_width
        height = _divide_half_up(bound_width * original_height, original_width)
    else:
        height = bound_height
        width = _divide_half_up(bound_height * original_width, original_height)

    return max(1, width), max(1, height)


def even_size(width: int, height: int) -> Tuple[int, int]:
    """Round dimensions down to even numbers (yuv420p needs even sizes)."""
    return max(2, width - width % 2), max(2, height - height % 2)
