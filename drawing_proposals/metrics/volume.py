"""Relative volume calculations"""

from collections.abc import Iterable, Sequence

from ..data.models import Candle


def mean_volume(candles: Sequence[Candle]) -> float:
    """Mean volume of a series, 0.0 when empty."""
    if not candles:
        return 0.0
    return sum(c.volume for c in candles) / len(candles)


def volume_ratio(volumes: Iterable[float], reference: float) -> float:
    """
    Mean of ``volumes`` relative to a reference mean

    A series without volume (reference 0) is treated as neutral (1.0) so
    that volume never penalizes symbols whose feed omits it.

    Args:
        volumes: Volumes of the candles of interest
        reference: Mean volume of the whole series

    Returns:
        Relative volume, 1.0 when either side is empty
    """
    values = list(volumes)
    if not values or reference <= 0:
        return 1.0
    return (sum(values) / len(values)) / reference


def normalize_volume_ratio(ratio: float) -> float:
    """
    Map a relative volume into [0, 1] for confidence scoring

    Average or better volume confirms fully; thinner volume scales down
    linearly.
    """
    if ratio <= 0:
        return 0.0
    return min(1.0, ratio)
