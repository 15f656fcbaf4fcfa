"""Ordinary least-squares line fitting over (time, price) points"""

import math
from collections.abc import Sequence

from ..errors import ComputationError
from ..models.lines import LineFit


def fit_line(points: Sequence[tuple[float, float]]) -> LineFit:
    """
    Fit ``price = slope * time + intercept`` by least squares.

    Abscissae are centred on their mean before the sums are taken; unix
    second timestamps squared would otherwise lose most of their precision.

    Args:
        points: ``(time, price)`` pairs in any order

    Returns:
        LineFit with R² = 1 - SS_res / SS_tot clamped to [0, 1]. Identical
        prices give R² = 1. Fewer than two points give slope 0, intercept
        mean(price) and R² = 0.

    Raises:
        ComputationError: On non-finite input, or when two or more points
            share a single time (vertical line)
    """
    n = len(points)
    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]

    if not all(math.isfinite(v) for v in xs + ys):
        raise ComputationError("Non-finite point in line fit", operation="fit_line",
                               calculation_input={"points": n})

    if n < 2:
        return LineFit(slope=0.0, intercept=ys[0] if ys else 0.0, r_squared=0.0, point_count=n)

    x_mean = sum(xs) / n
    y_mean = sum(ys) / n
    dxs = [x - x_mean for x in xs]

    sum_x = sum(dxs)
    sum_y = sum(ys)
    sum_xy = sum(dx * y for dx, y in zip(dxs, ys))
    sum_xx = sum(dx * dx for dx in dxs)

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        raise ComputationError("All points share one time; slope is undefined",
                               operation="fit_line", calculation_input={"points": n})

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = y_mean - slope * x_mean

    ss_tot = sum((y - y_mean) ** 2 for y in ys)
    if ss_tot == 0:
        r_squared = 1.0
    else:
        ss_res = sum((y - (y_mean + slope * dx)) ** 2 for dx, y in zip(dxs, ys))
        r_squared = max(0.0, min(1.0, 1.0 - ss_res / ss_tot))

    return LineFit(slope=slope, intercept=intercept, r_squared=r_squared, point_count=n)


class LineFitter:
    """Stateless wrapper so the fitter can be injected and replaced in tests"""

    def fit(self, points: Sequence[tuple[float, float]]) -> LineFit:
        return fit_line(points)
