"""Tests for least-squares line fitting"""

import math

import pytest

from drawing_proposals.analysis.line_fit import LineFitter, fit_line
from drawing_proposals.errors import ComputationError


class TestFitLine:
    """Test fit_line edge cases and accuracy"""

    def test_collinear_points(self):
        """Collinear points fit exactly with R² of 1"""
        fit = fit_line([(0, 1.0), (1, 3.0), (2, 5.0), (3, 7.0)])

        assert fit.slope == pytest.approx(2.0)
        assert fit.intercept == pytest.approx(1.0)
        assert fit.r_squared == pytest.approx(1.0)
        assert fit.point_count == 4

    def test_unix_timestamps_keep_precision(self):
        """Large abscissae are centred so hourly slopes survive"""
        base = 1_700_000_000
        points = [(base + i * 3600, 100.0 + i) for i in range(50)]
        fit = fit_line(points)

        assert fit.slope == pytest.approx(1 / 3600)
        assert fit.price_at(base + 49 * 3600) == pytest.approx(149.0)
        assert fit.r_squared == pytest.approx(1.0)

    def test_single_point(self):
        """One point gives a flat line through it with R² of 0"""
        fit = fit_line([(5, 42.0)])

        assert fit.slope == 0.0
        assert fit.intercept == 42.0
        assert fit.r_squared == 0.0

    def test_no_points(self):
        """No points give an all-zero fit"""
        fit = fit_line([])
        assert (fit.slope, fit.intercept, fit.r_squared) == (0.0, 0.0, 0.0)

    def test_constant_prices(self):
        """Zero variance in price is a perfect horizontal fit"""
        fit = fit_line([(0, 10.0), (1, 10.0), (2, 10.0)])

        assert fit.slope == 0.0
        assert fit.r_squared == 1.0

    def test_vertical_points_raise(self):
        """Points sharing one time have no slope"""
        with pytest.raises(ComputationError) as exc_info:
            fit_line([(7, 1.0), (7, 2.0), (7, 3.0)])
        assert exc_info.value.operation == "fit_line"

    def test_non_finite_input_raises(self):
        """NaN prices are rejected instead of propagating"""
        with pytest.raises(ComputationError):
            fit_line([(0, 1.0), (1, math.nan)])

    def test_noisy_fit_in_unit_interval(self):
        """R² of scattered points stays within [0, 1]"""
        fit = fit_line([(0, 1.0), (1, -1.0), (2, 1.0), (3, -1.0)])
        assert 0.0 <= fit.r_squared <= 1.0
        assert fit.r_squared < 0.5

    def test_line_fitter_delegates(self):
        """LineFitter is the injectable wrapper around fit_line"""
        points = [(0, 2.0), (10, 4.0)]
        assert LineFitter().fit(points) == fit_line(points)
