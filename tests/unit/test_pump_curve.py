"""
Unit tests for pump_curve module.
"""

import pytest

from epanet_geojson.core.pump_curve import (
    PumpCurveError,
    fit_pump_curve,
    one_point_curve_points,
    validate_three_point_curve,
)


class TestOnePointCurvePoints:
    """Tests for one_point_curve_points function."""

    def test_derives_shutoff_and_max_flow(self):
        """Test shutoff head is 4/3 design head and max flow doubles."""
        shutoff, design, max_operating = one_point_curve_points(10.0, 30.0)
        assert shutoff[0] == 0.0
        assert shutoff[1] == pytest.approx(40.0, rel=1e-4)
        assert design == (10.0, 30.0)
        assert max_operating == (20.0, 0.0)

    @pytest.mark.parametrize("flow,head", [(0.0, 10.0), (5.0, -1.0), (float("nan"), 1.0)])
    def test_rejects_non_positive(self, flow, head):
        """Test design values must be positive finite numbers."""
        with pytest.raises(PumpCurveError, match="must be positive"):
            one_point_curve_points(flow, head)


class TestValidateThreePointCurve:
    """Tests for validate_three_point_curve function."""

    def test_valid_input(self):
        """Test a well-formed definition has no messages."""
        assert validate_three_point_curve(10.0, 1.0, 8.0, 2.0, 2.0) == []

    def test_missing_value(self):
        """Test None values are reported by name."""
        errors = validate_three_point_curve(None, 1.0, 8.0, 2.0, 2.0)
        assert errors == ["Shutoff Head must be a valid number."]

    def test_negative_value(self):
        """Test negative values are reported."""
        errors = validate_three_point_curve(10.0, 1.0, 8.0, 2.0, -1.0)
        assert errors == ["Max Operating Head must be non-negative."]

    def test_zero_design_flow(self):
        """Test design flow must be strictly positive."""
        errors = validate_three_point_curve(10.0, 0.0, 8.0, 2.0, 2.0)
        assert "Design Flow must be positive." in errors

    def test_ordering_rules(self):
        """Test each ordering rule adds its own message."""
        errors = validate_three_point_curve(5.0, 3.0, 8.0, 2.0, 9.0)
        assert errors == [
            "Max Operating Flow must be greater than Design Flow.",
            "Shutoff Head must be greater than Design Head.",
            "Design Head must be greater than or equal to Max Operating Head.",
        ]


class TestFitPumpCurve:
    """Tests for fit_pump_curve function."""

    def test_three_point_exact(self):
        """Test an exact quadratic curve is recovered."""
        fit = fit_pump_curve(3, [0.0, 1.0, 2.0], [10.0, 8.0, 2.0])

        assert fit.a == pytest.approx(10.0)
        assert fit.b == pytest.approx(2.0)
        assert fit.c == pytest.approx(2.0)
        assert fit.head_at(1.0) == pytest.approx(8.0)

    def test_three_point_curve_sampling(self):
        """Test the sampled curve starts at shutoff and ends at zero head."""
        fit = fit_pump_curve(3, [0.0, 1.0, 2.0], [10.0, 8.0, 2.0])

        assert len(fit.curve_points) == 25
        assert fit.curve_points[0] == (0.0, 10.0)
        assert fit.curve_points[-1][0] == pytest.approx(5.0**0.5)
        assert fit.curve_points[-1][1] == pytest.approx(0.0, abs=1e-6)
        flows = [q for q, _ in fit.curve_points]
        assert flows == sorted(flows)

    def test_custom_point_count(self):
        """Test the number of sampled points is configurable."""
        fit = fit_pump_curve(
            3, [0.0, 1.0, 2.0], [10.0, 8.0, 2.0], num_generated_points=10
        )
        assert len(fit.curve_points) == 10

    def test_one_point(self):
        """Test a 1-point definition fits a quadratic through the design point."""
        fit = fit_pump_curve(1, [1.0], [1.0])

        assert fit.a == pytest.approx(1.33334)
        assert fit.b == pytest.approx(0.33334)
        assert fit.c == pytest.approx(2.0, rel=1e-4)
        assert fit.head_at(1.0) == pytest.approx(1.0)

    def test_equation_format(self):
        """Test the equation string embeds the coefficients."""
        fit = fit_pump_curve(3, [0.0, 1.0, 2.0], [10.0, 8.0, 2.0])
        assert fit.equation == "Head = 10.0000 - 2.0000e+00 * (Flow)^2.0000"

    def test_head_at_clips_to_zero(self):
        """Test heads beyond the curve end are zero."""
        fit = fit_pump_curve(3, [0.0, 1.0, 2.0], [10.0, 8.0, 2.0])
        assert fit.head_at(0.0) == 10.0
        assert fit.head_at(10.0) == 0.0

    def test_invalid_point_count(self):
        """Test only 1 or 3 points are accepted."""
        with pytest.raises(PumpCurveError, match="Only 1 or 3 points"):
            fit_pump_curve(2, [0.0, 1.0], [10.0, 8.0])

    def test_insufficient_data(self):
        """Test 3-point mode needs three values of each."""
        with pytest.raises(PumpCurveError, match="Insufficient data"):
            fit_pump_curve(3, [0.0, 1.0], [10.0, 8.0])

    def test_rising_head_rejected(self):
        """Test heads must not increase with flow."""
        with pytest.raises(PumpCurveError, match="valid pump curve shape"):
            fit_pump_curve(3, [0.0, 1.0, 2.0], [10.0, 12.0, 2.0])

    def test_coincident_design_and_shutoff_flow(self):
        """Test design flow must differ from zero flow."""
        with pytest.raises(PumpCurveError, match="too close"):
            fit_pump_curve(3, [0.0, 0.0, 2.0], [10.0, 8.0, 2.0])

    def test_degenerate_curve_does_not_converge(self):
        """Test a design head equal to shutoff head cannot be fitted."""
        with pytest.raises(PumpCurveError):
            fit_pump_curve(3, [0.0, 1.0, 2.0], [10.0, 10.0, 2.0])
