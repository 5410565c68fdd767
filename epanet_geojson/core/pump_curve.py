"""
Pump curve regression.

Fits the power-law head curve ``h = A - B * q^C`` to a 1-point (design)
or 3-point (shutoff, design, max operating) pump definition using the
iterative scheme of the EPANET GUI, and validates 3-point input.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

logger = logging.getLogger(__name__)

TINY = 1e-6
MAX_ITERATIONS = 5
CONVERGENCE_TOLERANCE = 0.01
MAX_EXPONENT = 20.0

# 1-point curves: shutoff head = 4/3 design head, max flow = 2x design flow
SHUTOFF_HEAD_FACTOR = 1.33334
MAX_FLOW_FACTOR = 2.0

DEFAULT_CURVE_POINTS = 25


class PumpCurveError(ValueError):
    """Raised when pump curve input cannot produce a valid curve."""


@dataclass
class PumpCurveFit:
    """
    Fitted pump curve ``h = a - b * q^c``.

    Attributes
    ----------
    a : float
        Shutoff head (head at zero flow)
    b : float
        Head loss coefficient, non-negative
    c : float
        Head loss exponent, 0 < c <= 20
    equation : str
        Formatted equation
    curve_points : list[tuple[float, float]]
        Sampled (flow, head) points along the curve
    """

    a: float
    b: float
    c: float
    equation: str
    curve_points: list[tuple[float, float]] = field(default_factory=list)

    def head_at(self, flow: float) -> float:
        if flow < TINY:
            return self.a
        return max(0.0, self.a - self.b * flow**self.c)


def one_point_curve_points(flow: float, head: float) -> list[tuple[float, float]]:
    """
    Derive shutoff and max operating points from a design point.

    Parameters
    ----------
    flow : float
        Design flow, must be positive
    head : float
        Design head, must be positive

    Returns
    -------
    list[tuple[float, float]]
        [(0, shutoff_head), (flow, head), (max_flow, 0)]

    Examples
    --------
    >>> shutoff, design, max_operating = one_point_curve_points(10.0, 30.0)
    >>> max_operating
    (20.0, 0.0)
    """
    if not (math.isfinite(flow) and math.isfinite(head)) or flow <= 0 or head <= 0:
        raise PumpCurveError(
            "Design flow and head must be positive for 1-point curve generation."
        )
    return [
        (0.0, head * SHUTOFF_HEAD_FACTOR),
        (flow, head),
        (flow * MAX_FLOW_FACTOR, 0.0),
    ]


def validate_three_point_curve(
    shutoff_head: float | None,
    design_flow: float | None,
    design_head: float | None,
    max_flow: float | None,
    max_head: float | None,
) -> list[str]:
    """
    Validate a 3-point pump definition.

    Returns
    -------
    list[str]
        Validation messages; empty when the input is valid
    """
    errors: list[str] = []
    values = [
        (shutoff_head, "Shutoff Head"),
        (design_flow, "Design Flow"),
        (design_head, "Design Head"),
        (max_flow, "Max Operating Flow"),
        (max_head, "Max Operating Head"),
    ]

    all_valid = True
    for value, name in values:
        if value is None or not math.isfinite(value):
            errors.append(f"{name} must be a valid number.")
            all_valid = False
        elif value < 0:
            errors.append(f"{name} must be non-negative.")
            all_valid = False

    if design_flow is not None and math.isfinite(design_flow) and design_flow <= 0:
        errors.append("Design Flow must be positive.")
        all_valid = False

    if all_valid:
        if max_flow <= design_flow:
            errors.append("Max Operating Flow must be greater than Design Flow.")
        if shutoff_head <= design_head:
            errors.append("Shutoff Head must be greater than Design Head.")
        if design_head < max_head:
            errors.append(
                "Design Head must be greater than or equal to Max Operating Head."
            )

    return errors


def _defining_points(
    n_points: int, flows: Sequence[float], heads: Sequence[float]
) -> tuple[float, float, float, float, float, float]:
    if n_points == 1:
        if len(flows) < 1 or len(heads) < 1:
            raise PumpCurveError(
                "Insufficient data for 1-point curve. "
                "Requires 1 flow and 1 head value."
            )
        (_, h0), (q1, h1), (q2, h2) = one_point_curve_points(flows[0], heads[0])
        return 0.0, h0, q1, h1, q2, h2

    if n_points == 3:
        if len(flows) < 3 or len(heads) < 3:
            raise PumpCurveError(
                "Insufficient data for 3-point curve. "
                "Requires 3 flow and 3 head values."
            )
        return flows[0], heads[0], flows[1], heads[1], flows[2], heads[2]

    raise PumpCurveError(
        "Invalid number of points specified. Only 1 or 3 points are supported."
    )


def _sample_curve(
    a: float, b: float, c: float, q1: float, q2: float, num_points: int
) -> list[tuple[float, float]]:
    if b > TINY and a > 0:
        try:
            q_max_theoretical = (a / b) ** (1.0 / c)
        except OverflowError:
            q_max_theoretical = q2
    elif a <= TINY:
        q_max_theoretical = 0.0
    else:
        q_max_theoretical = q2

    plot_q_max = max(q_max_theoretical, q2, q1)
    if plot_q_max <= TINY:
        return [(0.0, max(0.0, a))]

    q_grid = np.linspace(0.0, plot_q_max, num_points)
    with np.errstate(over="ignore", invalid="ignore"):
        h_grid = np.where(q_grid < TINY, a, a - b * np.power(q_grid, c))
    h_grid = np.maximum(h_grid, 0.0)

    points: list[tuple[float, float]] = []
    for q, h in zip(q_grid, h_grid, strict=True):
        if not (np.isfinite(q) and np.isfinite(h)):
            continue
        if points and abs(points[-1][0] - q) <= TINY:
            continue
        points.append((float(q), float(h)))

    # Close the curve at zero head when sampling stopped short of it
    if (
        points
        and TINY < q_max_theoretical
        and math.isfinite(q_max_theoretical)
        and abs(points[-1][0] - q_max_theoretical) > TINY
        and points[-1][1] > TINY
    ):
        points.append((q_max_theoretical, 0.0))

    return points


def fit_pump_curve(
    n_points: int,
    flows: Sequence[float],
    heads: Sequence[float],
    num_generated_points: int = DEFAULT_CURVE_POINTS,
) -> PumpCurveFit:
    """
    Fit ``h = A - B * q^C`` to a 1-point or 3-point pump definition.

    Parameters
    ----------
    n_points : int
        Number of input points, 1 or 3
    flows : Sequence[float]
        [q_design] for 1 point, [0, q_design, q_max] for 3 points
    heads : Sequence[float]
        [h_design] for 1 point, [h_shutoff, h_design, h_max] for 3 points
    num_generated_points : int, optional
        Number of sampled curve points, default 25

    Returns
    -------
    PumpCurveFit
        Coefficients, equation and sampled curve

    Raises
    ------
    PumpCurveError
        If the input does not describe a valid curve or the fit fails

    Examples
    --------
    >>> fit = fit_pump_curve(1, [1.0], [1.0])
    >>> round(fit.c, 4)
    2.0
    """
    q0, h0, q1, h1, q2, h2 = _defining_points(n_points, flows, heads)

    if (
        h0 - h1 < -TINY
        or h1 - h2 < -TINY
        or q1 - q0 < -TINY
        or q2 - q1 < -TINY
        or min(h0, h1, h2, q0, q1, q2) < 0
    ):
        raise PumpCurveError(
            "Input points do not form a valid pump curve shape (Head must "
            "decrease/stay same, Flow must increase/stay same, all values "
            "non-negative)."
        )
    if abs(q2 - q1) < TINY:
        raise PumpCurveError(
            "Flow points q1 and q2 are too close together for calculation."
        )
    if n_points == 3 and abs(q1 - q0) < TINY:
        raise PumpCurveError(
            "Flow points q0 (0) and q1 (Design) are too close together "
            "for calculation."
        )

    a = h0
    # b_internal is -B while iterating
    b_internal = 0.0
    c = 1.0
    converged = False

    for _ in range(MAX_ITERATIONS):
        h4 = a - h1
        h5 = a - h2

        if h4 <= TINY or h5 <= TINY or q1 <= TINY:
            # Flat tail: treat as a near-zero exponent
            if h5 <= TINY and abs(h1 - h2) < TINY and abs(q1 - q2) > TINY:
                c = 0.001
                q1_pow_c = q1**c
                if abs(q1_pow_c) > TINY:
                    b_internal = -h4 / q1_pow_c
                    if b_internal <= TINY:
                        a = h0
                        converged = True
            break

        ratio_q = q2 / q1
        ratio_h = h5 / h4
        if abs(ratio_q - 1.0) < TINY or ratio_q <= 0 or ratio_h <= 0:
            break

        c = math.log(ratio_h) / math.log(ratio_q)
        if c <= 0.0 or c > MAX_EXPONENT:
            break

        try:
            q1_pow_c = q1**c
        except OverflowError:
            break

        if abs(q1_pow_c) < TINY:
            if abs(h4) > TINY:
                break
            b_internal = 0.0
        else:
            b_internal = -h4 / q1_pow_c

        if b_internal > TINY:
            break

        a1 = h0 - b_internal * q0**c
        if abs(a1 - a) < CONVERGENCE_TOLERANCE * a:
            a = a1
            converged = True
            break
        a = a1

    if not converged:
        if c <= 0.0:
            message = "Fit failed: Exponent C became non-positive."
        elif c > MAX_EXPONENT:
            message = "Fit failed: Exponent C became too large (> 20)."
        elif b_internal > TINY:
            message = "Fit failed: Coefficient B became negative (invalid curve shape)."
        else:
            message = "Fitting algorithm did not converge within maximum iterations."
        raise PumpCurveError(message)

    b = -b_internal
    if b < -TINY:
        raise PumpCurveError(
            f"Fit resulted in a negative B coefficient ({b:.3e}), indicating "
            "an invalid curve shape. Check input points."
        )
    if c <= 0 or c > MAX_EXPONENT:
        raise PumpCurveError(
            f"Fit converged but exponent C ({c:.4f}) is outside valid range "
            "(0 < C <= 20)."
        )
    b = max(0.0, b)

    curve_points = _sample_curve(a, b, c, q1, q2, num_generated_points)
    if len(curve_points) < 2:
        raise PumpCurveError(
            "Fit converged but failed to generate sufficient curve points "
            "for plotting."
        )

    logger.debug(f"Pump curve fit: A={a:.4f}, B={b:.4e}, C={c:.4f}")

    return PumpCurveFit(
        a=a,
        b=b,
        c=c,
        equation=f"Head = {a:.4f} - {b:.4e} * (Flow)^{c:.4f}",
        curve_points=curve_points,
    )
