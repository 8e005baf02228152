"""
Curves traced by Newton continuation.

External rays and equipotentials are traced by solving F_k(x) = target for a
sequence of targets on circles around infinity, each solve seeded from the
previous solution. F_k is the k-th iterate of the first-return map to the
escaping cycle, seen as a function of the sampled coordinate.
"""

import cmath
import math
from typing import Callable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

RAY_DEPTH = 25
RAY_SHARPNESS = 20
RAY_ESCAPE_RADIUS = 400.0
NEWTON_MAX_STEPS = 64
MAX_EQUIPOTENTIAL_POINTS = 4096
NAN = complex(float("nan"), float("nan"))


def newton_until_convergence(f_and_df: Callable[[complex], Tuple[complex, complex]],
                             start: complex, target: complex = 0j,
                             error: float = 1e-12,
                             max_steps: int = NEWTON_MAX_STEPS) -> Tuple[complex, complex, complex]:
    """
    Solve f(x) = target by Newton's method.

    Iteration stops when the step is smaller than error, after max_steps, or
    as soon as a step would produce non-finite values; in the last case the
    previous iterate is kept.

    Returns:
        (solution, f(solution), f'(solution))
    """
    x = start
    fx, dfx = _evaluate(f_and_df, x)
    for _ in range(max_steps):
        if dfx == 0 or not (cmath.isfinite(fx) and cmath.isfinite(dfx)):
            break
        step = (fx - target) / dfx
        candidate = x - step
        f_new, df_new = _evaluate(f_and_df, candidate)
        if not (cmath.isfinite(candidate) and cmath.isfinite(f_new) and cmath.isfinite(df_new)):
            break
        x, fx, dfx = candidate, f_new, df_new
        if abs(step) < error:
            break
    return x, fx, dfx


def _evaluate(f_and_df, x: complex) -> Tuple[complex, complex]:
    try:
        return f_and_df(x)
    except (ZeroDivisionError, OverflowError, ValueError):
        return NAN, NAN


def orbit_with_derivative(family, point: complex, steps: int) -> Tuple[complex, complex]:
    """
    Iterate the start point belonging to a sampled point.

    Returns:
        (z_steps, dz_steps/dpoint), the derivative being taken through the
        parameter map and the start point
    """
    c, dc = family.param_map_d(point)
    z, dz_dpoint, dz_dc = family.start_point_d(point, c)
    dz = dz_dpoint + dz_dc * dc
    for _ in range(steps):
        f, fz, fc = family.gradient(z, c)
        dz = fz * dz + fc * dc
        z = f
    return z, dz


def _critical_value_offset(family) -> int:
    # Parameter planes are parametrized by the critical value, one step past the start.
    return 0 if family.is_dynamical() else 1


def _level_phases(theta: float, deg: float, depth: int) -> List[float]:
    """theta * deg**k modulo 1 for each level k."""
    phases = []
    t = theta % 1.0
    integral = float(deg).is_integer()
    for k in range(depth):
        if integral:
            phases.append(t)
            t = (t * deg) % 1.0
        else:
            phases.append((theta * deg ** k) % 1.0)
    return phases


def external_ray(family, theta: float, depth: int = RAY_DEPTH,
                 sharpness: int = RAY_SHARPNESS,
                 escape_radius: float = RAY_ESCAPE_RADIUS) -> Optional[List[complex]]:
    """
    Trace the external ray of angle theta.

    Args:
        family: Family whose sampled plane the ray lives in
        theta: External angle in turns
        depth: Number of levels (iterates of the first-return map)
        sharpness: Newton solves per level
        escape_radius: Radius of the outermost circle

    Returns:
        Polyline from the escape circle toward the landing point, or None
        when the family's degree is undefined
    """
    deg = family.degree()
    if math.isnan(deg):
        logger.warning(f"Cannot trace rays for {family.name}: degree is undefined")
        return None
    if depth <= 0 or sharpness <= 0:
        raise ValueError("depth and sharpness must be positive")
    if escape_radius <= 1.0:
        raise ValueError("escape_radius must exceed 1")

    period = family.escaping_period()
    offset = _critical_value_offset(family)
    pixel_width = family.point_grid.pixel_width()
    error = pixel_width * 1e-8
    log_r = math.log(escape_radius)
    log_deg = math.log(deg)

    x = escape_radius * cmath.exp(2j * math.pi * theta)
    ray = [x]

    for k, phase in enumerate(_level_phases(theta, deg, depth)):
        steps = k * period + offset

        def f_and_df(y, steps=steps):
            return orbit_with_derivative(family, y, steps)

        arg = 2j * math.pi * phase
        for j in range(1, sharpness + 1):
            u = log_r * 2.0 ** (-j * math.log2(deg) / sharpness)
            target = cmath.exp(u + arg)
            x, fx, dfx = newton_until_convergence(f_and_df, x, target, error)
            ray.append(x)

            fx_norm = abs(fx)
            if fx_norm > 1.0 and dfx != 0 and cmath.isfinite(dfx):
                dist = 2.0 * fx_norm * (math.log(fx_norm) / log_deg) / abs(dfx)
                if dist < 0.3 * pixel_width:
                    logger.debug(f"Ray {theta} resolved at level {k} after {len(ray)} points")
                    return ray

    logger.debug(f"Ray {theta} reached depth {depth} with {len(ray)} points")
    return ray


def equipotential(family, point: complex, sharpness: int = RAY_SHARPNESS,
                  escape_radius: float = RAY_ESCAPE_RADIUS,
                  max_points: int = MAX_EQUIPOTENTIAL_POINTS) -> Optional[List[complex]]:
    """
    Trace the equipotential through an escaping point.

    The curve is the level set of |F_k| through the point at the first level
    k where |F_k(point)| exceeds the escape radius; it is traced by Newton
    continuation around the circle of that modulus.

    Returns:
        Closed polyline starting and ending near point, or None for an
        undefined degree, a point that does not escape, or a curve that
        would need more than max_points samples
    """
    deg = family.degree()
    if math.isnan(deg):
        logger.warning(f"Cannot trace equipotentials for {family.name}: degree is undefined")
        return None
    if sharpness <= 0:
        raise ValueError("sharpness must be positive")

    period = family.escaping_period()
    offset = _critical_value_offset(family)
    max_level = max(1, family.max_iter // period)

    level = None
    try:
        c = family.param_map(point)
        z = family.start_point(point, c)
        for _ in range(offset):
            z = family.map(z, c)
        for k in range(max_level + 1):
            if not cmath.isfinite(z):
                return None
            if abs(z) > escape_radius:
                level = k
                break
            for _ in range(period):
                z = family.map(z, c)
    except (ZeroDivisionError, OverflowError, ValueError):
        return None
    if level is None:
        return None

    # F_k winds deg**level times around its circle while the curve is traced once.
    if deg <= 1.0:
        turns = 1.0
    elif level * math.log(deg) < math.log(max_points / sharpness):
        turns = deg ** level
    else:
        logger.warning(f"Equipotential through {point} needs more than {max_points} points")
        return None
    n = max(sharpness, int(round(sharpness * turns)))
    radius = abs(z)
    phase = cmath.phase(z)

    steps = level * period + offset
    error = family.point_grid.pixel_width() * 1e-8

    def f_and_df(y):
        return orbit_with_derivative(family, y, steps)

    x = point
    curve = [x]
    for j in range(1, n + 1):
        target = cmath.rect(radius, phase + 2.0 * math.pi * turns * j / n)
        x, _, _ = newton_until_convergence(f_and_df, x, target, error)
        curve.append(x)
    return curve


def find_periodic_point(family, point: complex, period: Optional[int] = None,
                        tolerance: float = 1e-6) -> Optional[complex]:
    """
    Locate a nearby point whose start point is periodic.

    Solves F_p(x) = S(x) by Newton's method, where S is the start point
    (the variable itself on a dynamical plane, the critical point on a
    parameter plane), so parameter planes yield centers of components.

    Args:
        family: Family to search in
        point: Initial guess in the sampled plane
        period: Period to solve for; taken from the point's classification
            when omitted

    Returns:
        The solution, or None when no period is known or Newton diverged
    """
    if period is None:
        state = family.run_point(point)
        if state.data is None:
            return None
        period = state.data.period
    if period < 1:
        raise ValueError("period must be at least 1")

    def residual(y):
        c, dc = family.param_map_d(y)
        z0, dz0_dpoint, dz0_dc = family.start_point_d(y, c)
        z_p, dz_p = orbit_with_derivative(family, y, period)
        return z_p - z0, dz_p - (dz0_dpoint + dz0_dc * dc)

    error = family.point_grid.pixel_width() * 1e-10
    x, g, _ = newton_until_convergence(residual, point, 0j, error)
    if not cmath.isfinite(g) or abs(g) > tolerance:
        logger.debug(f"No period-{period} point found near {point}")
        return None
    return x
