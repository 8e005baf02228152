"""
Escape-time iteration with periodicity detection.

This module provides the per-point classifier: an orbit is iterated until it
leaves the escape disk, returns close to a checkpoint (periodic), or runs out
of budget (bounded).
"""

import cmath
import math
from typing import Tuple
import logging

from .types import EscapeState, PeriodicData

logger = logging.getLogger(__name__)

DEFAULT_PERIODICITY_TOLERANCE = 1e-14


def escape_potential(iteration: int, z_norm: float, escape_radius: float,
                     degree: float, escaping_period: int = 1) -> float:
    """
    Continuous (renormalized) iteration count of an escaped orbit.

    Args:
        iteration: Step at which the orbit left the escape disk
        z_norm: Modulus of the orbit point at that step
        escape_radius: Radius of the escape disk
        degree: Local degree at the escaping cycle
        escaping_period: Period of the escaping cycle

    Returns:
        Potential; the plain iteration count when the degree is undefined
    """
    if math.isnan(degree) or degree <= 1.0:
        return float(iteration)
    ratio = math.log(z_norm) / math.log(escape_radius)
    if ratio <= 0.0 or not math.isfinite(ratio):
        return float(iteration)
    return iteration - escaping_period * math.log(ratio) / math.log(degree)


class EscapeTimeIterator:
    """Classifier for single orbits of a dynamical family."""

    def __init__(self, max_iter: int = 1024, min_iter: int = 0,
                 escape_radius: float = 2.0,
                 periodicity_tolerance: float = DEFAULT_PERIODICITY_TOLERANCE,
                 degree: float = 2.0, escaping_period: int = 1):
        """
        Initialize the classifier.

        Args:
            max_iter: Maximum number of iterations
            min_iter: Iterations before the escape test is active
            escape_radius: Radius for escape condition
            periodicity_tolerance: Squared distance for declaring a return
            degree: Local degree at the escaping cycle (NaN if undefined)
            escaping_period: Period of the escaping cycle
        """
        self.max_iter = max_iter
        self.min_iter = min_iter
        self.escape_radius = escape_radius
        self.escape_radius_sq = escape_radius ** 2
        self.periodicity_tolerance = periodicity_tolerance
        self.degree = degree
        self.escaping_period = escaping_period

        if max_iter <= 0:
            raise ValueError("max_iter must be positive")
        if escape_radius <= 0:
            raise ValueError("escape_radius must be positive")
        if min_iter < 0 or min_iter > max_iter:
            raise ValueError("min_iter must lie between 0 and max_iter")
        if periodicity_tolerance < 0:
            raise ValueError("periodicity_tolerance cannot be negative")
        if escaping_period < 1:
            raise ValueError("escaping_period must be at least 1")

    @classmethod
    def for_family(cls, family) -> 'EscapeTimeIterator':
        """Build an iterator from a family's budget and numeric constants."""
        return cls(max_iter=family.max_iter,
                   min_iter=family.min_iter,
                   escape_radius=family.escape_radius(),
                   periodicity_tolerance=family.periodicity_tolerance(),
                   degree=family.degree(),
                   escaping_period=family.escaping_period())

    def run(self, family, z0: complex, c) -> EscapeState:
        """
        Classify the orbit of z0 under family.map(., c).

        Escape is tested before periodicity at every step. The reference
        point is refreshed at steps 1, 2, 4, 8, ... and the multiplier is the
        derivative product accumulated since the last refresh.

        Returns:
            An EscapeState that is never NOT_YET_ESCAPED
        """
        z = z0
        ref = z0
        ref_iter = 0
        next_checkpoint = 1
        multiplier = 1 + 0j
        tol = self.periodicity_tolerance

        for n in range(1, self.max_iter + 1):
            try:
                z, dz = family.map_and_multiplier(z, c)
            except (ZeroDivisionError, OverflowError, ValueError):
                return EscapeState.escaping(self.max_iter)
            multiplier *= dz

            if not cmath.isfinite(z):
                return EscapeState.escaping(self.max_iter)

            norm_sq = z.real * z.real + z.imag * z.imag
            if n >= self.min_iter and norm_sq > self.escape_radius_sq:
                return EscapeState.escaping(escape_potential(
                    n, math.sqrt(norm_sq), self.escape_radius,
                    self.degree, self.escaping_period))

            diff = z - ref
            if diff.real * diff.real + diff.imag * diff.imag < tol:
                return EscapeState.periodic(PeriodicData(
                    value=z,
                    period=n - ref_iter,
                    preperiod=ref_iter,
                    multiplier=multiplier,
                    final_error=diff,
                ))

            if n == next_checkpoint:
                ref = z
                ref_iter = n
                next_checkpoint *= 2
                multiplier = 1 + 0j

        return EscapeState.BOUNDED

    def orbit(self, family, z0: complex, c, max_len: int) -> Tuple[complex, ...]:
        """Orbit of z0, truncated at escape or after max_len points."""
        points = [z0]
        z = z0
        while len(points) < max_len:
            try:
                z = family.map(z, c)
            except (ZeroDivisionError, OverflowError, ValueError):
                break
            if not cmath.isfinite(z):
                break
            points.append(z)
            if abs(z) > self.escape_radius:
                break
        return tuple(points)
