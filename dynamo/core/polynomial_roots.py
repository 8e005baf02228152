"""
Polynomial evaluation and root finding.

Coefficients are always given in ascending order of degree. Roots are found
from the eigenvalues of the companion matrix and then polished with a few
Newton steps against the original polynomial.
"""

import cmath
import numpy as np
from typing import List, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

NEWTON_POLISH_STEPS = 4


def horner(x, *coeffs):
    """Evaluate sum(coeffs[k] * x**k)."""
    result = 0
    for a in reversed(coeffs):
        result = result * x + a
    return result


def horner_monic(x, *coeffs):
    """Evaluate x**n + sum(coeffs[k] * x**k) where n = len(coeffs)."""
    result = 1
    for a in reversed(coeffs):
        result = result * x + a
    return result


def horner_with_derivative(x: complex, coeffs: Sequence[complex]) -> Tuple[complex, complex]:
    """Evaluate a polynomial and its derivative in one pass."""
    value = 0j
    deriv = 0j
    for a in reversed(coeffs):
        deriv = deriv * x + value
        value = value * x + a
    return value, deriv


def trim_coefficients(coeffs: Sequence[complex]) -> List[complex]:
    """Drop zero leading (highest-degree) coefficients."""
    result = list(coeffs)
    while result and result[-1] == 0:
        result.pop()
    return result


def solve_polynomial(coeffs: Sequence[complex]) -> List[complex]:
    """
    Find all complex roots of a polynomial.

    Args:
        coeffs: Coefficients in ascending order (a0, a1, ..., an)

    Returns:
        List of n roots, repeated according to multiplicity; empty for
        constant or all-zero input
    """
    coeffs = [complex(a) for a in trim_coefficients(coeffs)]
    degree = len(coeffs) - 1
    if degree < 1:
        return []
    if not all(cmath.isfinite(a) for a in coeffs):
        logger.warning("Non-finite polynomial coefficients; no roots returned")
        return []

    if degree == 1:
        return [-coeffs[0] / coeffs[1]]
    if degree == 2:
        lead = coeffs[2]
        return solve_quadratic(coeffs[0] / lead, coeffs[1] / lead)

    # np.roots expects descending order
    roots = np.roots(coeffs[::-1])
    return [_polish_root(complex(r), coeffs) for r in roots]


def _polish_root(root: complex, coeffs: Sequence[complex]) -> complex:
    """Refine a root with a fixed number of Newton steps."""
    for _ in range(NEWTON_POLISH_STEPS):
        value, deriv = horner_with_derivative(root, coeffs)
        if deriv == 0:
            break
        step = value / deriv
        if not cmath.isfinite(step):
            break
        candidate = root - step
        if abs(horner_with_derivative(candidate, coeffs)[0]) > abs(value):
            break
        root = candidate
    return root


def solve_quadratic(a0: complex, a1: complex) -> List[complex]:
    """Roots of x^2 + a1 x + a0."""
    a0, a1 = complex(a0), complex(a1)
    disc = cmath.sqrt(a1 * a1 - 4 * a0)
    # Larger-magnitude root first, the other from Vieta.
    q = -0.5 * (a1 + disc)
    alt = -0.5 * (a1 - disc)
    if abs(alt) > abs(q):
        q = alt
    if q == 0:
        return [0j, 0j]
    return [complex(q), complex(a0 / q)]


def solve_cubic(a0: complex, a1: complex, a2: complex) -> List[complex]:
    """Roots of x^3 + a2 x^2 + a1 x + a0 by Cardano's formula."""
    a0, a1, a2 = complex(a0), complex(a1), complex(a2)
    shift = a2 / 3
    p = a1 - a2 * a2 / 3
    q = 2 * a2 ** 3 / 27 - a2 * a1 / 3 + a0

    if p == 0:
        u = _cube_root(-q)
        omega = cmath.exp(2j * cmath.pi / 3)
        return [u - shift, u * omega - shift, u * omega * omega - shift]

    disc = cmath.sqrt(q * q / 4 + p ** 3 / 27)
    w = -q / 2 + disc
    if abs(w) < abs(-q / 2 - disc):
        w = -q / 2 - disc
    u = _cube_root(w)
    omega = cmath.exp(2j * cmath.pi / 3)
    roots = []
    for k in range(3):
        uk = u * omega ** k
        roots.append(uk - p / (3 * uk) - shift)
    return roots


def _cube_root(w: complex) -> complex:
    if w == 0:
        return 0j
    return cmath.exp(cmath.log(w) / 3)


def poly_add(a: Sequence[int], b: Sequence[int]) -> List[int]:
    n = max(len(a), len(b))
    result = [0] * n
    for i, x in enumerate(a):
        result[i] += x
    for i, x in enumerate(b):
        result[i] += x
    return trim_coefficients(result)


def poly_mul(a: Sequence[int], b: Sequence[int]) -> List[int]:
    """Exact product of two ascending coefficient lists."""
    if not a or not b:
        return []
    result = [0] * (len(a) + len(b) - 1)
    for i, x in enumerate(a):
        if x == 0:
            continue
        for j, y in enumerate(b):
            result[i + j] += x * y
    return trim_coefficients(result)


def poly_divmod(num: Sequence[int], den: Sequence[int]) -> Tuple[List[int], List[int]]:
    """
    Exact long division of integer polynomials by a monic divisor.

    Args:
        num: Dividend, ascending coefficients
        den: Monic divisor, ascending coefficients

    Returns:
        (quotient, remainder)
    """
    den = trim_coefficients(den)
    if not den:
        raise ZeroDivisionError("polynomial division by zero")
    if den[-1] != 1:
        raise ValueError("divisor must be monic")
    rem = trim_coefficients(num)
    if len(rem) < len(den):
        return [], rem
    quot = [0] * (len(rem) - len(den) + 1)
    for shift in range(len(rem) - len(den), -1, -1):
        coeff = rem[shift + len(den) - 1]
        quot[shift] = coeff
        if coeff:
            for i, d in enumerate(den):
                rem[shift + i] -= coeff * d
    return trim_coefficients(quot), trim_coefficients(rem[:len(den) - 1])
