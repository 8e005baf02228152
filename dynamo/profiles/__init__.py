"""Concrete dynamical families."""

from .burning_ship import BurningShip
from .chebyshev import Chebyshev, ChebyshevParameters
from .mandelbrot import Mandelbrot
from .multibrot import Multibrot, MultibrotParameters
from .quad_rat_per_4 import QuadRatPer4
from .zeta import RiemannXi, RiemannXiNewton
from .registry import FamilyRegistry, JULIA_PRESETS

__all__ = [
    "BurningShip",
    "Chebyshev",
    "ChebyshevParameters",
    "Mandelbrot",
    "Multibrot",
    "MultibrotParameters",
    "QuadRatPer4",
    "RiemannXi",
    "RiemannXiNewton",
    "FamilyRegistry",
    "JULIA_PRESETS",
]
