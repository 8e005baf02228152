"""
Complex dynamics explorer.

This library classifies the points of parameter planes and dynamical
planes of holomorphic families (escaping, attracted to a cycle, bounded),
colors the result, and traces external rays and equipotentials.

Key Features:
- Escape and periodicity classification with cycle multipliers
- A catalog of families: quadratic, unicritical, Chebyshev, rational, transcendental
- Exact cycle points from Gleason and dynatomic polynomials
- External rays and equipotentials by Newton continuation
- Interior coloring by period, multiplier and internal potential
- Tile-based parallel classification

Example usage:
    >>> from dynamo import FamilyRenderer, RenderConfig, create_family
    >>> family = create_family("mandelbrot")
    >>> renderer = FamilyRenderer(RenderConfig(width=800))
    >>> image = renderer.render(family, "mandelbrot.png")
"""

__version__ = "0.1.0"
__author__ = "dynamo developers"

from dynamo.core.types import OrbitSchema, PointInfo, PointKind, EscapeState, EscapeKind, PeriodicData
from dynamo.core.point_grid import Bounds, PointGrid
from dynamo.core.dynamics import DynamicalFamily, JuliaSet
from dynamo.core.covering import CoveringMap
from dynamo.core.escape import EscapeTimeIterator
from dynamo.core.polynomial_roots import solve_polynomial
from dynamo.profiles.registry import FamilyRegistry, JULIA_PRESETS
from dynamo.rendering.coloring import Coloring, ColoringEngine, ColorPalette, Palette
from dynamo.rendering.image_output import ImageExporter

# Main API classes
from dynamo.api import FamilyRenderer, RenderConfig, create_family

__all__ = [
    "FamilyRenderer",
    "RenderConfig",
    "create_family",
    "FamilyRegistry",
    "JULIA_PRESETS",
    "DynamicalFamily",
    "JuliaSet",
    "CoveringMap",
    "EscapeTimeIterator",
    "Bounds",
    "PointGrid",
    "OrbitSchema",
    "PointInfo",
    "PointKind",
    "EscapeState",
    "EscapeKind",
    "PeriodicData",
    "solve_polynomial",
    "Coloring",
    "ColoringEngine",
    "ColorPalette",
    "Palette",
    "ImageExporter",
]
