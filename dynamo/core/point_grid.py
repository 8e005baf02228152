"""
Sampling lattices over rectangles of the complex plane.

This module maps between pixel coordinates of a sampling grid and complex
coordinates, and keeps the grid's aspect ratio consistent with the region
it covers when either the resolution or the region changes.
"""

import math
import numpy as np
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


@dataclass
class Bounds:
    """Axis-aligned rectangle in the complex plane."""

    min_x: float = -1.0
    max_x: float = 1.0
    min_y: float = -1.0
    max_y: float = 1.0

    def __post_init__(self):
        """Validate that the rectangle has positive width and height."""
        if self.is_nan():
            return
        if self.max_x <= self.min_x or self.max_y <= self.min_y:
            raise ValueError("Invalid bounds: max values must be greater than min values")

    @property
    def range_x(self) -> float:
        return self.max_x - self.min_x

    @property
    def range_y(self) -> float:
        return self.max_y - self.min_y

    @property
    def area(self) -> float:
        return self.range_x * self.range_y

    @property
    def aspect_ratio(self) -> float:
        return self.range_y / self.range_x

    @property
    def mid_x(self) -> float:
        return 0.5 * (self.max_x + self.min_x)

    @property
    def mid_y(self) -> float:
        return 0.5 * (self.max_y + self.min_y)

    def center(self) -> complex:
        return complex(self.mid_x, self.mid_y)

    def translate(self, translation: complex) -> None:
        """Shift the rectangle by a complex offset."""
        self.min_x += translation.real
        self.max_x += translation.real
        self.min_y += translation.imag
        self.max_y += translation.imag

    def zoom(self, scale: float, base_point: complex) -> None:
        """
        Scale the rectangle uniformly about a base point.

        Args:
            scale: Scale factor (< 1 zooms in)
            base_point: Point that stays fixed
        """
        if not scale > 0.0:
            raise ValueError(f"Zoom scale must be positive, got {scale}")
        self.translate(-base_point)
        self.min_x *= scale
        self.max_x *= scale
        self.min_y *= scale
        self.max_y *= scale
        self.translate(base_point)

    def recenter(self, new_center: complex) -> None:
        self.translate(new_center - self.center())

    def contains(self, z: complex) -> bool:
        return self.min_x <= z.real < self.max_x and self.min_y <= z.imag < self.max_y

    def is_nan(self) -> bool:
        return any(math.isnan(v) for v in (self.min_x, self.max_x, self.min_y, self.max_y))

    def to_tuple(self) -> Tuple[float, float, float, float]:
        """Get bounds as (xmin, xmax, ymin, ymax)."""
        return (self.min_x, self.max_x, self.min_y, self.max_y)

    @classmethod
    def from_tuple(cls, values: Tuple[float, float, float, float]) -> 'Bounds':
        if len(values) != 4:
            raise ValueError("bounds must be (xmin, xmax, ymin, ymax)")
        return cls(*(float(v) for v in values))

    @classmethod
    def centered_square(cls, radius: float) -> 'Bounds':
        return cls(-radius, radius, -radius, radius)

    @classmethod
    def square(cls, radius: float, center: complex) -> 'Bounds':
        return cls.rect(radius, radius, center)

    @classmethod
    def rect(cls, radius_x: float, radius_y: float, center: complex) -> 'Bounds':
        center = complex(center)
        return cls(center.real - radius_x, center.real + radius_x,
                   center.imag - radius_y, center.imag + radius_y)

    def copy(self) -> 'Bounds':
        return Bounds(self.min_x, self.max_x, self.min_y, self.max_y)


class PointGrid:
    """Resolution plus region: the lattice a family is sampled on."""

    def __init__(self, res_x: int, res_y: int, bounds: Optional[Bounds] = None):
        """
        Initialize a sampling grid.

        Args:
            res_x, res_y: Number of samples along each axis
            bounds: Region of the complex plane (defaults to [-1, 1]^2)
        """
        if bounds is None:
            bounds = Bounds()
        if res_x <= 0 or res_y <= 0:
            raise ValueError("Width and height must be positive")
        if bounds.is_nan():
            raise ValueError("Bounds contain NaN values")

        self.res_x = int(res_x)
        self.res_y = int(res_y)
        self.bounds = bounds

    def __repr__(self) -> str:
        return f"PointGrid(res_x={self.res_x}, res_y={self.res_y}, bounds={self.bounds!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, PointGrid):
            return NotImplemented
        return (self.res_x, self.res_y, self.bounds) == (other.res_x, other.res_y, other.bounds)

    @staticmethod
    def infer_height(res_x: int, bounds: Bounds) -> int:
        """Height matching the aspect ratio of the bounds for a given width."""
        if res_x <= 0:
            raise ValueError("Width must be positive")
        return max(1, int(res_x * bounds.range_y / bounds.range_x))

    @staticmethod
    def infer_width(res_y: int, bounds: Bounds) -> int:
        """Width matching the aspect ratio of the bounds for a given height."""
        if res_y <= 0:
            raise ValueError("Height must be positive")
        return max(1, int(res_y * bounds.range_x / bounds.range_y))

    @classmethod
    def new_by_res_x(cls, res_x: int, bounds: Bounds) -> 'PointGrid':
        return cls(res_x, cls.infer_height(res_x, bounds), bounds)

    @classmethod
    def new_by_res_y(cls, res_y: int, bounds: Bounds) -> 'PointGrid':
        return cls(cls.infer_width(res_y, bounds), res_y, bounds)

    def new_with_same_height(self, bounds: Bounds) -> 'PointGrid':
        return PointGrid.new_by_res_y(self.res_y, bounds.copy())

    def new_with_same_width(self, bounds: Bounds) -> 'PointGrid':
        return PointGrid.new_by_res_x(self.res_x, bounds.copy())

    def with_width(self, res_x: int) -> 'PointGrid':
        return PointGrid.new_by_res_x(res_x, self.bounds.copy())

    def with_height(self, res_y: int) -> 'PointGrid':
        return PointGrid.new_by_res_y(res_y, self.bounds.copy())

    def copy(self) -> 'PointGrid':
        return PointGrid(self.res_x, self.res_y, self.bounds.copy())

    def pixel_width(self) -> float:
        return self.bounds.range_x / self.res_x

    def pixel_height(self) -> float:
        return self.bounds.range_y / self.res_y

    def shape(self) -> Tuple[int, int]:
        return (self.res_x, self.res_y)

    def map_pixel(self, pixel_x: float, pixel_y: float) -> complex:
        """Convert lattice coordinates to a complex number."""
        real = self.bounds.min_x + pixel_x * self.pixel_width()
        imag = self.bounds.min_y + pixel_y * self.pixel_height()
        return complex(real, imag)

    def map_pos(self, pos: Tuple[float, float]) -> complex:
        """Convert screen coordinates (row 0 at the top) to a complex number."""
        return self.map_pixel(pos[0], self.res_y - 1 - pos[1])

    def map_vec2(self, vec2: Tuple[float, float]) -> complex:
        """Convert a screen displacement to a complex displacement."""
        return complex(vec2[0] * self.pixel_width(), -vec2[1] * self.pixel_height())

    def locate_point(self, z: complex) -> Tuple[float, float]:
        """
        Approximate inverse of map_pixel.

        Returns lattice coordinates (x, y); no clipping is applied.
        """
        x = (z.real - self.bounds.min_x) / self.pixel_width()
        y = (z.imag - self.bounds.min_y) / self.pixel_height()
        return (x, y)

    def locate_screen_point(self, z: complex) -> Tuple[float, float]:
        """Inverse of map_pos: screen coordinates with row 0 at the top."""
        x, y = self.locate_point(z)
        return (x, self.res_y - 1 - y)

    def locate_point_safe(self, z: complex) -> Optional[Tuple[int, int]]:
        """Lattice cell containing z, or None if z lies outside the bounds."""
        if not self.bounds.contains(z):
            return None
        x, y = self.locate_point(z)
        return (min(int(x), self.res_x - 1), min(int(y), self.res_y - 1))

    def center(self) -> complex:
        return self.bounds.center()

    def recenter(self, new_center: complex) -> None:
        self.bounds.recenter(new_center)

    def translate(self, translation: complex) -> None:
        self.bounds.translate(translation)

    def zoom(self, scale: float, base_point: complex) -> None:
        self.bounds.zoom(scale, base_point)

    def change_bounds(self, new_bounds: Bounds) -> None:
        """Adopt new bounds, keeping the width and inferring the height."""
        if new_bounds.is_nan():
            raise ValueError("Bounds contain NaN values")
        self.res_y = self.infer_height(self.res_x, new_bounds)
        self.bounds = new_bounds

    def resize_x(self, res_x: int) -> None:
        self.res_y = self.infer_height(res_x, self.bounds)
        self.res_x = int(res_x)

    def resize_y(self, res_y: int) -> None:
        self.res_x = self.infer_width(res_y, self.bounds)
        self.res_y = int(res_y)

    def to_array(self) -> np.ndarray:
        """Complex coordinates of every sample, indexed [i, j]."""
        xs = self.bounds.min_x + np.arange(self.res_x) * self.pixel_width()
        ys = self.bounds.min_y + np.arange(self.res_y) * self.pixel_height()
        return xs[:, np.newaxis] + 1j * ys[np.newaxis, :]

    def iter(self) -> Iterator[Tuple[Tuple[int, int], complex]]:
        """Row-major traversal of ((i, j), z) pairs."""
        for j in range(self.res_y):
            for i in range(self.res_x):
                yield (i, j), self.map_pixel(i, j)

    def rows(self, row_start: int, row_end: int) -> Iterator[Tuple[Tuple[int, int], complex]]:
        """Row-major traversal restricted to rows [row_start, row_end)."""
        for j in range(max(0, row_start), min(self.res_y, row_end)):
            for i in range(self.res_x):
                yield (i, j), self.map_pixel(i, j)

    def __iter__(self) -> Iterator[Tuple[Tuple[int, int], complex]]:
        return self.iter()

    def __len__(self) -> int:
        return self.res_x * self.res_y


DEFAULT_RESOLUTION = 256


def default_grid(bounds: Optional[Bounds] = None) -> PointGrid:
    """Grid with the default height over the given bounds."""
    if bounds is None:
        return PointGrid(DEFAULT_RESOLUTION, DEFAULT_RESOLUTION, Bounds())
    return PointGrid.new_by_res_y(DEFAULT_RESOLUTION, bounds.copy())
