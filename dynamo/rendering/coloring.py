"""
Coloring of classification results and palette management.

Escaping points are colored by their potential through a cyclic gradient;
points attracted to a cycle are colored by one of several interior
algorithms, which pick a hue from the period and a luminosity from the
preperiod, the multiplier or a smooth internal potential.
"""

import json
import math
import cmath
import numpy as np
from typing import Any, Dict, List, Tuple, Union, Optional
from dataclasses import dataclass, field
from abc import ABC, abstractmethod
import logging
from pathlib import Path

import matplotlib
import matplotlib.colors as mcolors

from ..core.escape import DEFAULT_PERIODICITY_TOLERANCE
from ..core.types import PeriodicData, PointInfo, PointKind

logger = logging.getLogger(__name__)

TAU = 2.0 * math.pi
SUPERATTRACTING_THRESHOLD = 1e-10
PARABOLIC_THRESHOLD = 1e-5
DEFAULT_FILL_RATE = 0.015


@dataclass
class ColorRGB:
    """RGB color representation."""
    r: float
    g: float
    b: float

    def __post_init__(self):
        """Validate RGB values."""
        for component in [self.r, self.g, self.b]:
            if not 0 <= component <= 1:
                raise ValueError("RGB components must be between 0 and 1")

    def to_tuple(self) -> Tuple[float, float, float]:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)

    def to_uint8_tuple(self) -> Tuple[int, int, int]:
        """Convert to 8-bit RGB tuple."""
        return (int(round(self.r * 255)), int(round(self.g * 255)), int(round(self.b * 255)))

    def to_list(self) -> List[float]:
        return [self.r, self.g, self.b]

    @classmethod
    def from_hsv(cls, hue: float, saturation: float, value: float) -> 'ColorRGB':
        """Create a color from HSV components; the hue wraps around."""
        hsv = np.array([hue % 1.0, np.clip(saturation, 0.0, 1.0), np.clip(value, 0.0, 1.0)])
        r, g, b = mcolors.hsv_to_rgb(hsv)
        return cls(float(r), float(g), float(b))

    @classmethod
    def parse(cls, value: Union['ColorRGB', Tuple[float, float, float], List[float], str]) -> 'ColorRGB':
        """Accept a ColorRGB, an RGB triple or any matplotlib color spec."""
        if isinstance(value, ColorRGB):
            return value
        if isinstance(value, str):
            return cls(*mcolors.to_rgb(value))
        if isinstance(value, (tuple, list)) and len(value) == 3:
            return cls(float(value[0]), float(value[1]), float(value[2]))
        raise ValueError(f"Invalid color format: {value}")


class Palette:
    """Color gradient with linear interpolation."""

    def __init__(self, colors: List[Union[ColorRGB, Tuple[float, float, float]]],
                 name: str = "Custom"):
        """
        Initialize color palette.

        Args:
            colors: List of colors in the palette
            name: Human-readable name for the palette
        """
        self.name = name
        self.colors = [ColorRGB.parse(color) for color in colors]

        if len(self.colors) < 2:
            raise ValueError("Palette must contain at least 2 colors")

    def __eq__(self, other) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        return self.name == other.name and self.colors == other.colors

    def interpolate(self, t: Union[float, np.ndarray]) -> Union[ColorRGB, np.ndarray]:
        """
        Interpolate color at position t (0-1).

        Args:
            t: Position in palette (0-1) or array of positions

        Returns:
            Interpolated color, or an array with a trailing RGB axis
        """
        if isinstance(t, (int, float)):
            rgb = self._interpolate_array(np.array([t], dtype=np.float64), closed=False)[0]
            return ColorRGB(*(float(v) for v in rgb))
        return self._interpolate_array(np.asarray(t, dtype=np.float64), closed=False)

    def interpolate_cyclic(self, t: Union[float, np.ndarray]) -> Union[ColorRGB, np.ndarray]:
        """Interpolate with t taken modulo 1; the last color blends back into the first."""
        if isinstance(t, (int, float)):
            rgb = self._interpolate_array(np.array([t], dtype=np.float64), closed=True)[0]
            return ColorRGB(*(float(v) for v in rgb))
        return self._interpolate_array(np.asarray(t, dtype=np.float64), closed=True)

    def _interpolate_array(self, t: np.ndarray, closed: bool) -> np.ndarray:
        """Interpolate array of color values efficiently."""
        colors = np.array([c.to_tuple() for c in self.colors])
        if closed:
            colors = np.vstack([colors, colors[:1]])
            t = np.mod(t, 1.0)
        else:
            t = np.clip(t, 0.0, 1.0)

        knots = np.linspace(0.0, 1.0, len(colors))
        rgb = np.stack([np.interp(t, knots, colors[:, k]) for k in range(3)], axis=-1)
        return np.clip(rgb, 0.0, 1.0)

    def to_matplotlib_colormap(self, n_colors: int = 256):
        """Convert palette to matplotlib colormap."""
        t_values = np.linspace(0, 1, n_colors)
        return mcolors.ListedColormap(self.interpolate(t_values), name=self.name)

    @classmethod
    def from_matplotlib(cls, cmap_name: str, n_samples: int = 32) -> 'Palette':
        """Create palette from matplotlib colormap."""
        cmap = matplotlib.colormaps[cmap_name]
        t_values = np.linspace(0, 1, n_samples)
        colors = []

        for t in t_values:
            rgba = cmap(t)
            colors.append(ColorRGB(float(rgba[0]), float(rgba[1]), float(rgba[2])))

        return cls(colors, name=cmap_name)

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'colors': [c.to_list() for c in self.colors]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Palette':
        return cls(data['colors'], name=data.get('name', "Custom"))


@dataclass
class DiscretePalette:
    """
    Colors for discrete hues such as cycle periods.

    Consecutive hues are spread around the color wheel by a fixed step so
    that small periods get clearly distinct colors; luminosity modulates
    the brightness.
    """

    hue_step: float = 0.6180339887498949
    hue_offset: float = 0.0
    saturation: float = 0.7
    brightness: float = 0.75
    contrast: float = 0.25

    def map_hsv(self, hue: float, luminosity: float) -> ColorRGB:
        if not math.isfinite(luminosity):
            luminosity = 0.0
        luminosity = min(1.0, max(-1.0, luminosity))
        return ColorRGB.from_hsv(self.hue_offset + self.hue_step * hue,
                                 self.saturation,
                                 self.brightness + self.contrast * luminosity)

    def to_dict(self) -> Dict[str, float]:
        return dict(self.__dict__)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiscretePalette':
        return cls(**{k: float(v) for k, v in data.items()})


def _default_gradient() -> Palette:
    return Palette([
        (0.0, 0.03, 0.39),
        (0.13, 0.42, 0.8),
        (0.93, 1.0, 1.0),
        (1.0, 0.67, 0.0),
        (0.0, 0.01, 0.0),
    ], name="Default")


@dataclass
class ColorPalette:
    """
    Full palette used to color a classification grid.

    Attributes:
        gradient: Cyclic gradient for escaping points
        period: Potential units per cycle of the gradient
        phase: Offset into the gradient, in [0, 1)
        period_coloring: Hue table for interior periods
        in_color: Color of bounded, unclassified points
        wandering_color: Color of bounded non-periodic points
    """

    gradient: Palette = field(default_factory=_default_gradient)
    period: float = 24.0
    phase: float = 0.0
    period_coloring: DiscretePalette = field(default_factory=DiscretePalette)
    in_color: ColorRGB = field(default_factory=lambda: ColorRGB(0.0, 0.0, 0.0))
    wandering_color: ColorRGB = field(default_factory=lambda: ColorRGB(0.5, 0.5, 0.5))

    def __post_init__(self):
        if not self.period > 0:
            raise ValueError("Palette period must be positive")
        self.phase = self.phase % 1.0

    def map_potential(self, potential: float) -> ColorRGB:
        """Color of an escaping point."""
        if not math.isfinite(potential):
            return self.in_color
        return self.gradient.interpolate_cyclic(potential / self.period + self.phase)

    def scale_period(self, factor: float) -> None:
        if not factor > 0:
            raise ValueError("Scale factor must be positive")
        self.period *= factor

    def shift_phase(self, delta: float) -> None:
        self.phase = (self.phase + delta) % 1.0

    @classmethod
    def white(cls, period: float = 24.0) -> 'ColorPalette':
        """Black level lines on white."""
        return cls(gradient=Palette([(1.0, 1.0, 1.0), (1.0, 1.0, 1.0), (0.0, 0.0, 0.0)], name="White"),
                   period=period, in_color=ColorRGB(1.0, 1.0, 1.0))

    @classmethod
    def black(cls, period: float = 24.0) -> 'ColorPalette':
        """White level lines on black."""
        return cls(gradient=Palette([(0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (1.0, 1.0, 1.0)], name="Black"),
                   period=period, in_color=ColorRGB(0.0, 0.0, 0.0))

    @classmethod
    def random(cls, seed: Optional[int] = None, num_colors: int = 5) -> 'ColorPalette':
        """Random gradient; the same seed gives the same palette."""
        rng = np.random.default_rng(seed)
        colors = [tuple(float(v) for v in rng.random(3)) for _ in range(num_colors)]
        return cls(gradient=Palette(colors, name=f"Random_{seed}"),
                   period=float(rng.uniform(8.0, 64.0)),
                   period_coloring=DiscretePalette(hue_offset=float(rng.random())))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gradient': self.gradient.to_dict(),
            'period': self.period,
            'phase': self.phase,
            'period_coloring': self.period_coloring.to_dict(),
            'in_color': self.in_color.to_list(),
            'wandering_color': self.wandering_color.to_list(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ColorPalette':
        """Build a palette from its dictionary form; missing keys raise ValueError."""
        try:
            return cls(
                gradient=Palette.from_dict(data['gradient']),
                period=float(data['period']),
                phase=float(data['phase']),
                period_coloring=DiscretePalette.from_dict(data['period_coloring']),
                in_color=ColorRGB.parse(data['in_color']),
                wandering_color=ColorRGB.parse(data['wandering_color']),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid palette data: {e}") from e

    def save_to_file(self, filepath: Union[str, Path]) -> None:
        """Save palette as JSON."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved palette to {filepath}")

    @classmethod
    def load_from_file(cls, filepath: Union[str, Path]) -> 'ColorPalette':
        """Load palette from a JSON file written by save_to_file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"No palette found in {filepath}")
        return cls.from_dict(data)


# Interior coloring

def _multiplier_coloring_rate(multiplier: complex) -> float:
    norm = abs(multiplier)
    if norm > SUPERATTRACTING_THRESHOLD:
        return -math.log2(norm) / 40.0
    return 10.0


def _safe_log2(x: float) -> float:
    return math.log2(x) if x > 0.0 else -math.inf


def smooth_preperiod(data: PeriodicData, periodicity_tolerance: float) -> Tuple[float, float]:
    """
    Continuous convergence time of an attracted orbit.

    The residual at detection tells how far past the threshold the orbit
    already was, which refines the integer preperiod. The three regimes
    avoid the singularities of log|multiplier| at 0 and 1.

    Returns:
        (smoothed preperiod, luminosity in [-1, 1])
    """
    hue = float(data.period)
    err = abs(data.final_error) ** 2
    mult_norm = abs(data.multiplier)

    if mult_norm <= SUPERATTRACTING_THRESHOLD:
        ratio = _safe_log2(err) / math.log2(periodicity_tolerance)
        w = 2.0 * _safe_log2(ratio) if ratio > 0.0 else 0.0
        if not math.isfinite(w):
            w = 0.0
        v = data.preperiod - hue * w
        return v, math.tanh(0.1 * v / hue)

    if abs(1.0 - mult_norm) <= PARABOLIC_THRESHOLD:
        w = err / periodicity_tolerance
        v = data.preperiod - hue * w
        return v, math.tanh(0.1 * v / hue)

    rate = _multiplier_coloring_rate(data.multiplier)
    try:
        w = -math.log(err / periodicity_tolerance) / math.log(mult_norm)
    except (ValueError, ZeroDivisionError):
        w = math.nan
    if math.isinf(w) or math.isnan(w):
        w = -0.2
    v = data.preperiod + hue * w
    return v, math.tanh(v * rate / hue)


class InteriorColoringAlgorithm(ABC):
    """Abstract base class for interior coloring algorithms."""

    name = "interior"
    description = ""

    @abstractmethod
    def color_periodic(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        """
        Color of a point attracted to a cycle.

        Args:
            palette: Palette in use
            data: Cycle data reported by the classifier

        Returns:
            Interior color
        """
        pass

    def color_known_potential(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        """Color of a point whose internal potential is known analytically."""
        return self.color_periodic(palette, data)

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __repr__(self) -> str:
        args = ', '.join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"{type(self).__name__}({args})"


class Solid(InteriorColoringAlgorithm):
    name = "solid"
    description = "Color bounded components black"

    def color_periodic(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        return ColorRGB(0.0, 0.0, 0.0)


class Period(InteriorColoringAlgorithm):
    name = "period"
    description = "Color bounded components by period"

    def color_periodic(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        return palette.period_coloring.map_hsv(data.period, 0.0)


class PeriodMultiplier(InteriorColoringAlgorithm):
    name = "period_multiplier"
    description = "Color bounded components by period and norm of multiplier"

    def color_periodic(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        return palette.period_coloring.map_hsv(data.period, math.tanh(abs(data.multiplier)))


class Multiplier(InteriorColoringAlgorithm):
    name = "multiplier"
    description = "Color bounded components by multiplier"

    def color_periodic(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        hue = cmath.phase(data.multiplier) / TAU + 0.5
        return ColorRGB.from_hsv(hue, 1.0, math.tanh(abs(data.multiplier)))


class Preperiod(InteriorColoringAlgorithm):
    name = "preperiod"
    description = "Color bounded components by convergence time"

    def __init__(self, coloring_rate: float = 0.02):
        self.coloring_rate = coloring_rate

    def color_periodic(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        luminosity = math.tanh(data.preperiod * self.coloring_rate / data.period)
        return palette.period_coloring.map_hsv(data.period, luminosity)


class InternalPotential(InteriorColoringAlgorithm):
    name = "internal_potential"
    description = "Color bounded components by internal potential"

    def __init__(self, periodicity_tolerance: float = DEFAULT_PERIODICITY_TOLERANCE):
        if not 0.0 < periodicity_tolerance < 1.0:
            raise ValueError("periodicity_tolerance must lie in (0, 1)")
        self.periodicity_tolerance = periodicity_tolerance

    def color_periodic(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        _, luminosity = smooth_preperiod(data, self.periodicity_tolerance)
        return palette.period_coloring.map_hsv(data.period, luminosity)

    def color_known_potential(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        luminosity = math.tanh(0.1 * data.potential / data.period)
        return palette.period_coloring.map_hsv(data.period, luminosity)


class PreperiodPeriodSmooth(InteriorColoringAlgorithm):
    name = "preperiod_period_smooth"
    description = "Color bounded components by period and internal potential"

    def __init__(self, periodicity_tolerance: float = DEFAULT_PERIODICITY_TOLERANCE,
                 fill_rate: float = DEFAULT_FILL_RATE):
        if not 0.0 < periodicity_tolerance < 1.0:
            raise ValueError("periodicity_tolerance must lie in (0, 1)")
        if fill_rate <= 0:
            raise ValueError("fill_rate must be positive")
        self.periodicity_tolerance = periodicity_tolerance
        self.fill_rate = fill_rate

    def color_periodic(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        v, _ = smooth_preperiod(data, self.periodicity_tolerance)
        return palette.period_coloring.map_hsv(data.period, math.tanh(self.fill_rate * v))

    def color_known_potential(self, palette: ColorPalette, data: PeriodicData) -> ColorRGB:
        luminosity = math.tanh(self.fill_rate * data.potential)
        return palette.period_coloring.map_hsv(data.period, luminosity)


class Coloring:
    """An interior algorithm together with a palette."""

    def __init__(self, algorithm: Optional[InteriorColoringAlgorithm] = None,
                 palette: Optional[ColorPalette] = None):
        self.algorithm = algorithm if algorithm is not None else InternalPotential()
        self.palette = palette if palette is not None else ColorPalette()

    @classmethod
    def default(cls) -> 'Coloring':
        return cls()

    def __repr__(self) -> str:
        return f"Coloring(algorithm={self.algorithm!r})"

    def set_interior_algorithm(self, algorithm: InteriorColoringAlgorithm) -> None:
        self.algorithm = algorithm

    def set_palette(self, palette: ColorPalette) -> None:
        self.palette = palette

    def map_color(self, point_info: PointInfo) -> ColorRGB:
        """Color of one classified point."""
        kind = point_info.kind
        if kind is PointKind.ESCAPING:
            return self.palette.map_potential(point_info.potential)
        if kind is PointKind.PERIODIC:
            return self.algorithm.color_periodic(self.palette, point_info.data)
        if kind is PointKind.PERIODIC_KNOWN_POTENTIAL:
            return self.algorithm.color_known_potential(self.palette, point_info.data)
        if kind is PointKind.WANDERING:
            return self.palette.wandering_color
        if kind is PointKind.MARKED_POINT:
            hue = point_info.class_id / point_info.num_point_classes
            return ColorRGB.from_hsv(hue, 0.8, 1.0)
        return self.palette.in_color

    def map_rgb(self, point_info: PointInfo) -> Tuple[int, int, int]:
        return self.map_color(point_info).to_uint8_tuple()

    def render(self, infos: np.ndarray) -> np.ndarray:
        """
        Color a classification grid.

        Args:
            infos: Object array of PointInfo indexed (i, j) as returned by compute()

        Returns:
            uint8 image of shape (res_y, res_x, 3); row 0 is the top edge
        """
        res_x, res_y = infos.shape
        image = np.zeros((res_y, res_x, 3), dtype=np.uint8)
        cache: Dict[PointInfo, Tuple[int, int, int]] = {}
        for i in range(res_x):
            for j in range(res_y):
                info = infos[i, j]
                rgb = cache.get(info)
                if rgb is None:
                    rgb = self.map_rgb(info)
                    cache[info] = rgb
                image[res_y - 1 - j, i] = rgb
        return image

    def save_palette(self, filepath: Union[str, Path]) -> None:
        self.palette.save_to_file(filepath)

    def load_palette(self, filepath: Union[str, Path]) -> None:
        """Replace the palette with one read from disk; on failure nothing changes."""
        palette = ColorPalette.load_from_file(filepath)
        self.palette = palette
        logger.info(f"Loaded palette from {filepath}")


class ColoringEngine:
    """Catalog of interior algorithms and built-in palettes."""

    def __init__(self):
        """Initialize coloring engine with built-in algorithms."""
        self.algorithms = {
            cls.name: cls for cls in (
                Solid, Period, PeriodMultiplier, Multiplier, Preperiod,
                InternalPotential, PreperiodPeriodSmooth,
            )
        }

        # Built-in palettes
        self.palettes = self._create_builtin_palettes()

    def _create_builtin_palettes(self) -> Dict[str, ColorPalette]:
        """Create built-in color palettes."""
        palettes = {
            'default': ColorPalette(),
            'white': ColorPalette.white(),
            'black': ColorPalette.black(),
        }

        gradients = {
            'hot': [(0, 0, 0), (1, 0, 0), (1, 1, 0), (1, 1, 1)],
            'cool': [(0, 0, 0), (0, 0, 1), (0, 1, 1), (1, 1, 1)],
            'fire': [(0, 0, 0), (0.5, 0, 0), (1, 0, 0), (1, 0.5, 0), (1, 1, 0), (1, 1, 1)],
            'ocean': [(0, 0, 0.2), (0, 0, 0.8), (0, 0.5, 1), (0, 1, 1), (0.5, 1, 1), (1, 1, 1)],
            'rainbow': [(1, 0, 0), (1, 0.5, 0), (1, 1, 0), (0, 1, 0), (0, 1, 1), (0, 0, 1), (0.5, 0, 1)],
        }
        for name, colors in gradients.items():
            palettes[name] = ColorPalette(gradient=Palette(colors, name=name.capitalize()))

        for name in ['viridis', 'plasma', 'inferno', 'magma', 'cividis']:
            palettes[name] = ColorPalette(gradient=Palette.from_matplotlib(name, 32))

        return palettes

    def add_algorithm(self, name: str, algorithm_class: type) -> None:
        """Add a custom interior coloring algorithm."""
        if not issubclass(algorithm_class, InteriorColoringAlgorithm):
            raise ValueError("Algorithm must inherit from InteriorColoringAlgorithm")
        self.algorithms[name] = algorithm_class
        logger.info(f"Added coloring algorithm: {name}")

    def add_palette(self, name: str, palette: ColorPalette) -> None:
        """Add a custom color palette."""
        self.palettes[name] = palette
        logger.info(f"Added color palette: {name}")

    def get_algorithm(self, name: str,
                      periodicity_tolerance: float = DEFAULT_PERIODICITY_TOLERANCE) -> InteriorColoringAlgorithm:
        """Instantiate an interior algorithm by name."""
        if name not in self.algorithms:
            available = ', '.join(self.algorithms.keys())
            raise ValueError(f"Unknown coloring algorithm '{name}'. Available: {available}")
        algorithm_class = self.algorithms[name]
        if algorithm_class in (InternalPotential, PreperiodPeriodSmooth):
            return algorithm_class(periodicity_tolerance)
        return algorithm_class()

    def get_palette(self, name: str) -> ColorPalette:
        """Get a copy of a color palette by name."""
        if name not in self.palettes:
            available = ', '.join(self.palettes.keys())
            raise ValueError(f"Unknown color palette '{name}'. Available: {available}")
        return ColorPalette.from_dict(self.palettes[name].to_dict())

    def list_algorithms(self) -> Dict[str, str]:
        """Get available interior algorithms and their descriptions."""
        return {name: cls.description for name, cls in self.algorithms.items()}

    def list_palettes(self) -> List[str]:
        """Get list of available color palettes."""
        return list(self.palettes.keys())
