"""
Main API for classifying and rendering dynamical families.

This module combines the family catalog, the classifier, the parallel
backend and the coloring into a small high-level interface.
"""

import json
import numpy as np
from typing import Optional, Union, Dict, Any, Tuple, List
from dataclasses import dataclass, asdict, fields
from pathlib import Path
import logging
import time

from .core.dynamics import DynamicalFamily
from .core.point_grid import Bounds, PointGrid
from .core.types import OrbitSchema, ParamStack
from .profiles.registry import FamilyRegistry
from .rendering.coloring import Coloring, ColoringEngine
from .rendering.image_output import ImageExporter, RenderMetadata, draw_curves
from .acceleration.multiprocessing import MultiprocessingAccelerator, get_optimal_process_count

logger = logging.getLogger(__name__)

CURVE_KINDS = ('marked_cycle', 'dynatomic', 'misiurewicz')
SPECIAL_POINT_KINDS = ('critical', 'cycles', 'precycles')


@dataclass
class RenderConfig:
    """Configuration for rendering a family."""

    # Image parameters
    width: int = 512
    height: Optional[int] = None  # inferred from the bounds when None
    bounds: Optional[Tuple[float, float, float, float]] = None  # min_x, max_x, min_y, max_y

    # Iteration budget
    max_iterations: int = 1024
    min_iterations: int = 0

    # Coloring
    coloring_algorithm: Optional[str] = None  # family default when None
    color_palette: str = 'default'
    palette_file: Optional[str] = None

    # Performance
    use_multiprocessing: bool = False
    num_processes: Optional[int] = None
    tile_size: int = 64

    # Output
    jpeg_quality: int = 95
    save_metadata: bool = True

    def validate(self):
        """Validate configuration parameters."""
        if self.width <= 0:
            raise ValueError("Width must be positive")

        if self.height is not None and self.height <= 0:
            raise ValueError("Height must be positive")

        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be positive")

        if self.min_iterations < 0 or self.min_iterations > self.max_iterations:
            raise ValueError("min_iterations must lie between 0 and max_iterations")

        if self.bounds is not None:
            if len(self.bounds) != 4:
                raise ValueError("bounds must be (min_x, max_x, min_y, max_y)")
            min_x, max_x, min_y, max_y = self.bounds
            if min_x >= max_x or min_y >= max_y:
                raise ValueError("Invalid bounds: min values must be less than max")

        if self.tile_size < 1:
            raise ValueError("tile_size must be positive")

        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError("jpeg_quality must lie between 1 and 100")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderConfig':
        """Create a configuration from a dictionary; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration parameter(s): {', '.join(sorted(unknown))}")
        data = dict(data)
        if data.get('bounds') is not None:
            data['bounds'] = tuple(data['bounds'])
        config = cls(**data)
        config.validate()
        return config

    @classmethod
    def from_file(cls, filepath: Union[str, Path]) -> 'RenderConfig':
        """Load a configuration from a JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {filepath} must contain an object")
        return cls.from_dict(data)


def parse_curve(spec: str) -> Tuple[str, Tuple[int, ...]]:
    """
    Parse a curve selection such as "marked_cycle:3" or "misiurewicz:2,1".

    Returns:
        (curve kind, integer arguments)
    """
    kind, _, args = spec.partition(':')
    kind = kind.strip().lower()
    if kind not in CURVE_KINDS:
        raise ValueError(f"Unknown curve '{kind}'. Available: {', '.join(CURVE_KINDS)}")
    try:
        values = tuple(int(a) for a in args.split(',') if a.strip())
    except ValueError:
        raise ValueError(f"Invalid curve arguments in '{spec}'")
    expected = 2 if kind == 'misiurewicz' else 1
    if len(values) != expected:
        raise ValueError(f"Curve '{kind}' takes {expected} integer argument(s)")
    return kind, values


def create_family(name: str, parameters: Optional[Dict[str, Any]] = None,
                  point_grid: Optional[PointGrid] = None,
                  julia: Optional[complex] = None,
                  curve: Optional[str] = None,
                  max_iter: int = 1024, min_iter: int = 0) -> DynamicalFamily:
    """
    Construct a family instance.

    Args:
        name: Registered family name
        parameters: Meta-parameter overrides
        point_grid: Grid of the parameter plane
        julia: If given, return the dynamical plane selected by this point
        curve: Optional covering curve of the parameter plane, e.g. "dynatomic:2"
        max_iter, min_iter: Iteration budget

    Returns:
        Family instance ready to classify
    """
    family = FamilyRegistry.create_family(name, parameters, point_grid, max_iter, min_iter)

    if curve is not None:
        kind, args = parse_curve(curve)
        family = getattr(family, f"{kind}_curve")(*args)

    if julia is not None:
        child = family.julia_set(complex(julia))
        if child is None:
            raise ValueError(f"{family.name} is a dynamical plane and has no Julia sets")
        family = child

    return family


class FamilyRenderer:
    """Classification and rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """
        Initialize renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
        """
        self.config = config or RenderConfig()
        self.config.validate()

        self.coloring_engine = ColoringEngine()
        self.image_exporter = ImageExporter()

        self.accelerator = None
        if self.config.use_multiprocessing:
            num_proc = self.config.num_processes or get_optimal_process_count()
            self.accelerator = MultiprocessingAccelerator(num_proc, self.config.tile_size)

        logger.info(f"FamilyRenderer initialized: width {self.config.width}, "
                    f"max_iterations={self.config.max_iterations}")

    def prepare(self, family: DynamicalFamily) -> DynamicalFamily:
        """Clone a family and apply the configured grid and iteration budget."""
        family = family.clone()
        family.set_max_iter(self.config.max_iterations)
        family.set_min_iter(self.config.min_iterations)

        if self.config.bounds is not None:
            bounds = Bounds.from_tuple(self.config.bounds)
        else:
            bounds = family.point_grid.bounds.copy()

        if self.config.height is not None:
            family.point_grid = PointGrid(self.config.width, self.config.height, bounds)
        else:
            family.point_grid = PointGrid.new_by_res_x(self.config.width, bounds)
        return family

    def classify(self, family: DynamicalFamily, progress_callback=None) -> np.ndarray:
        """
        Classify every sample of an already prepared family.

        Returns:
            Object array of PointInfo with shape (res_x, res_y)
        """
        if self.accelerator is not None:
            return self.accelerator.compute(family, progress_callback)
        return family.compute()

    def coloring_for(self, family: DynamicalFamily) -> Coloring:
        """Coloring selected by the configuration, falling back to the family's own."""
        coloring = family.default_coloring()
        if self.config.coloring_algorithm is not None:
            coloring.set_interior_algorithm(self.coloring_engine.get_algorithm(
                self.config.coloring_algorithm, family.periodicity_tolerance()))
        if self.config.palette_file is not None:
            coloring.load_palette(self.config.palette_file)
        else:
            coloring.set_palette(self.coloring_engine.get_palette(self.config.color_palette))
        return coloring

    def colorize(self, family: DynamicalFamily, infos: np.ndarray) -> np.ndarray:
        """Color a classification grid; returns a uint8 (res_y, res_x, 3) image."""
        return self.coloring_for(family).render(infos)

    def render(self, family: DynamicalFamily, output_path: Optional[Path] = None,
               curves: Optional[List[List[complex]]] = None,
               progress_callback=None) -> np.ndarray:
        """
        Classify and color a family, optionally saving the image.

        Args:
            family: Family to render (not modified)
            output_path: Optional output file path
            curves: Optional polylines drawn over the image
            progress_callback: Called with (completed_tiles, total_tiles) in parallel mode

        Returns:
            uint8 RGB image array (res_y, res_x, 3)
        """
        start_time = time.time()
        logger.info(f"Starting render: {family.name}")

        family = self.prepare(family)
        infos = self.classify(family, progress_callback)
        image = self.colorize(family, infos)

        if curves:
            image = draw_curves(image, family.point_grid, curves)

        if output_path:
            self._save_image(image, output_path, time.time() - start_time, family)

        logger.info(f"Render complete: {time.time() - start_time:.2f}s")
        return image

    def _save_image(self, image: np.ndarray, output_path: Path, render_time: float,
                    family: DynamicalFamily):
        """Save rendered image with metadata."""
        output_path = Path(output_path)

        metadata = None
        if self.config.save_metadata:
            metadata = build_metadata(family, self.config, render_time)

        self.image_exporter.save_image(image, output_path, metadata, self.config.jpeg_quality)

    def special_points(self, family: DynamicalFamily, kind: str,
                       period: int = 1, preperiod: int = 0) -> List[complex]:
        """
        Marked points of a family.

        Args:
            family: Family to query
            kind: One of 'critical', 'cycles', 'precycles'
            period, preperiod: Orbit data for cycles and precycles

        Returns:
            List of points (empty when unsupported)
        """
        if kind == 'critical':
            return family.critical_points()
        if kind == 'cycles':
            return family.cycles(period)
        if kind == 'precycles':
            return family.precycles(OrbitSchema(preperiod, period))
        raise ValueError(f"Unknown point kind '{kind}'. Available: {', '.join(SPECIAL_POINT_KINDS)}")

    def trace_ray(self, family: DynamicalFamily, theta: float, **kwargs) -> Optional[List[complex]]:
        """External ray at angle theta, traced on the configured grid."""
        return self.prepare(family).external_ray(theta, **kwargs)

    def trace_equipotential(self, family: DynamicalFamily, point: complex,
                            **kwargs) -> Optional[List[complex]]:
        """Equipotential through point, traced on the configured grid."""
        return self.prepare(family).equipotential(point, **kwargs)


def build_metadata(family: DynamicalFamily, config: RenderConfig,
                   render_time: float) -> RenderMetadata:
    """Describe a render of a prepared family."""
    grid = family.point_grid
    meta = family.get_meta_params()
    if isinstance(meta, ParamStack):
        meta = meta.meta_params
    family_parameters = meta.to_dict() if hasattr(meta, 'to_dict') else {}

    julia_parameter = None
    if family.is_dynamical():
        param = family.get_param()
        if isinstance(param, (complex, float, int)):
            param = complex(param)
            julia_parameter = (param.real, param.imag)

    return RenderMetadata(
        family=family.name,
        bounds=grid.bounds.to_tuple(),
        resolution=(grid.res_x, grid.res_y),
        max_iterations=family.max_iter,
        min_iterations=family.min_iter,
        escape_radius=family.escape_radius(),
        coloring_algorithm=config.coloring_algorithm or 'default',
        color_palette=config.palette_file or config.color_palette,
        render_time_seconds=render_time,
        tiles_used=config.use_multiprocessing,
        family_parameters=family_parameters,
        julia_parameter=julia_parameter,
    )
