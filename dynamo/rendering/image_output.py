"""
Image export for rendered classification grids.

Images are written with Pillow; PNG files carry the render parameters as
a JSON text chunk so a picture can be reproduced from the file alone.
Traced curves (external rays, equipotentials) can be drawn on top.
"""

import numpy as np
from typing import Dict, Any, List, Optional, Sequence, Tuple
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

from PIL import Image, ImageDraw, PngImagePlugin

from ..core.point_grid import PointGrid

logger = logging.getLogger(__name__)

METADATA_KEY = "DynamoMetadata"


@dataclass
class RenderMetadata:
    """Metadata for renders."""

    # Family parameters
    family: str
    bounds: Tuple[float, float, float, float]  # min_x, max_x, min_y, max_y
    resolution: Tuple[int, int]  # width, height
    max_iterations: int
    escape_radius: float

    # Rendering parameters
    coloring_algorithm: str
    color_palette: str

    # Timing and performance
    render_time_seconds: float
    tiles_used: bool = False

    # Generation info
    timestamp: str = ""
    software_version: str = "0.1.0"

    min_iterations: int = 0
    family_parameters: Dict[str, Any] = field(default_factory=dict)
    julia_parameter: Optional[Tuple[float, float]] = None

    def __post_init__(self):
        """Set default timestamp if not provided."""
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()
        self.bounds = tuple(self.bounds)
        self.resolution = tuple(self.resolution)
        if self.julia_parameter is not None:
            self.julia_parameter = tuple(self.julia_parameter)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        """Create metadata from dictionary."""
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        """Create metadata from JSON string."""
        data = json.loads(json_str)
        return cls.from_dict(data)


class ImageExporter:
    """Image export with metadata support."""

    def __init__(self):
        """Initialize image exporter."""
        self.supported_formats = {
            '.png': self._save_png,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
        }

    def save_image(self, image_array: np.ndarray, filepath: Path,
                   metadata: Optional[RenderMetadata] = None,
                   quality: int = 95) -> None:
        """
        Save RGB image array to file with metadata.

        Args:
            image_array: RGB image array (height, width, 3), uint8 or floats in 0-1
            filepath: Output file path
            metadata: Render metadata to embed
            quality: JPEG quality (1-100)
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        pil_image = Image.fromarray(self._prepare_image_array(image_array))

        save_method = self.supported_formats[suffix]
        save_method(pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")

    def _prepare_image_array(self, image_array: np.ndarray) -> np.ndarray:
        """Prepare and validate image array for export."""
        if len(image_array.shape) != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        if image_array.dtype != np.uint8:
            if np.issubdtype(image_array.dtype, np.floating):
                image_array = np.clip(image_array, 0.0, 1.0)
                image_array = (image_array * 255).astype(np.uint8)
            else:
                image_array = np.clip(image_array, 0, 255).astype(np.uint8)

        return image_array

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as PNG with metadata."""
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Title", f"Family: {metadata.family}")
            pnginfo.add_text("Software", f"dynamo v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text(METADATA_KEY, metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo, compress_level=6)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        """Save as JPEG; metadata goes to a companion JSON file."""
        pil_image.save(filepath, "JPEG", quality=quality, optimize=True)

        if metadata:
            json_path = filepath.with_suffix('.json')
            with open(json_path, 'w') as f:
                f.write(metadata.to_json())
            logger.info(f"Saved metadata: {json_path}")

    def extract_metadata_from_image(self, filepath: Path) -> Optional[RenderMetadata]:
        """
        Extract render metadata from a saved image.

        Args:
            filepath: Path to image file

        Returns:
            Extracted metadata or None
        """
        filepath = Path(filepath)

        with Image.open(filepath) as img:
            text = getattr(img, 'text', {})
            if METADATA_KEY in text:
                return RenderMetadata.from_json(text[METADATA_KEY])

        if filepath.suffix.lower() in ['.jpg', '.jpeg']:
            json_path = filepath.with_suffix('.json')
            if json_path.exists():
                with open(json_path, 'r') as f:
                    return RenderMetadata.from_json(f.read())

        return None


def draw_curves(image_array: np.ndarray, grid: PointGrid,
                curves: Sequence[Sequence[complex]],
                color: Tuple[int, int, int] = (255, 255, 255),
                width: int = 1) -> np.ndarray:
    """
    Draw polylines given in plane coordinates over a rendered image.

    Args:
        image_array: uint8 image (res_y, res_x, 3) produced for grid
        grid: Grid the image was rendered on
        curves: Point sequences in the complex plane
        color: Line color
        width: Line width in pixels

    Returns:
        New image array with the curves drawn
    """
    pil_image = Image.fromarray(image_array.astype(np.uint8))
    draw = ImageDraw.Draw(pil_image)
    for curve in curves:
        points: List[Tuple[float, float]] = [grid.locate_screen_point(z) for z in curve]
        if len(points) >= 2:
            draw.line(points, fill=color, width=width)
        elif points:
            draw.point(points, fill=color)
    return np.asarray(pil_image)
