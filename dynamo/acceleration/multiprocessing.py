"""
Multiprocessing backend for parallel grid classification.

The lattice is cut into rectangular tiles; each worker process receives a
pickled clone of the family and classifies its tile with the full grid's
map_pixel, so the assembled result is identical to a sequential pass.
"""

import numpy as np
from typing import List, Optional, Callable
import multiprocessing as mp
import logging
import time
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed

from ..core.dynamics import DynamicalFamily

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class TileSpec:
    """Specification for a single tile in parallel classification."""
    tile_id: int
    x_start: int
    x_end: int
    y_start: int
    y_end: int

    @property
    def width(self) -> int:
        return self.x_end - self.x_start

    @property
    def height(self) -> int:
        return self.y_end - self.y_start


@dataclass
class TileResult:
    """Result from processing a single tile."""
    tile_id: int
    infos: np.ndarray
    x_start: int
    y_start: int
    processing_time: float


def create_tile_grid(width: int, height: int, tile_size: int = 64) -> List[TileSpec]:
    """
    Create a grid of tiles for parallel processing.

    Args:
        width: Lattice width (res_x)
        height: Lattice height (res_y)
        tile_size: Target tile size (samples)

    Returns:
        List of TileSpec objects covering the lattice exactly once
    """
    if tile_size <= 0:
        raise ValueError("tile_size must be positive")

    tiles = []
    tile_id = 0

    for y in range(0, height, tile_size):
        for x in range(0, width, tile_size):
            tiles.append(TileSpec(
                tile_id=tile_id,
                x_start=x,
                x_end=min(x + tile_size, width),
                y_start=y,
                y_end=min(y + tile_size, height),
            ))
            tile_id += 1

    logger.debug(f"Created {len(tiles)} tiles of target size {tile_size}x{tile_size}")
    return tiles


def process_tile(family: DynamicalFamily, tile: TileSpec) -> TileResult:
    """
    Classify the samples of one tile.

    Args:
        family: Family clone owned by this worker
        tile: Tile to classify

    Returns:
        TileResult holding an object array of PointInfo indexed [i, j]
    """
    start_time = time.time()
    grid = family.point_grid
    iterator = family.iterator()
    infos = np.empty((tile.width, tile.height), dtype=object)

    for j in range(tile.y_start, tile.y_end):
        for i in range(tile.x_start, tile.x_end):
            infos[i - tile.x_start, j - tile.y_start] = family.classify_point(
                grid.map_pixel(i, j), iterator)

    return TileResult(
        tile_id=tile.tile_id,
        infos=infos,
        x_start=tile.x_start,
        y_start=tile.y_start,
        processing_time=time.time() - start_time,
    )


def assemble_tiles(tile_results: List[TileResult], total_width: int, total_height: int) -> np.ndarray:
    """Place tile results into a single (res_x, res_y) array."""
    infos = np.empty((total_width, total_height), dtype=object)
    for result in tile_results:
        tile_w, tile_h = result.infos.shape
        infos[result.x_start:result.x_start + tile_w,
              result.y_start:result.y_start + tile_h] = result.infos
    return infos


class MultiprocessingAccelerator:
    """Multiprocessing-based parallel grid classification."""

    def __init__(self, num_processes: Optional[int] = None, tile_size: int = 64):
        """
        Initialize multiprocessing accelerator.

        Args:
            num_processes: Number of worker processes (None for CPU count)
            tile_size: Size of tiles for parallel processing
        """
        if num_processes is None:
            self.num_processes = mp.cpu_count()
        else:
            self.num_processes = max(1, num_processes)

        if tile_size <= 0:
            raise ValueError("tile_size must be positive")
        self.tile_size = tile_size
        logger.info(f"Multiprocessing accelerator: {self.num_processes} processes, "
                    f"{tile_size}x{tile_size} tiles")

    def compute(self, family: DynamicalFamily,
                progress_callback: Optional[ProgressCallback] = None) -> np.ndarray:
        """
        Classify every lattice sample of a family in parallel.

        Args:
            family: Family to classify; workers receive clones
            progress_callback: Called with (completed_tiles, total_tiles)

        Returns:
            Object array of PointInfo with shape (res_x, res_y)
        """
        start_time = time.time()
        res_x, res_y = family.point_grid.shape()
        tiles = create_tile_grid(res_x, res_y, self.tile_size)
        worker_family = family.clone()

        logger.info(f"Processing {len(tiles)} tiles with {self.num_processes} processes")

        tile_results = []
        with ProcessPoolExecutor(max_workers=self.num_processes) as executor:
            future_to_tile = {executor.submit(process_tile, worker_family, tile): tile
                              for tile in tiles}

            for future in as_completed(future_to_tile):
                tile = future_to_tile[future]
                try:
                    tile_results.append(future.result())
                except Exception as e:
                    logger.error(f"Tile {tile.tile_id} failed: {e}")
                    for pending in future_to_tile:
                        pending.cancel()
                    raise

                completed = len(tile_results)
                if progress_callback is not None:
                    progress_callback(completed, len(tiles))
                if completed % max(1, len(tiles) // 10) == 0:
                    progress = (completed / len(tiles)) * 100
                    logger.debug(f"Completed {completed}/{len(tiles)} tiles ({progress:.1f}%)")

        infos = assemble_tiles(tile_results, res_x, res_y)

        total_time = time.time() - start_time
        total_processing_time = sum(tr.processing_time for tr in tile_results)
        logger.info(f"Parallel classification complete: {total_time:.2f}s total, "
                    f"{total_processing_time:.2f}s processing time")

        return infos


def get_optimal_process_count() -> int:
    """Get optimal number of processes for classification."""
    return max(1, mp.cpu_count() - 1)
