import numpy as np
import pytest

from dynamo.acceleration.multiprocessing import (MultiprocessingAccelerator, TileResult,
                                                 assemble_tiles, create_tile_grid,
                                                 process_tile)


def test_tile_grid_covers_lattice_once():
    tiles = create_tile_grid(10, 7, tile_size=4)
    covered = np.zeros((10, 7), dtype=int)
    for tile in tiles:
        covered[tile.x_start:tile.x_end, tile.y_start:tile.y_end] += 1
    assert (covered == 1).all()
    assert len(tiles) == 6
    assert [t.tile_id for t in tiles] == list(range(6))


def test_tile_grid_rejects_bad_size():
    with pytest.raises(ValueError):
        create_tile_grid(10, 10, tile_size=0)


def test_process_tile_matches_sequential(mandelbrot, small_grid):
    mandelbrot.point_grid = small_grid
    tile = create_tile_grid(10, 8, tile_size=4)[4]
    result = process_tile(mandelbrot, tile)
    expected = mandelbrot.compute()
    assert result.infos.shape == (tile.width, tile.height)
    assert (result.infos == expected[tile.x_start:tile.x_end, tile.y_start:tile.y_end]).all()


def test_assemble_tiles():
    parts = [
        TileResult(0, np.full((2, 1), 'a', dtype=object), 0, 0, 0.0),
        TileResult(1, np.full((2, 1), 'b', dtype=object), 0, 1, 0.0),
    ]
    infos = assemble_tiles(parts, 2, 2)
    assert infos[:, 0].tolist() == ['a', 'a']
    assert infos[:, 1].tolist() == ['b', 'b']


def test_parallel_matches_sequential(mandelbrot, small_grid):
    mandelbrot.point_grid = small_grid
    progress = []

    accelerator = MultiprocessingAccelerator(2, tile_size=4)
    infos = accelerator.compute(mandelbrot, lambda done, total: progress.append((done, total)))

    assert infos.shape == (10, 8)
    assert (infos == mandelbrot.compute()).all()
    assert progress[-1] == (6, 6)
    assert [done for done, _ in progress] == list(range(1, 7))


def test_accelerator_validation():
    with pytest.raises(ValueError):
        MultiprocessingAccelerator(2, tile_size=0)
    assert MultiprocessingAccelerator(0).num_processes == 1
