import pytest

from dynamo.core.point_grid import Bounds, PointGrid, default_grid


def test_map_pixel_and_locate_point_are_inverse():
    grid = PointGrid(4, 3, Bounds(0.0, 4.0, 0.0, 3.0))
    assert grid.map_pixel(1, 2) == 1 + 2j
    assert grid.locate_point(1 + 2j) == pytest.approx((1.0, 2.0))


def test_screen_coordinates_flip_rows():
    grid = PointGrid(4, 3, Bounds(0.0, 4.0, 0.0, 3.0))
    assert grid.map_pos((1, 0)) == grid.map_pixel(1, 2)
    assert grid.locate_screen_point(grid.map_pos((3, 1))) == pytest.approx((3.0, 1.0))
    assert grid.map_vec2((1.0, 1.0)) == 1 - 1j


def test_locate_point_safe():
    grid = PointGrid(4, 3, Bounds(0.0, 4.0, 0.0, 3.0))
    assert grid.locate_point_safe(3.99 + 2.99j) == (3, 2)
    assert grid.locate_point_safe(5 + 1j) is None
    assert grid.locate_point_safe(-0.1 + 1j) is None


def test_new_by_res_x_keeps_aspect_ratio():
    grid = PointGrid.new_by_res_x(200, Bounds(-2.0, 2.0, -1.0, 1.0))
    assert grid.shape() == (200, 100)
    assert grid.pixel_width() == pytest.approx(grid.pixel_height())


def test_change_bounds_keeps_width():
    grid = PointGrid(100, 100, Bounds())
    grid.change_bounds(Bounds(0.0, 1.0, 0.0, 0.5))
    assert grid.shape() == (100, 50)


def test_resize_updates_other_axis():
    grid = PointGrid(100, 50, Bounds(0.0, 2.0, 0.0, 1.0))
    grid.resize_x(40)
    assert grid.shape() == (40, 20)
    grid.resize_y(10)
    assert grid.shape() == (20, 10)


def test_zoom_about_base_point():
    bounds = Bounds(-1.0, 1.0, -1.0, 1.0)
    bounds.zoom(0.5, 1 + 1j)
    assert bounds.to_tuple() == pytest.approx((0.0, 1.0, 0.0, 1.0))


def test_translate_and_recenter():
    bounds = Bounds(-1.0, 1.0, -1.0, 1.0)
    bounds.translate(2 - 1j)
    assert bounds.center() == 2 - 1j
    bounds.recenter(0j)
    assert bounds.to_tuple() == pytest.approx((-1.0, 1.0, -1.0, 1.0))


def test_invalid_grids_are_rejected():
    with pytest.raises(ValueError):
        PointGrid(0, 10)
    with pytest.raises(ValueError):
        PointGrid(10, 10, Bounds(float('nan'), 1.0, 0.0, 1.0))
    with pytest.raises(ValueError):
        Bounds(1.0, -1.0, 0.0, 1.0)


@pytest.mark.parametrize('values', [
    (1.0, 1.0, 0.0, 1.0),
    (0.0, 1.0, 2.0, 2.0),
    (0.0, 0.0, 0.0, 0.0),
])
def test_degenerate_bounds_are_rejected(values):
    with pytest.raises(ValueError):
        Bounds(*values)
    with pytest.raises(ValueError):
        Bounds.from_tuple(values)


def test_zero_radius_square_is_rejected():
    with pytest.raises(ValueError):
        Bounds.centered_square(0.0)


def test_degenerate_zoom_is_rejected():
    bounds = Bounds(-1.0, 1.0, -1.0, 1.0)
    with pytest.raises(ValueError):
        bounds.zoom(0.0, 0j)
    assert bounds.to_tuple() == (-1.0, 1.0, -1.0, 1.0)
    assert PointGrid.infer_height(100, bounds) == 100


def test_iteration_is_row_major():
    grid = PointGrid(3, 2, Bounds(0.0, 3.0, 0.0, 2.0))
    indices = [index for index, _ in grid]
    assert indices == [(0, 0), (1, 0), (2, 0), (0, 1), (1, 1), (2, 1)]
    assert len(grid) == 6
    assert grid.to_array()[2, 1] == grid.map_pixel(2, 1)


def test_default_grid_height():
    assert default_grid(Bounds(0.0, 2.0, 0.0, 1.0)).shape() == (512, 256)
