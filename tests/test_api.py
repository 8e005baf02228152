import json

import numpy as np
import pytest

from dynamo.api import FamilyRenderer, RenderConfig, create_family, parse_curve
from dynamo.core.covering import CoveringMap
from dynamo.core.dynamics import JuliaSet
from dynamo.profiles import FamilyRegistry, JULIA_PRESETS, Multibrot, RiemannXiNewton
from dynamo.rendering.image_output import ImageExporter


class TestRenderConfig:
    def test_defaults_are_valid(self):
        RenderConfig().validate()

    @pytest.mark.parametrize("kwargs", [
        {'width': 0},
        {'height': -1},
        {'max_iterations': 0},
        {'min_iterations': 20, 'max_iterations': 10},
        {'bounds': (1.0, 0.0, -1.0, 1.0)},
        {'tile_size': 0},
        {'jpeg_quality': 101},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            RenderConfig(**kwargs).validate()

    def test_from_dict(self):
        config = RenderConfig.from_dict({'width': 64, 'bounds': [-2, 1, -1, 1]})
        assert config.width == 64
        assert config.bounds == (-2, 1, -1, 1)

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="colour"):
            RenderConfig.from_dict({'colour': 'red'})

    def test_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({'width': 32, 'max_iterations': 100}))
        config = RenderConfig.from_file(path)
        assert config.width == 32
        assert config.max_iterations == 100

        path.write_text(json.dumps([1, 2]))
        with pytest.raises(ValueError):
            RenderConfig.from_file(path)


def test_parse_curve():
    assert parse_curve("marked_cycle:3") == ('marked_cycle', (3,))
    assert parse_curve("Misiurewicz:2,1") == ('misiurewicz', (2, 1))
    for bad in ["bogus:1", "dynatomic", "misiurewicz:2", "dynatomic:x"]:
        with pytest.raises(ValueError):
            parse_curve(bad)


class TestCreateFamily:
    def test_julia(self):
        family = create_family("mandelbrot", julia=JULIA_PRESETS['basilica'])
        assert isinstance(family, JuliaSet)
        assert family.get_param() == -1

    def test_curve(self):
        family = create_family("mandelbrot", curve="dynatomic:2")
        assert isinstance(family, CoveringMap)

    def test_dynamical_plane_has_no_julia(self):
        with pytest.raises(ValueError):
            create_family("riemann_xi_newton", julia=0j)


class TestRegistry:
    def test_multibrot_degree(self):
        family = FamilyRegistry.create_family("multibrot", {'degree': 3})
        assert isinstance(family, Multibrot)
        assert family.degree() == 3.0

    def test_unknown_family(self):
        with pytest.raises(ValueError):
            FamilyRegistry.create_family("unknown")

    def test_mandelbrot_takes_no_parameters(self):
        with pytest.raises(ValueError):
            FamilyRegistry.create_family("mandelbrot", {'degree': 3})

    def test_newton_param(self):
        family = FamilyRegistry.create_family("riemann_xi_newton", {'param': 2.0})
        assert isinstance(family, RiemannXiNewton)
        assert family.get_param() == 2.0
        with pytest.raises(ValueError):
            FamilyRegistry.create_family("riemann_xi_newton", {'other': 1})

    def test_list_families(self):
        families = FamilyRegistry.list_families()
        assert set(families) == {
            'mandelbrot', 'multibrot', 'chebyshev', 'quad_rat_per_4',
            'riemann_xi', 'riemann_xi_newton', 'burning_ship',
        }
        assert all(isinstance(d, str) and d for d in families.values())

    def test_julia_presets(self):
        assert JULIA_PRESETS['basilica'] == complex(-1.0, 0.0)
        assert all(isinstance(c, complex) for c in JULIA_PRESETS.values())


class TestFamilyRenderer:
    def test_render_shape(self, mandelbrot):
        renderer = FamilyRenderer(RenderConfig(width=16, max_iterations=50))
        image = renderer.render(mandelbrot)
        grid = renderer.prepare(mandelbrot).point_grid
        assert grid.res_x == 16
        assert image.shape == (grid.res_y, 16, 3)
        assert image.dtype == np.uint8

    def test_render_does_not_modify_family(self, mandelbrot):
        bounds = mandelbrot.point_grid.bounds.to_tuple()
        FamilyRenderer(RenderConfig(width=8, height=8, bounds=(-1, 1, -1, 1),
                                    max_iterations=20)).render(mandelbrot)
        assert mandelbrot.max_iter == 256
        assert mandelbrot.point_grid.bounds.to_tuple() == bounds

    def test_png_metadata(self, tmp_path, mandelbrot):
        path = tmp_path / "mandelbrot.png"
        config = RenderConfig(width=12, height=10, max_iterations=40,
                              coloring_algorithm='period', color_palette='hot')
        FamilyRenderer(config).render(mandelbrot, path)

        metadata = ImageExporter().extract_metadata_from_image(path)
        assert metadata.family == "mandelbrot"
        assert metadata.resolution == (12, 10)
        assert metadata.max_iterations == 40
        assert metadata.coloring_algorithm == 'period'
        assert metadata.color_palette == 'hot'
        assert metadata.julia_parameter is None

    def test_julia_metadata(self, tmp_path, mandelbrot):
        path = tmp_path / "basilica.png"
        julia = mandelbrot.julia_set(-1 + 0j)
        FamilyRenderer(RenderConfig(width=8, max_iterations=30)).render(julia, path)
        metadata = ImageExporter().extract_metadata_from_image(path)
        assert metadata.family == "mandelbrot_julia"
        assert metadata.julia_parameter == (-1.0, 0.0)

    def test_jpeg_writes_companion_json(self, tmp_path, mandelbrot):
        path = tmp_path / "mandelbrot.jpg"
        FamilyRenderer(RenderConfig(width=8, max_iterations=20)).render(mandelbrot, path)
        assert path.with_suffix('.json').exists()
        assert ImageExporter().extract_metadata_from_image(path).family == "mandelbrot"

    def test_unsupported_format(self, tmp_path, mandelbrot):
        renderer = FamilyRenderer(RenderConfig(width=8, max_iterations=20))
        with pytest.raises(ValueError):
            renderer.render(mandelbrot, tmp_path / "out.bmp")

    def test_render_with_curves(self, mandelbrot):
        renderer = FamilyRenderer(RenderConfig(width=32, height=32, bounds=(-2, 2, -2, 2),
                                               max_iterations=20, coloring_algorithm='solid',
                                               color_palette='black'))
        plain = renderer.render(mandelbrot)
        drawn = renderer.render(mandelbrot, curves=[[-1.5 + 0j, 1.5 + 0j]])
        assert (drawn != plain).any()

    def test_special_points(self, mandelbrot):
        renderer = FamilyRenderer()
        assert renderer.special_points(mandelbrot, 'cycles', period=2) == [-1 + 0j]
        assert renderer.special_points(mandelbrot, 'precycles', period=1, preperiod=1) == []
        with pytest.raises(ValueError):
            renderer.special_points(mandelbrot, 'unknown')
