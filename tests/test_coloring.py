import json
import math

import numpy as np
import pytest

from dynamo.core.types import PeriodicData, PointInfo
from dynamo.rendering.coloring import (Coloring, ColoringEngine, ColorPalette, ColorRGB,
                                       InternalPotential, Multiplier, Palette, Period,
                                       PeriodMultiplier, Solid, smooth_preperiod)

TOL = 1e-14


def periodic_data(period=1, preperiod=0, multiplier=0j, final_error=0j, potential=None):
    return PeriodicData(value=0j, period=period, preperiod=preperiod,
                        multiplier=multiplier, final_error=final_error,
                        potential=potential)


class TestSmoothPreperiod:
    def test_superattracting(self):
        data = periodic_data(period=1, preperiod=5, multiplier=0j, final_error=1e-10 + 0j)
        v, luminosity = smooth_preperiod(data, TOL)
        expected = 5 - 2.0 * math.log2(20.0 / 14.0)
        assert v == pytest.approx(expected)
        assert luminosity == pytest.approx(math.tanh(0.1 * expected))

    def test_parabolic(self):
        data = periodic_data(period=2, preperiod=10, multiplier=1 + 0j, final_error=1e-8 + 0j)
        v, luminosity = smooth_preperiod(data, TOL)
        assert v == pytest.approx(10 - 2 * 0.01)
        assert luminosity == pytest.approx(math.tanh(0.1 * v / 2))

    def test_attracting(self):
        data = periodic_data(period=1, preperiod=20, multiplier=0.5 + 0j, final_error=1e-8 + 0j)
        v, luminosity = smooth_preperiod(data, TOL)
        expected = 20 + math.log(1e-2) / math.log(2.0)
        assert v == pytest.approx(expected)
        assert luminosity == pytest.approx(math.tanh(expected / 40.0))

    def test_zero_residual_uses_fixed_offset(self):
        data = periodic_data(period=2, preperiod=3, multiplier=0.5 + 0j, final_error=0j)
        v, _ = smooth_preperiod(data, TOL)
        assert v == pytest.approx(3 - 0.2 * 2)

    def test_luminosity_is_bounded(self):
        data = periodic_data(period=1, preperiod=10 ** 6, multiplier=0.9 + 0j, final_error=1e-9 + 0j)
        _, luminosity = smooth_preperiod(data, TOL)
        assert -1.0 <= luminosity <= 1.0


class TestColoring:
    def test_escaping_uses_gradient(self):
        coloring = Coloring(Solid())
        palette = coloring.palette
        color = coloring.map_color(PointInfo.escaping(6.0))
        assert color == palette.gradient.interpolate_cyclic(6.0 / palette.period)

    def test_escape_potential_cycles_through_gradient(self):
        coloring = Coloring()
        period = coloring.palette.period
        first = coloring.map_color(PointInfo.escaping(3.0))
        second = coloring.map_color(PointInfo.escaping(3.0 + period))
        assert first.to_tuple() == pytest.approx(second.to_tuple())

    def test_periodic_uses_algorithm(self):
        coloring = Coloring(Period())
        info = PointInfo.periodic(periodic_data(period=3, preperiod=7, multiplier=0.2 + 0j))
        assert coloring.map_color(info) == coloring.palette.period_coloring.map_hsv(3, 0.0)

    def test_known_potential(self):
        coloring = Coloring(InternalPotential())
        data = periodic_data(period=2, preperiod=4, multiplier=0.3 + 0j, potential=5.0)
        color = coloring.map_color(PointInfo.periodic_known_potential(data))
        assert color == coloring.palette.period_coloring.map_hsv(2, math.tanh(0.25))

    def test_period_multiplier_squashes_norm(self):
        coloring = Coloring(PeriodMultiplier())
        info = PointInfo.periodic(periodic_data(period=2, multiplier=0.5 + 0j))
        assert coloring.map_color(info) == coloring.palette.period_coloring.map_hsv(2, math.tanh(0.5))

    def test_multiplier_squashes_norm(self):
        coloring = Coloring(Multiplier())
        info = PointInfo.periodic(periodic_data(period=1, multiplier=0.6j))
        assert coloring.map_color(info) == ColorRGB.from_hsv(0.75, 1.0, math.tanh(0.6))

    def test_large_multipliers_stay_distinguishable(self):
        coloring = Coloring(Multiplier())
        small = coloring.map_color(PointInfo.periodic(periodic_data(multiplier=1.5 + 0j)))
        large = coloring.map_color(PointInfo.periodic(periodic_data(multiplier=3.0 + 0j)))
        assert small != large

    def test_bounded_and_wandering(self):
        coloring = Coloring()
        assert coloring.map_color(PointInfo.BOUNDED) == coloring.palette.in_color
        assert coloring.map_color(PointInfo.WANDERING) == coloring.palette.wandering_color

    def test_marked_point_hue(self):
        coloring = Coloring()
        color = coloring.map_color(PointInfo.marked_point(1, 4))
        assert color == ColorRGB.from_hsv(0.25, 0.8, 1.0)

    def test_render_flips_rows(self):
        coloring = Coloring(Solid())
        infos = np.empty((3, 2), dtype=object)
        for i in range(3):
            for j in range(2):
                infos[i, j] = PointInfo.BOUNDED
        infos[0, 0] = PointInfo.marked_point(0, 1)

        image = coloring.render(infos)

        assert image.shape == (2, 3, 3)
        assert image.dtype == np.uint8
        # Sample (0, 0) is the bottom-left corner.
        assert tuple(image[1, 0]) == (255, 51, 51)
        assert tuple(image[0, 0]) == (0, 0, 0)

    def test_palette_file_round_trip(self, tmp_path):
        path = tmp_path / "palette.json"
        palette = ColorPalette.random(3)
        Coloring(palette=palette).save_palette(path)

        with open(path) as f:
            assert json.load(f)['period'] == palette.period

        coloring = Coloring()
        coloring.load_palette(path)
        assert coloring.palette == palette

    def test_failed_palette_load_keeps_palette(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({'gradient': {'colors': [[0, 0, 0], [1, 1, 1]]}}))
        coloring = Coloring()
        before = coloring.palette

        with pytest.raises(ValueError):
            coloring.load_palette(path)
        assert coloring.palette is before

        with pytest.raises(FileNotFoundError):
            coloring.load_palette(tmp_path / "missing.json")
        assert coloring.palette is before


class TestPalettes:
    def test_random_is_deterministic(self):
        assert ColorPalette.random(7) == ColorPalette.random(7)
        assert ColorPalette.random(7) != ColorPalette.random(8)

    def test_palette_needs_two_colors(self):
        with pytest.raises(ValueError):
            Palette([(0.0, 0.0, 0.0)])

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            ColorPalette(period=0.0)

    def test_phase_wraps(self):
        palette = ColorPalette()
        palette.shift_phase(1.25)
        assert palette.phase == pytest.approx(0.25)

    def test_color_parse(self):
        assert ColorRGB.parse("white") == ColorRGB(1.0, 1.0, 1.0)
        assert ColorRGB.parse([0.0, 0.5, 1.0]) == ColorRGB(0.0, 0.5, 1.0)
        with pytest.raises(ValueError):
            ColorRGB(1.5, 0.0, 0.0)


class TestColoringEngine:
    def test_get_palette_returns_copy(self):
        engine = ColoringEngine()
        palette = engine.get_palette('default')
        palette.scale_period(2.0)
        assert engine.get_palette('default').period == ColorPalette().period

    def test_list_algorithms(self):
        algorithms = ColoringEngine().list_algorithms()
        assert set(algorithms) == {
            'solid', 'period', 'period_multiplier', 'multiplier',
            'preperiod', 'internal_potential', 'preperiod_period_smooth',
        }

    def test_algorithm_uses_tolerance(self):
        algorithm = ColoringEngine().get_algorithm('internal_potential', 1e-10)
        assert algorithm == InternalPotential(1e-10)

    def test_matplotlib_palettes(self):
        engine = ColoringEngine()
        assert 'viridis' in engine.list_palettes()
        assert len(engine.get_palette('viridis').gradient.colors) == 32

    def test_unknown_names(self):
        engine = ColoringEngine()
        with pytest.raises(ValueError):
            engine.get_algorithm('nonexistent')
        with pytest.raises(ValueError):
            engine.get_palette('nonexistent')
