import json

import pytest
from click.testing import CliRunner

from dynamo.cli.main import main, parse_bounds, parse_complex, parse_params
from dynamo.rendering.coloring import ColorPalette
from dynamo.rendering.image_output import ImageExporter


@pytest.fixture
def runner():
    return CliRunner()


def last_line(output: str) -> str:
    return [line for line in output.splitlines() if line.strip()][-1]


def test_parse_complex():
    assert parse_complex("-0.5,0.25") == complex(-0.5, 0.25)
    assert parse_complex("1+2j") == complex(1, 2)
    assert parse_complex("basilica") == -1 + 0j
    with pytest.raises(ValueError):
        parse_complex("1,2,3")


def test_parse_params():
    assert parse_params(("degree=3", "param=0.5")) == {'degree': 3, 'param': 0.5}
    with pytest.raises(ValueError):
        parse_params(("degree",))


def test_parse_bounds():
    assert parse_bounds("-2, 1, -1.5, 1.5") == (-2.0, 1.0, -1.5, 1.5)
    with pytest.raises(ValueError):
        parse_bounds("1,2,3")


def test_list(runner):
    result = runner.invoke(main, ['list'])
    assert result.exit_code == 0
    assert "mandelbrot" in result.output
    assert "basilica" in result.output
    assert "internal_potential" in result.output


def test_points_json(runner):
    result = runner.invoke(main, ['-q', 'points', 'mandelbrot', '--kind', 'cycles',
                                  '--period', '2', '--json'])
    assert result.exit_code == 0
    assert json.loads(last_line(result.output)) == [[-1.0, 0.0]]


def test_points_of_julia_set(runner):
    result = runner.invoke(main, ['-q', 'points', 'mandelbrot', '--kind', 'cycles',
                                  '--julia', '0,0', '--json'])
    assert result.exit_code == 0
    points = sorted(json.loads(last_line(result.output)))
    assert points == [[0.0, 0.0], [1.0, 0.0]]


def test_points_with_bad_parameter(runner):
    result = runner.invoke(main, ['points', 'mandelbrot', '-p', 'degree=3'])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_palette_random(runner, tmp_path):
    output = tmp_path / "palette.json"
    preview = tmp_path / "preview.png"
    result = runner.invoke(main, ['palette', str(output), '--random', '7',
                                  '--preview', str(preview)])
    assert result.exit_code == 0
    assert ColorPalette.load_from_file(output) == ColorPalette.random(7)
    assert preview.exists()


def test_render(runner, tmp_path):
    output = tmp_path / "mandelbrot.png"
    result = runner.invoke(main, ['render', 'mandelbrot', str(output),
                                  '-w', '16', '--max-iter', '50'])
    assert result.exit_code == 0, result.output
    metadata = ImageExporter().extract_metadata_from_image(output)
    assert metadata.resolution[0] == 16
    assert metadata.max_iterations == 50


def test_render_help_lists_height_flag(runner):
    result = runner.invoke(main, ['render', '--help'])
    assert result.exit_code == 0, result.output
    assert '-H, --height' in result.output
    assert '-h, --height' not in result.output


def test_render_explicit_height(runner, tmp_path):
    output = tmp_path / "tall.png"
    result = runner.invoke(main, ['render', 'mandelbrot', str(output),
                                  '-w', '8', '-H', '6', '--max-iter', '20'])
    assert result.exit_code == 0, result.output
    metadata = ImageExporter().extract_metadata_from_image(output)
    assert metadata.resolution == (8, 6)


def test_render_with_config_file(runner, tmp_path):
    config = tmp_path / "config.json"
    config.write_text(json.dumps({'width': 8, 'height': 6, 'max_iterations': 20}))
    output = tmp_path / "basilica.png"
    result = runner.invoke(main, ['--config', str(config), 'render', 'mandelbrot',
                                  str(output), '--julia', 'basilica'])
    assert result.exit_code == 0, result.output
    metadata = ImageExporter().extract_metadata_from_image(output)
    assert metadata.resolution == (8, 6)
    assert metadata.family == "mandelbrot_julia"


def test_render_unknown_family(runner, tmp_path):
    result = runner.invoke(main, ['render', 'nonexistent', str(tmp_path / "x.png")])
    assert result.exit_code != 0


def test_equipotential_json(runner):
    result = runner.invoke(main, ['-q', 'equipotential', 'mandelbrot', '500,0', '--json'])
    assert result.exit_code == 0
    curve = json.loads(last_line(result.output))
    assert len(curve) == 21


def test_ray_undefined_for_newton(runner):
    result = runner.invoke(main, ['ray', 'riemann_xi_newton', '0.25'])
    assert result.exit_code == 1
