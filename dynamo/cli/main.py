"""
Command-line interface for dynamo.

Renders parameter and dynamical planes, lists marked points and traces
external rays and equipotentials from the shell.
"""

import click
import sys
import json
from dataclasses import replace
from pathlib import Path
from typing import Optional, Dict, Any, Tuple
import logging
import time

import numpy as np

from .. import __version__
from ..api import FamilyRenderer, RenderConfig, create_family, SPECIAL_POINT_KINDS
from ..profiles.registry import FamilyRegistry, JULIA_PRESETS
from ..rendering.coloring import ColorPalette, ColoringEngine

logger = logging.getLogger(__name__)


def parse_complex(text: str) -> complex:
    """Parse "re,im", a Python complex literal or a Julia preset name."""
    text = text.strip()
    if text in JULIA_PRESETS:
        return JULIA_PRESETS[text]
    if ',' in text:
        parts = [float(x.strip()) for x in text.split(',')]
        if len(parts) != 2:
            raise ValueError(f"Invalid complex number '{text}'. Use 're,im'")
        return complex(parts[0], parts[1])
    return complex(text.replace(' ', ''))


def parse_value(text: str) -> Any:
    for convert in (int, float, complex):
        try:
            return convert(text)
        except ValueError:
            continue
    return text


def parse_params(items: Tuple[str, ...]) -> Dict[str, Any]:
    """Parse repeated key=value options into family parameters."""
    params = {}
    for item in items:
        key, sep, value = item.partition('=')
        if not sep or not key.strip():
            raise ValueError(f"Invalid parameter '{item}'. Use key=value")
        params[key.strip()] = parse_value(value.strip())
    return params


def parse_bounds(text: str) -> Tuple[float, float, float, float]:
    try:
        bounds = tuple(float(x.strip()) for x in text.split(','))
    except ValueError:
        raise ValueError("Invalid bounds format. Use 'min_x,max_x,min_y,max_y'")
    if len(bounds) != 4:
        raise ValueError("Invalid bounds format. Use 'min_x,max_x,min_y,max_y'")
    return bounds


def load_config(ctx, **overrides) -> RenderConfig:
    """Configuration file from the group options with command-line overrides."""
    config_file = ctx.obj.get('config_file')
    config = RenderConfig.from_file(config_file) if config_file else RenderConfig()
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    config.validate()
    return config


def build_family(family_name: str, params: Tuple[str, ...], julia: Optional[str],
                 curve: Optional[str] = None):
    return create_family(
        family_name,
        parameters=parse_params(params),
        julia=parse_complex(julia) if julia else None,
        curve=curve,
    )


def fail(ctx, error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    if ctx.obj.get('verbose'):
        import traceback
        traceback.print_exc()
    sys.exit(1)


family_argument = click.argument('family_name', type=click.Choice(FamilyRegistry.names()))
param_option = click.option('--param', '-p', 'params', multiple=True,
                            help='Family parameter as key=value (repeatable)')
julia_option = click.option('--julia', '-j', type=str,
                            help='Dynamical plane at this parameter point ("re,im" or preset name)')


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path (JSON)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, config, verbose, quiet):
    """
    dynamo - explore parameter and dynamical planes of holomorphic families.

    Classify every point of a plane as escaping, periodic or bounded,
    color the result, and trace external rays and equipotentials.
    """
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"dynamo v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['verbose'] = verbose


@main.command()
@family_argument
@click.argument('output', type=click.Path())
@click.option('--width', '-w', type=int, help='Image width')
@click.option('--height', '-H', type=int, help='Image height (inferred from the bounds if omitted)')
@click.option('--bounds', type=str, help='Plane bounds: "min_x,max_x,min_y,max_y"')
@click.option('--max-iter', type=int, help='Maximum iterations')
@click.option('--min-iter', type=int, help='Iterations before the escape test starts')
@click.option('--palette', help='Built-in color palette name')
@click.option('--palette-file', type=click.Path(exists=True), help='Palette JSON file')
@click.option('--algorithm', type=click.Choice(list(ColoringEngine().algorithms)),
              help='Interior coloring algorithm')
@param_option
@julia_option
@click.option('--curve', type=str, help='Covering curve, e.g. "dynatomic:2" or "misiurewicz:2,1"')
@click.option('--ray', 'rays', type=float, multiple=True, help='Draw the external ray at this angle')
@click.option('--parallel', is_flag=True, help='Classify tiles in parallel processes')
@click.option('--processes', type=int, help='Number of processes for parallel rendering')
@click.option('--tile-size', type=int, help='Tile size for parallel rendering')
@click.pass_context
def render(ctx, family_name, output, width, height, bounds, max_iter, min_iter, palette,
           palette_file, algorithm, params, julia, curve, rays, parallel, processes, tile_size):
    """
    Render a plane of a family to an image.

    FAMILY_NAME: Registered family
    OUTPUT: Output image file path (.png or .jpg)
    """
    try:
        config = load_config(
            ctx,
            width=width, height=height,
            bounds=parse_bounds(bounds) if bounds else None,
            max_iterations=max_iter, min_iterations=min_iter,
            color_palette=palette, palette_file=palette_file,
            coloring_algorithm=algorithm,
            use_multiprocessing=parallel or None, num_processes=processes, tile_size=tile_size,
        )
        family = build_family(family_name, params, julia, curve)
        renderer = FamilyRenderer(config)

        curves = []
        for theta in rays:
            ray = renderer.trace_ray(family, theta)
            if ray is None:
                click.echo(f"Warning: external rays are undefined for {family.name}", err=True)
                break
            curves.append(ray)

        def progress_callback(completed, total):
            if ctx.obj.get('verbose'):
                click.echo(f"Progress: {completed}/{total} tiles")

        click.echo(f"Rendering {family.name}...")
        start_time = time.time()

        renderer.render(family, Path(output), curves=curves, progress_callback=progress_callback)

        click.echo(f"Render complete: {time.time() - start_time:.2f}s")
        click.echo(f"Saved: {output}")

    except Exception as e:
        fail(ctx, e)


@main.command()
@family_argument
@click.option('--kind', type=click.Choice(SPECIAL_POINT_KINDS), default='critical',
              help='Which marked points to list')
@click.option('--period', type=int, default=1, help='Cycle period')
@click.option('--preperiod', type=int, default=0, help='Preperiod for precycles')
@param_option
@julia_option
@click.option('--json', 'as_json', is_flag=True, help='Print as JSON [[re, im], ...]')
@click.pass_context
def points(ctx, family_name, kind, period, preperiod, params, julia, as_json):
    """List critical points, cycles or precycles of a family."""
    try:
        family = build_family(family_name, params, julia)
        renderer = FamilyRenderer(load_config(ctx))
        result = renderer.special_points(family, kind, period, preperiod)

        if as_json:
            click.echo(json.dumps([[z.real, z.imag] for z in result]))
            return
        if not result:
            click.echo(f"No {kind} points available for {family.name}")
            return
        for z in result:
            click.echo(f"{z.real:.15g} {z.imag:+.15g}i")

    except Exception as e:
        fail(ctx, e)


def echo_curve(curve, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps([[z.real, z.imag] for z in curve]))
    else:
        for z in curve:
            click.echo(f"{z.real:.12g} {z.imag:+.12g}i")


@main.command()
@family_argument
@click.argument('theta', type=float)
@param_option
@julia_option
@click.option('--width', '-w', type=int, help='Grid width; sets the convergence resolution')
@click.option('--depth', type=int, default=25, help='Number of levels to descend')
@click.option('--sharpness', type=int, default=20, help='Newton targets per level')
@click.option('--escape-radius', type=float, default=400.0, help='Radius of the starting circle')
@click.option('--json', 'as_json', is_flag=True, help='Print as JSON [[re, im], ...]')
@click.pass_context
def ray(ctx, family_name, theta, params, julia, width, depth, sharpness, escape_radius, as_json):
    """
    Trace the external ray of angle THETA (in turns).
    """
    try:
        family = build_family(family_name, params, julia)
        renderer = FamilyRenderer(load_config(ctx, width=width))
        curve = renderer.trace_ray(family, theta, depth=depth, sharpness=sharpness,
                                   escape_radius=escape_radius)
        if curve is None:
            click.echo(f"External rays are undefined for {family.name}", err=True)
            sys.exit(1)
        echo_curve(curve, as_json)

    except Exception as e:
        fail(ctx, e)


@main.command()
@family_argument
@click.argument('point', type=str)
@param_option
@julia_option
@click.option('--width', '-w', type=int, help='Grid width; sets the convergence resolution')
@click.option('--json', 'as_json', is_flag=True, help='Print as JSON [[re, im], ...]')
@click.pass_context
def equipotential(ctx, family_name, point, params, julia, width, as_json):
    """
    Trace the equipotential through POINT ("re,im").
    """
    try:
        family = build_family(family_name, params, julia)
        renderer = FamilyRenderer(load_config(ctx, width=width))
        curve = renderer.trace_equipotential(family, parse_complex(point))
        if curve is None:
            click.echo(f"No equipotential through {point} for {family.name}", err=True)
            sys.exit(1)
        echo_curve(curve, as_json)

    except Exception as e:
        fail(ctx, e)


@main.command(name='list')
@click.pass_context
def list_all(ctx):
    """List families, Julia presets, palettes and coloring algorithms."""
    try:
        families = FamilyRegistry.list_families()
        click.echo("Available families:")
        for name, description in families.items():
            click.echo(f"  {name}")
            if ctx.obj.get('verbose'):
                click.echo(f"    {description}")

        click.echo("\nJulia set presets:")
        for name, c in JULIA_PRESETS.items():
            click.echo(f"  {name}: c = {c}")

        engine = ColoringEngine()
        click.echo("\nAvailable color palettes:")
        for palette in engine.list_palettes():
            click.echo(f"  {palette}")

        click.echo("\nAvailable coloring algorithms:")
        for algorithm, description in engine.list_algorithms().items():
            click.echo(f"  {algorithm}: {description}")

    except Exception as e:
        fail(ctx, e)


@main.command()
@click.argument('output', type=click.Path())
@click.option('--name', 'palette_name', default='default', help='Built-in palette to export')
@click.option('--random', 'seed', type=int, help='Export a random palette with this seed')
@click.option('--period', type=float, help='Potential units per gradient cycle')
@click.option('--phase', type=float, help='Gradient phase in [0, 1)')
@click.option('--preview', type=click.Path(), help='Also write a PNG strip of the gradient')
@click.pass_context
def palette(ctx, output, palette_name, seed, period, phase, preview):
    """
    Write a palette to a JSON file that render --palette-file accepts.
    """
    try:
        if seed is not None:
            color_palette = ColorPalette.random(seed)
        else:
            color_palette = ColoringEngine().get_palette(palette_name)
        if period is not None:
            color_palette.scale_period(period / color_palette.period)
        if phase is not None:
            color_palette.shift_phase(phase - color_palette.phase)

        color_palette.save_to_file(output)
        click.echo(f"Saved: {output}")

        if preview:
            from PIL import Image
            t = np.linspace(0.0, 1.0, 512, endpoint=False)
            strip = color_palette.gradient.interpolate_cyclic(t)
            image = (np.repeat(strip[np.newaxis, :, :], 32, axis=0) * 255).astype(np.uint8)
            Image.fromarray(image).save(preview)
            click.echo(f"Saved: {preview}")

    except Exception as e:
        fail(ctx, e)


if __name__ == '__main__':
    main()
