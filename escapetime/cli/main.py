"""
Command-line interface for fractal generation.

This module provides the ``escapetime`` command: ``render`` draws one image
into the ``tiles/<type>/<method>/`` tree, ``colors`` and ``types`` list the
available coloring methods and fractal variants.
"""

import click
import signal
import sys
from pathlib import Path
import logging

from .. import __version__
from ..api import FractalRenderer, CancellationToken
from ..core.fractal_types import FractalRegistry, ConfigurationError, is_integer
from ..io.config import ConfigManager
from ..rendering.coloring import COLORING_METHODS, round_half_away

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(__version__, prog_name='escapetime')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, verbose, quiet):
    """
    Escape-time fractal renderer.

    Renders Mandelbrot, Julia and fourteen related fractals in extended
    precision with eighteen coloring methods.
    """
    # Setup logging
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING,
                            format='%(levelname)s: %(message)s')

    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


@main.command()
@click.option('--type', '-t', 'fractal_type', help='Fractal type (see "escapetime types")')
@click.option('--color', '-c', 'method', type=int, help='Coloring method (see "escapetime colors")')
@click.option('--smooth', '-s', is_flag=True, help='Smooth coloring (methods 0 and 1)')
@click.option('--single', '-S', is_flag=True,
              help='Paint every point after exactly --iterations steps')
@click.option('--disable-fancy', is_flag=True, help='Plain variant of method 1')
@click.option('--multiplier', type=float, help='Color multiplier')
@click.option('--clog', 'c_log', type=int, help='Apply the natural logarithm to each channel N times')
@click.option('--resolution', '-r', type=int, help='Image height in pixels [default: 1024]')
@click.option('--width-multiplier', type=float, default=1.0, show_default=True,
              help='Image width as a multiple of the height')
@click.option('--iterations', '-i', 'max_iterations', type=int,
              help='Maximum iterations [default: 1024]')
@click.option('--exponent', '-e', type=float, help='Exponent [default: 2]')
@click.option('--escape-limit', type=float, help='Squared escape threshold [default: 4]')
@click.option('--julia-x', 'julia_a', type=float, help='Julia constant, real part [default: -0.8]')
@click.option('--julia-y', 'julia_b', type=float, help='Julia constant, imaginary part [default: 0.156]')
@click.option('--periodicity', 'periodicity_window', type=int,
              help='Periodicity check window, 0 disables [default: 1]')
@click.option('--lbound', type=float, help='Left bound [default: -2]')
@click.option('--rbound', type=float, help='Right bound [default: 2]')
@click.option('--bbound', type=float, help='Bottom bound [default: -2]')
@click.option('--ubound', type=float, help='Top bound [default: 2]')
@click.option('--box', type=float, default=2.0, show_default=True,
              help='Square bounds [-BOX, BOX]; overrides the individual bounds unless 2')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), default='tiles', show_default=True,
              help='Root of the output tree')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='JSON configuration file')
@click.pass_context
def render(ctx, fractal_type, method, smooth, single, disable_fancy, multiplier, c_log,
           resolution, width_multiplier, max_iterations, exponent, escape_limit, julia_a, julia_b,
           periodicity_window, lbound, rbound, bbound, ubound, box, output_dir, config_file):
    """Render a single fractal image."""
    try:
        manager = ConfigManager()
        data = manager.load_config(config_file)

        height = resolution if resolution is not None else data['render'].get('height')
        width = None
        if resolution is not None or width_multiplier != 1:
            height = 1024 if height is None else height
            if not is_integer(height):
                raise ConfigurationError(f"height must be an integer, got {height!r}")
            width = int(round_half_away(height * width_multiplier))
        if box != 2:
            lbound, rbound, bbound, ubound = -box, box, -box, box

        overrides = {
            'fractal': {
                'fractal_type': fractal_type, 'exponent': exponent, 'escape_limit': escape_limit,
                'single': single or None, 'lbound': lbound, 'rbound': rbound, 'bbound': bbound,
                'ubound': ubound, 'julia_a': julia_a, 'julia_b': julia_b,
            },
            'color': {
                'method': method, 'smooth': smooth or None, 'disable_fancy': disable_fancy or None,
                'multiplier': multiplier, 'c_log': c_log,
            },
            'render': {
                'width': width, 'height': height, 'max_iterations': max_iterations,
                'periodicity_window': periodicity_window,
            },
        }

        fractal_config, color_config, render_config = manager.create_configs(data, overrides)
        renderer = FractalRenderer(fractal_config, color_config, render_config)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    quiet = ctx.obj.get('quiet')
    start_string = f"Rendering {fractal_config.fractal_type}..."
    status_width = [0]

    def progress_callback(current, total):
        status = f"{start_string} point {current} of {total} ({100 * current / total:.3g}%)"
        padding = max(0, status_width[0] - len(status))
        status_width[0] = max(status_width[0], len(status))
        click.echo('\r' + status + ' ' * padding, nl=False)

    token = CancellationToken()

    def on_interrupt(signum, frame):
        token.cancel()

    previous_handler = signal.signal(signal.SIGINT, on_interrupt)
    try:
        if not quiet:
            click.echo(start_string, nl=False)
        result = renderer.render(token, None if quiet else progress_callback)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    try:
        stats = result.statistics
        if not quiet:
            click.echo('\r' + ' ' * max(status_width[0], len(start_string)) + '\r', nl=False)
            if result.cancelled:
                click.echo("Render cancelled, saving partial image")
            click.echo(stats.summary())
        if stats.classified != stats.pixels:
            click.echo(f"Warning: {stats.escaped} + {stats.bounded} + {stats.periodic} + "
                       f"{stats.skipped} != {stats.pixels} pixels processed", err=True)

        output_path = renderer.save(result, Path(output_dir))
        if not quiet:
            click.echo(f"Render time: {result.render_time_seconds:.2f}s")
            click.echo(f"Saved: {output_path}")
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        if ctx.obj.get('verbose'):
            import traceback
            traceback.print_exc()
        sys.exit(1)


@main.command()
def colors():
    """List available coloring methods."""
    click.echo("Available coloring methods:")
    for method_id, algorithm in sorted(COLORING_METHODS.items()):
        click.echo(f"  {method_id:2d}  {algorithm.description}")


@main.command()
@click.pass_context
def types(ctx):
    """List available fractal types."""
    click.echo("Available fractal types:")
    for name, description in FractalRegistry.list_fractals().items():
        click.echo(f"  {name}")
        if ctx.obj.get('verbose'):
            click.echo(f"    {description}")


if __name__ == '__main__':
    main()
