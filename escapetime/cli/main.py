"""
Command-line interface for escape-time fractal rendering.

``escapetime render`` renders one image into ``tiles/<type>/<method>/``.
Pressing Ctrl+C stops the render and saves the partial image.
"""

import click
import dataclasses
import json
import math
import signal
import sys
from pathlib import Path
from typing import Optional
import logging

from .. import __version__
from ..api import CancellationToken, FractalRenderer, RenderConfig
from ..core.fractal_types import FractalVariant, JULIA_PRESETS, list_fractals
from ..core.precision import PRECISION_TYPES
from ..rendering.coloring import list_color_methods

logger = logging.getLogger(__name__)

# Default symmetric bound; --box only takes effect when it differs
DEFAULT_BOX = 2.0


class ProgressLine:
    """Single status line rewritten in place with a carriage return."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        self._width = 0

    def _write(self, status: str) -> None:
        padding = ' ' * max(self._width - len(status), 0)
        self._width = max(self._width, len(status))
        click.echo(f"\r{status}{padding}", nl=False)

    def __call__(self, done: int, total: int) -> None:
        percent = done * 100.0 / total
        self._write(f"{self.prefix} point {done} of {total} ({percent:.3g}%)")

    def finish(self, message: str) -> None:
        self._write(f"{self.prefix} {message}")
        click.echo()


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, verbose, quiet):
    """
    escapetime - escape-time fractal renderer.

    Renders sixteen fractal variants with eighteen coloring methods in
    extended precision.
    """
    # Setup logging
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"escapetime v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    if ctx.invoked_subcommand is None and not version:
        click.echo(ctx.get_help())


def _replace(obj, **changes):
    """dataclasses.replace, ignoring options that were not given."""
    changes = {key: value for key, value in changes.items() if value is not None}
    return dataclasses.replace(obj, **changes) if changes else obj


def build_config(base: RenderConfig, options: dict) -> RenderConfig:
    """Apply command-line options on top of a base configuration."""
    fractal = base.fractal

    julia_real, julia_imag = options['julia_x'], options['julia_y']
    preset = options['julia_preset']
    if preset is not None:
        preset_real, preset_imag = JULIA_PRESETS[preset]
        julia_real = preset_real if julia_real is None else julia_real
        julia_imag = preset_imag if julia_imag is None else julia_imag

    left, right = options['lbound'], options['rbound']
    bottom, top = options['bbound'], options['ubound']
    box = options['box']
    if box is not None and box != DEFAULT_BOX:
        right = top = box
        left = bottom = -box

    fractal = _replace(fractal,
                       variant=options['fractal_type'],
                       exponent=options['exponent'],
                       escape_limit=options['escape_limit'],
                       left=left, right=right, bottom=bottom, top=top,
                       julia_real=julia_real, julia_imag=julia_imag,
                       single=True if options['single'] else None)

    coloring = _replace(base.coloring,
                        method=options['color'],
                        multiplier=options['multiplier'],
                        c_log=options['clog'],
                        smooth=True if options['smooth'] else None,
                        disable_fancy=True if options['disable_fancy'] else None)

    height = options['size'] if options['size'] is not None else base.height
    width = base.width
    if options['size'] is not None or options['width_multiplier'] is not None:
        multiplier = options['width_multiplier'] if options['width_multiplier'] is not None else 1.0
        width = int(math.floor(height * multiplier + 0.5))

    return _replace(base,
                    width=width,
                    height=height,
                    max_iterations=options['iterations'],
                    periodicity_window=options['periodicity'],
                    precision=options['precision'],
                    fractal=fractal,
                    coloring=coloring)


def load_config_file(path: Optional[str]) -> RenderConfig:
    """Load a JSON configuration file (RenderConfig.to_dict() form)."""
    if path is None:
        return RenderConfig()
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    logger.debug(f"Loaded configuration from {path}")
    return RenderConfig.from_dict(data)


@main.command()
@click.option('--type', '-t', 'fractal_type', help='Fractal type (see "escapetime types")')
@click.option('--color', '-c', type=int, help='Color method (see "escapetime colors")')
@click.option('--smooth', '-s', is_flag=True, help='Smooth the color bands for methods 0 and 1')
@click.option('--single', '-S', is_flag=True,
              help='Color every point after exactly the iteration budget instead of the escape time')
@click.option('--disable-fancy', is_flag=True, help='Disable red/blue for color method 1')
@click.option('--multiplier', type=float, help='Color multiplier')
@click.option('--clog', type=int, help='Number of natural-log passes over the color channels')
@click.option('--size', '-r', type=int, help='Image height in pixels')
@click.option('--width-multiplier', type=float, help='Image width as a multiple of the height')
@click.option('--iterations', '-i', type=int, help='Maximum iterations')
@click.option('--exponent', '-e', type=float, help='Fractal exponent')
@click.option('--escape-limit', type=float, help='Escape limit (squared modulus)')
@click.option('--julia-x', type=float, help='Real part of the Julia constant')
@click.option('--julia-y', type=float, help='Imaginary part of the Julia constant')
@click.option('--julia-preset', type=click.Choice(sorted(JULIA_PRESETS)),
              help='Named Julia constant')
@click.option('--periodicity', type=int, help='Periodicity window size (0 disables)')
@click.option('--lbound', type=float, help='Left bound')
@click.option('--rbound', type=float, help='Right bound')
@click.option('--bbound', type=float, help='Bottom bound')
@click.option('--ubound', type=float, help='Upper bound')
@click.option('--box', type=float, help='Symmetric bounds -box..box (overrides the individual bounds)')
@click.option('--precision', type=click.Choice(sorted(PRECISION_TYPES)), help='Working precision')
@click.option('--output-dir', type=click.Path(file_okay=False), default='tiles', show_default=True,
              help='Output root directory')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='JSON configuration file; command-line options override it')
def render(output_dir, config_file, **options):
    """Render one fractal image."""
    try:
        config = build_config(load_config_file(config_file), options)
        renderer = FractalRenderer(config)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    token = CancellationToken()

    def handle_sigint(signum, frame):
        token.cancel()

    # Ctrl+C stops iteration and keeps the partial image
    previous_handler = signal.signal(signal.SIGINT, handle_sigint)
    progress = ProgressLine(f"Rendering {config.fractal.variant.label}")
    try:
        result = renderer.render(cancellation=token, progress_callback=progress)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    statistics = result.statistics
    duration = statistics.duration_seconds
    plural = '' if duration == 1 else 's'
    progress.finish(f"done in {duration:g} second{plural} ({statistics.summary()})")
    if result.partial:
        click.echo("Render cancelled; saving partial image")

    try:
        path = renderer.save(result, Path(output_dir))
    except (OSError, RuntimeError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Saved {path}")


@main.command()
def colors():
    """List the available color methods."""
    click.echo("Available color methods:")
    for index, description in list_color_methods():
        click.echo(f"  {index:2d}: {description}")


@main.command()
def types():
    """List the available fractal types."""
    click.echo("Available fractal types:")
    for variant in FractalVariant:
        click.echo(f"  {variant.value}")
        click.echo(f"    {list_fractals()[variant.label]}")

    click.echo("\nJulia constant presets:")
    for name, (real, imag) in JULIA_PRESETS.items():
        click.echo(f"  {name}: {real:g} + {imag:g}i")


if __name__ == '__main__':
    main()
