"""
Histogram chart CLI commands for PhotoScope

Renders the four histograms of an analysis to PNG charts.
"""

import sys
import click
import logging
from pathlib import Path

from ..analysis import ImageAnalyzer
from ..config import get_config_value
from ..io import ImageDecodeError, load_raster
from ..render import save_result_charts

logger = logging.getLogger(__name__)


def render_options(config) -> dict:
    """Chart size and stroke from the ``render`` config section"""
    render = get_config_value(config or {}, 'render', {}) or {}
    return {
        'width': render.get('width', 512),
        'height': render.get('height', 256),
        'margin': render.get('margin', 10),
        'line_width': render.get('line_width', 2),
    }


@click.command()
@click.argument('image', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('output_dir', type=click.Path(file_okay=False, path_type=Path))
@click.option('--backend', type=click.Choice(['pillow', 'opencv']), default='pillow',
              help='Image decoder to use')
@click.option('--stem', help='File name prefix for the charts (default: image name)')
@click.pass_context
def chart(ctx, image: Path, output_dir: Path, backend: str, stem: str):
    """
    Render histogram charts for an image.

    Writes red, green, blue and luminance charts to OUTPUT_DIR.
    """
    config = ctx.obj.get('config', {}) if ctx.obj else {}

    try:
        raster = load_raster(image, backend=backend)
    except ImageDecodeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    outcome = ImageAnalyzer.from_config(config).analyze(raster)
    if not outcome.ok:
        click.echo(f"Error: {outcome.error}", err=True)
        sys.exit(1)

    written = save_result_charts(outcome.result, output_dir, stem or image.stem,
                                 **render_options(config))
    for name, path in written.items():
        click.echo(f"  {name}: {path}")
