#!/usr/bin/env python3
"""
PhotoScope Command Line Interface

Main CLI entry point for PhotoScope photometric analysis.
Provides commands to analyze single images, batches of images and to
render histogram charts.
"""

import sys
import json
import time
import click
import logging
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from photoscope import __version__
from photoscope.analysis import ImageAnalyzer, ImageAnalysisResult
from photoscope.cli import chart, render_options
from photoscope.config import load_config, get_config_value
from photoscope.io import ImageDecodeError, find_images, load_raster
from photoscope.render import save_result_charts
from photoscope.utils import BatchStats, setup_console_logging

logger = logging.getLogger(__name__)


def format_result(name: str, result: ImageAnalysisResult) -> str:
    """Human-readable summary of one analysis"""
    wb = result.white_balance
    contrast = result.contrast
    exposure = result.exposure
    lum = result.luminance.statistics

    lines = [
        f"{name} ({result.width}x{result.height})",
        f"  White balance:  {wb.temperature:.0f}K, tint {wb.tint:+.2f} "
        f"(R {wb.red_ratio:.2f} / G {wb.green_ratio:.2f} / B {wb.blue_ratio:.2f})",
        f"  Luminance:      mean {lum.mean:.1f}, median {lum.median:.0f}, "
        f"std {lum.standard_deviation:.1f}, range {lum.dynamic_range}",
        f"  Clipping:       shadows {'yes' if lum.shadow_clipping else 'no'}, "
        f"highlights {'yes' if lum.highlight_clipping else 'no'}",
        f"  Contrast:       RMS {contrast.rms_contrast:.3f}, Michelson {contrast.michelson_contrast:.3f}, "
        f"Weber {contrast.weber_contrast:.3f}, {contrast.dynamic_range_stops:.1f} stops",
        f"  Exposure:       {exposure.average_ev:+.2f} EV (target {exposure.suggested_ev:+.2f} EV)",
    ]
    if exposure.is_underexposed:
        lines.append("  Verdict:        underexposed")
    if exposure.is_overexposed:
        lines.append("  Verdict:        overexposed")
    if exposure.recommendation:
        lines.append(f"  Recommendation: {exposure.recommendation}")
    return "\n".join(lines)


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False):
    """
    PhotoScope - photometric image analysis

    Histograms, white balance, contrast and exposure diagnostics for
    JPEG, PNG, TIFF and other 8-bit images.
    """
    if ctx.obj is None:
        ctx.obj = {}

    ctx.obj['config'] = load_config(config)

    level = get_config_value(ctx.obj['config'], 'logging.level', 'INFO')
    if verbose:
        level = 'DEBUG'
    elif quiet:
        level = 'ERROR'
    setup_console_logging(
        level,
        fmt=get_config_value(ctx.obj['config'], 'logging.format',
                             '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
    )

    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


@main.command()
@click.argument('image', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.option('--bins', is_flag=True, help='Include histogram bins in JSON output')
@click.option('--charts', type=click.Path(file_okay=False, path_type=Path),
              help='Directory to write histogram charts to')
@click.option('--backend', type=click.Choice(['pillow', 'opencv']), default='pillow',
              help='Image decoder to use')
@click.pass_context
def analyze(ctx, image: Path, as_json: bool, bins: bool,
            charts: Optional[Path], backend: str):
    """
    Analyze a single image.

    IMAGE: Path to the image file
    """
    config = ctx.obj.get('config', {})

    try:
        raster = load_raster(image, backend=backend)
    except ImageDecodeError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    outcome = ImageAnalyzer.from_config(config).analyze(raster)
    if not outcome.ok:
        click.echo(f"❌ Analysis failed: {outcome.error}", err=True)
        sys.exit(1)

    result = outcome.result
    if as_json:
        click.echo(json.dumps(result.to_dict(include_bins=bins), indent=2))
    else:
        click.echo(format_result(image.name, result))

    if charts:
        save_result_charts(result, charts, image.stem, **render_options(config))
        if not ctx.obj.get('quiet') and not as_json:
            click.echo(f"📊 Charts saved to: {charts}")


@main.command()
@click.argument('directory', type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path))
@click.option('--recursive/--no-recursive', default=True, help='Process subdirectories')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Write one JSON line per image to this file')
@click.option('--backend', type=click.Choice(['pillow', 'opencv']), default='pillow',
              help='Image decoder to use')
@click.pass_context
def batch(ctx, directory: Path, recursive: bool, output: Optional[Path], backend: str):
    """
    Analyze every image in a directory.

    DIRECTORY: Path to directory containing images
    """
    config = ctx.obj.get('config', {})
    quiet = ctx.obj.get('quiet', False)

    images = find_images(directory, recursive=recursive)
    if not images:
        click.echo("❌ No images found in directory", err=True)
        sys.exit(1)

    analyzer = ImageAnalyzer.from_config(config)
    stats = BatchStats()
    stats.set_total(len(images))
    records = []

    for path in tqdm(images, desc="Analyzing images", unit="img", disable=quiet):
        started = time.perf_counter()
        try:
            raster = load_raster(path, backend=backend)
        except ImageDecodeError as e:
            stats.add_error(str(path), str(e))
            continue

        outcome = analyzer.analyze(raster)
        if not outcome.ok:
            stats.add_error(str(path), str(outcome.error))
            continue

        result = outcome.result
        stats.add_result(
            underexposed=result.exposure.is_underexposed,
            overexposed=result.exposure.is_overexposed,
            processing_time=time.perf_counter() - started,
        )
        records.append({'file': str(path), **result.to_dict(include_bins=False)})

    if output:
        with open(output, 'w') as f:
            for record in records:
                f.write(json.dumps(record) + "\n")
        if not quiet:
            click.echo(f"💾 Results saved to: {output}")

    if not quiet:
        click.echo(stats.format_summary())

    if stats.failed_files:
        sys.exit(1)


main.add_command(chart)


@main.command()
def version():
    """Show PhotoScope version information."""
    click.echo(f"PhotoScope v{__version__}")
    click.echo("Photometric image analysis")


if __name__ == '__main__':
    main()
