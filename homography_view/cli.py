"""Command-line interface for the interactive homography view."""

import logging
import sys
import click
import cv2
import numpy as np
from dotenv import load_dotenv

from homography_view import __version__
from homography_view.correspondence.model import DEFAULT_DESTINATION_QUAD, Corner
from homography_view.display.surface import DisplaySurface
from homography_view.preprocessing.loader import ImageLoadError, load_image
from homography_view.session import HomographySession, SessionConfig
from homography_view.utils.quad import format_matrix, parse_quad
from homography_view.warp.homography import DegenerateCorrespondence, project_points

# Load environment variables from .env
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)

logger = logging.getLogger(__name__)

DEFAULT_QUAD_TEXT = " ".join(f"{x:g},{y:g}" for x, y in DEFAULT_DESTINATION_QUAD)


def _quad_callback(ctx: click.Context, param: click.Parameter, value: str):
    try:
        return parse_quad(value)
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param)


def _load_or_exit(image_path: str):
    try:
        return load_image(image_path)
    except ImageLoadError as e:
        logger.error(str(e))
        sys.exit(1)


canvas_options = [
    click.option('--width', type=click.IntRange(min=1), default=1920, show_default=True,
                 envvar='HOMOGRAPHY_VIEW_WIDTH', help='Output canvas width in pixels'),
    click.option('--height', type=click.IntRange(min=1), default=1080, show_default=True,
                 envvar='HOMOGRAPHY_VIEW_HEIGHT', help='Output canvas height in pixels'),
    click.option('--quad', type=str, default=DEFAULT_QUAD_TEXT, show_default=True,
                 envvar='HOMOGRAPHY_VIEW_QUAD', callback=_quad_callback,
                 help='Initial destination quad as "x,y x,y x,y x,y" (TL TR BR BL)'),
]


def with_canvas_options(func):
    for option in reversed(canvas_options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Homography View - drag the corners of a quad and watch the image warp onto it."""
    pass


@main.command()
@click.argument('image_path', type=click.Path(), envvar='HOMOGRAPHY_VIEW_IMAGE')
@click.option('--title', type=str, default='homography', show_default=True,
              envvar='HOMOGRAPHY_VIEW_TITLE', help='Window title')
@with_canvas_options
@click.option('--radius', type=click.FloatRange(min=0, min_open=True), default=10.0,
              show_default=True, envvar='HOMOGRAPHY_VIEW_RADIUS',
              help='Pick radius for grabbing a corner')
@click.option('--markers/--no-markers', default=False, show_default=True,
              help='Show corner markers at startup')
@click.option('--fullscreen', is_flag=True, envvar='HOMOGRAPHY_VIEW_FULLSCREEN',
              help='Open the window fullscreen')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def run(
    image_path: str,
    title: str,
    width: int,
    height: int,
    quad: tuple,
    radius: float,
    markers: bool,
    fullscreen: bool,
    verbose: bool
) -> None:
    """Open the interactive view.

    IMAGE_PATH: Source image to warp

    Drag a corner to move it, double-click or press 'm' to toggle corner
    markers, press 'q' or Esc to quit.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    image, metadata = _load_or_exit(image_path)

    config = SessionConfig(
        window_title=title,
        fullscreen=fullscreen,
        output_size=(width, height),
        initial_quad=quad,
        drag_threshold_radius=radius,
        show_corner_markers=markers,
    )

    logger.info(f"Canvas: {width}x{height}, pick radius: {radius:g}")
    logger.info(f"Initial quad: {quad}")

    surface = DisplaySurface(config.window_title, fullscreen=config.fullscreen)
    try:
        session = HomographySession(image, config, surface)
    except DegenerateCorrespondence as e:
        raise click.BadParameter(f"initial quad is degenerate: {e}", param_hint="'--quad'")

    with surface:
        exit_code = session.run()

    sys.exit(exit_code)


@main.command()
@click.argument('image_path', type=click.Path(), envvar='HOMOGRAPHY_VIEW_IMAGE')
@with_canvas_options
def info(image_path: str, width: int, height: int, quad: tuple) -> None:
    """Print the correspondences and homography without opening a window.

    IMAGE_PATH: Source image to warp
    """
    image, metadata = _load_or_exit(image_path)

    config = SessionConfig(output_size=(width, height), initial_quad=quad)
    try:
        session = HomographySession(image, config)
    except DegenerateCorrespondence as e:
        raise click.BadParameter(f"initial quad is degenerate: {e}", param_hint="'--quad'")

    model = session.model
    matrix = session.renderer.compute_transform(model)
    src, dst = model.as_arrays()

    click.echo(f"Image: {image_path} ({image.shape[1]}x{image.shape[0]}, {metadata.format})")
    click.echo(f"Canvas: {width}x{height}")
    click.echo("")
    click.echo("Correspondences:")
    projected = project_points(matrix, src)
    for corner in Corner:
        s = src[corner]
        d = dst[corner]
        err = float(np.linalg.norm(projected[corner] - d))
        click.echo(
            f"  {corner.name:<12} ({s[0]:g}, {s[1]:g}) -> ({d[0]:g}, {d[1]:g})"
            f"  reprojection error {err:.2e}"
        )

    click.echo("")
    click.echo("Homography:")
    click.echo(format_matrix(matrix))

    quad_area = float(cv2.contourArea(dst))
    coverage = quad_area / float(width * height)
    click.echo("")
    click.echo(f"Warped quad area: {quad_area:.0f} px^2 ({coverage:.1%} of canvas)")


if __name__ == '__main__':
    main()
