"""Warp the source image through the current homography and draw the frame."""

import logging
from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from homography_view.correspondence.model import CorrespondenceModel, Point2D, ViewConfig
from homography_view.warp.homography import DegenerateCorrespondence, compute_transform

logger = logging.getLogger(__name__)

MARKER_COLOR: Tuple[int, int, int] = (100, 100, 0)  # BGR
MARKER_THICKNESS = 2


def to_bgr_uint8(image: np.ndarray) -> np.ndarray:
    """Convert a float32 RGB [0,1] or uint8 RGB image to uint8 BGR for OpenCV."""
    if image.dtype == np.float32 or image.dtype == np.float64:
        img_uint8 = np.clip(image * 255.0 + 0.5, 0, 255).astype(np.uint8)
    else:
        img_uint8 = image.astype(np.uint8)

    if img_uint8.ndim == 2:
        return cv2.cvtColor(img_uint8, cv2.COLOR_GRAY2BGR)
    elif img_uint8.shape[2] == 3:
        return cv2.cvtColor(img_uint8, cv2.COLOR_RGB2BGR)
    elif img_uint8.shape[2] == 4:
        return cv2.cvtColor(img_uint8, cv2.COLOR_RGBA2BGR)
    else:
        raise ValueError(f"Unsupported number of channels: {img_uint8.shape[2]}")


def warp_image(
    image_bgr: np.ndarray,
    transform: np.ndarray,
    output_size: Tuple[int, int],
    border_value: Tuple[int, int, int] = (0, 0, 0),
) -> np.ndarray:
    """Resample `image_bgr` through `transform` into a canvas of `output_size`.

    Args:
        image_bgr: Source image, uint8 BGR.
        transform: 3x3 homography from source to canvas coordinates.
        output_size: Canvas (width, height).
        border_value: Fill for canvas pixels that map outside the source.

    Returns:
        Warped canvas, uint8 BGR with shape (height, width, 3).
    """
    return cv2.warpPerspective(
        image_bgr,
        transform,
        output_size,
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=border_value,
    )


def draw_corner_markers(
    frame: np.ndarray,
    points: Sequence[Point2D],
    radius: float,
    color: Tuple[int, int, int] = MARKER_COLOR,
    thickness: int = MARKER_THICKNESS,
) -> np.ndarray:
    """Draw an outlined circle around each destination point, in place.

    Points whose circle cannot reach the canvas are skipped, so any finite
    coordinate is accepted.
    """
    height, width = frame.shape[:2]
    r = max(1, int(round(radius)))
    reach = r + thickness
    for p in points:
        if not (-reach <= p.x <= width + reach and -reach <= p.y <= height + reach):
            continue
        center = (int(round(p.x)), int(round(p.y)))
        cv2.circle(frame, center, r, color, thickness)
    return frame


class WarpRenderer:
    """Derives the current transform and produces the displayable frame.

    Keeps the last valid frame so a degenerate drag position never blanks
    the canvas.
    """

    def __init__(
        self,
        image: np.ndarray,
        output_size: Tuple[int, int],
        surface=None,
        marker_color: Tuple[int, int, int] = MARKER_COLOR,
        marker_thickness: int = MARKER_THICKNESS,
        border_value: Tuple[int, int, int] = (0, 0, 0),
    ) -> None:
        """Initialize the renderer.

        Args:
            image: Source image, float32 RGB [0,1] or uint8 RGB.
            output_size: Canvas (width, height).
            surface: Display surface with a `show(frame)` method. Not owned.
            marker_color: BGR colour of the corner markers.
            marker_thickness: Line thickness of the corner markers.
            border_value: BGR fill outside the warped image.
        """
        # Converted once, not per frame
        self.source_bgr = to_bgr_uint8(image)
        self.output_size = (int(output_size[0]), int(output_size[1]))
        self.surface = surface
        self.marker_color = marker_color
        self.marker_thickness = marker_thickness
        self.border_value = border_value

        self.last_frame: Optional[np.ndarray] = None
        self.last_transform: Optional[np.ndarray] = None
        self.is_frozen = False

    def compute_transform(self, model: CorrespondenceModel) -> np.ndarray:
        src, dst = model.as_arrays()
        return compute_transform(src, dst)

    def render(
        self,
        transform: np.ndarray,
        destination_points: Sequence[Point2D],
        config: ViewConfig,
    ) -> np.ndarray:
        """Warp the source image and overlay the corner markers if enabled.

        Markers are drawn after warping so image content never covers them.
        """
        frame = warp_image(self.source_bgr, transform, self.output_size, self.border_value)
        if config.show_corner_markers:
            draw_corner_markers(
                frame,
                destination_points,
                config.drag_threshold_radius,
                self.marker_color,
                self.marker_thickness,
            )
        return frame

    def refresh(self, model: CorrespondenceModel) -> Optional[np.ndarray]:
        """Recompute the transform and render a new frame.

        Returns:
            The new frame, or None when the correspondences are degenerate.
            In that case `last_frame` still holds the previous valid frame.
        """
        try:
            transform = self.compute_transform(model)
        except DegenerateCorrespondence as e:
            if not self.is_frozen:
                logger.debug(f"Keeping last frame: {e}")
            self.is_frozen = True
            return None

        if self.is_frozen:
            logger.debug("Correspondences valid again, resuming redraw")
        self.is_frozen = False

        frame = self.render(transform, model.destination_points, model.config)
        self.last_transform = transform
        self.last_frame = frame
        return frame

    def present_frame(self, frame: np.ndarray) -> None:
        if self.surface is not None:
            self.surface.show(frame)
