"""Interactive session: ties the correspondence model, renderer and window together."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from homography_view.correspondence.model import (
    DEFAULT_DESTINATION_QUAD,
    CorrespondenceModel,
    Point2D,
    ViewConfig,
)
from homography_view.warp.renderer import MARKER_COLOR, MARKER_THICKNESS, WarpRenderer

logger = logging.getLogger(__name__)

KEY_ESCAPE = 27


@dataclass
class SessionConfig:
    """All tunable parameters in one place."""

    # Window
    window_title: str = "homography"
    fullscreen: bool = False

    # Canvas
    output_size: Tuple[int, int] = (1920, 1080)  # (width, height)
    initial_quad: Tuple[Tuple[float, float], ...] = DEFAULT_DESTINATION_QUAD

    # Interaction
    drag_threshold_radius: float = 10.0
    show_corner_markers: bool = False
    toggle_keys: Tuple[int, ...] = field(default_factory=lambda: (ord("m"),))
    quit_keys: Tuple[int, ...] = field(default_factory=lambda: (ord("q"), KEY_ESCAPE))
    idle_interval_ms: int = 30

    # Overlay
    marker_color: Tuple[int, int, int] = MARKER_COLOR  # BGR
    marker_thickness: int = MARKER_THICKNESS


class HomographySession:
    """Owns the model and renderer and reacts to input events.

    The display surface only holds a non-owning reference to the session as
    its pointer handler.
    """

    def __init__(self, image: np.ndarray, config: Optional[SessionConfig] = None, surface=None) -> None:
        """Initialize the session.

        Args:
            image: Source image, float32 RGB [0,1] with shape (H, W, 3).
            config: Session configuration. If None, uses defaults.
            surface: Display surface (see DisplaySurface). May be None for
                headless use; frames are then only kept on the renderer.

        Raises:
            DegenerateCorrespondence: If the initial quad is degenerate.
        """
        self.config = config or SessionConfig()
        self.surface = surface

        height, width = image.shape[:2]
        self.model = CorrespondenceModel(
            (width, height),
            self.config.initial_quad,
            ViewConfig(
                show_corner_markers=self.config.show_corner_markers,
                drag_threshold_radius=self.config.drag_threshold_radius,
            ),
        )
        self.renderer = WarpRenderer(
            image,
            self.config.output_size,
            surface=surface,
            marker_color=self.config.marker_color,
            marker_thickness=self.config.marker_thickness,
        )

        # An initially degenerate quad has no previous frame to fall back to
        self.renderer.compute_transform(self.model)

        self.frames_presented = 0

    def redraw(self) -> bool:
        """Recompute, render and present one frame.

        Returns:
            True if a frame was presented, False if the correspondences are
            degenerate and the previous frame stays on screen.
        """
        frame = self.renderer.refresh(self.model)
        if frame is None:
            return False
        self.renderer.present_frame(frame)
        self.frames_presented += 1
        return True

    def start(self) -> None:
        if self.surface is not None:
            self.surface.bind(self)
        self.redraw()

    def on_pointer_down(self, pointer: Point2D) -> None:
        self.model.begin_drag(pointer)

    def on_pointer_move(self, pointer: Point2D) -> None:
        if self.model.update_drag(pointer):
            self.redraw()

    def on_pointer_up(self, pointer: Point2D) -> None:
        self.model.end_drag()

    def on_double_click(self, pointer: Point2D) -> None:
        self.toggle_markers()

    def toggle_markers(self) -> None:
        self.model.toggle_markers()
        self.redraw()

    def on_key(self, key: Optional[int]) -> bool:
        """Handle one polled key.

        Returns:
            False if the key asks to quit, True otherwise.
        """
        if key is None:
            return True
        if key in self.config.quit_keys:
            logger.info("Quit requested")
            return False
        if key in self.config.toggle_keys:
            self.toggle_markers()
        return True

    def run(self) -> int:
        """Run the interactive loop until a quit key is pressed or the window closes.

        Returns:
            Process exit code (0 on normal quit).
        """
        if self.surface is None:
            raise RuntimeError("An interactive session needs a display surface")

        self.start()
        while self.on_key(self.surface.poll_key(self.config.idle_interval_ms)):
            if not self.surface.is_visible():
                logger.info("Window closed")
                break

        logger.info(f"Session finished after {self.frames_presented} frame(s)")
        return 0
