"""OpenCV HighGUI window used as the display surface and input source."""

import logging
from typing import Optional

import cv2
import numpy as np

from homography_view.correspondence.model import Point2D

logger = logging.getLogger(__name__)


def dispatch_mouse_event(event: int, x: int, y: int, flags: int, handler) -> None:
    """Route a HighGUI mouse callback to the handler registered with it.

    The handler is whatever object was passed to `DisplaySurface.bind`; it
    receives pointer events as plain method calls.
    """
    if event == cv2.EVENT_LBUTTONDOWN:
        handler.on_pointer_down(Point2D(float(x), float(y)))
    elif event == cv2.EVENT_MOUSEMOVE:
        handler.on_pointer_move(Point2D(float(x), float(y)))
    elif event == cv2.EVENT_LBUTTONUP:
        handler.on_pointer_up(Point2D(float(x), float(y)))
    elif event == cv2.EVENT_LBUTTONDBLCLK:
        handler.on_double_click(Point2D(float(x), float(y)))


class DisplaySurface:
    """A single named window for the lifetime of the tool."""

    def __init__(self, title: str, fullscreen: bool = False) -> None:
        self.title = title
        self.fullscreen = fullscreen
        self._open = False

    def open(self) -> "DisplaySurface":
        cv2.namedWindow(self.title, cv2.WINDOW_AUTOSIZE)
        if self.fullscreen:
            cv2.setWindowProperty(self.title, cv2.WND_PROP_FULLSCREEN, cv2.WINDOW_FULLSCREEN)
        self._open = True
        logger.debug(f"Opened window '{self.title}'")
        return self

    def close(self) -> None:
        if self._open:
            cv2.destroyWindow(self.title)
            self._open = False
            logger.debug(f"Closed window '{self.title}'")

    def __enter__(self) -> "DisplaySurface":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def bind(self, handler) -> None:
        """Register `handler` for pointer events. The surface does not own it."""
        cv2.setMouseCallback(self.title, dispatch_mouse_event, handler)

    def show(self, frame: np.ndarray) -> None:
        cv2.imshow(self.title, frame)

    def is_visible(self) -> bool:
        """False once the user has closed the window from its title bar."""
        if not self._open:
            return False
        return cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) >= 1

    def poll_key(self, interval_ms: int) -> Optional[int]:
        """Wait up to `interval_ms` for a key press.

        Returns:
            The key code, or None if no key was pressed within the interval.
        """
        key = cv2.waitKey(interval_ms)
        if key < 0:
            return None
        return key & 0xFF
