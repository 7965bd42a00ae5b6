"""Display surface and pointer input."""

from homography_view.display.surface import DisplaySurface, dispatch_mouse_event

__all__ = [
    'DisplaySurface',
    'dispatch_mouse_event',
]
