"""Point-correspondence state for the interactive homography view.

The model owns the four fixed source corners of the input image, the four
mutable destination points they are mapped onto, and the index of the corner
currently being dragged. It does no rendering.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_DESTINATION_QUAD: Tuple[Tuple[float, float], ...] = (
    (277, 89),
    (551, 217),
    (319, 399),
    (39, 270),
)


class Corner(IntEnum):
    """Fixed winding order of the correspondence set."""

    TOP_LEFT = 0
    TOP_RIGHT = 1
    BOTTOM_RIGHT = 2
    BOTTOM_LEFT = 3


@dataclass(frozen=True)
class Point2D:
    """A point in image or canvas coordinates."""

    x: float
    y: float

    def squared_distance_to(self, other: "Point2D") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass
class ViewConfig:
    """Viewer options shared by the model and the renderer."""

    show_corner_markers: bool = False
    drag_threshold_radius: float = 10.0


class CorrespondenceModel:
    """Four source->destination pairs plus the active drag target."""

    def __init__(
        self,
        image_size: Tuple[int, int],
        destination_points: Sequence[Tuple[float, float]] = DEFAULT_DESTINATION_QUAD,
        config: Optional[ViewConfig] = None,
    ) -> None:
        """Initialize the model from the input image dimensions.

        Args:
            image_size: (width, height) of the source image.
            destination_points: Initial destination quad, 4 (x, y) pairs in
                TL, TR, BR, BL order.
            config: Viewer options. If None, uses defaults.

        Raises:
            ValueError: If destination_points does not hold exactly 4 points.
        """
        if len(destination_points) != len(Corner):
            raise ValueError(
                f"Expected {len(Corner)} destination points, got {len(destination_points)}"
            )

        width, height = image_size
        self._source: Tuple[Point2D, ...] = (
            Point2D(0.0, 0.0),
            Point2D(float(width), 0.0),
            Point2D(float(width), float(height)),
            Point2D(0.0, float(height)),
        )
        self._destination: List[Point2D] = [
            Point2D(float(x), float(y)) for x, y in destination_points
        ]
        self._dragged: Optional[Corner] = None
        self.config = config or ViewConfig()

    @property
    def source_points(self) -> Tuple[Point2D, ...]:
        return self._source

    @property
    def destination_points(self) -> Tuple[Point2D, ...]:
        return tuple(self._destination)

    @property
    def dragged_index(self) -> Optional[Corner]:
        return self._dragged

    @property
    def is_dragging(self) -> bool:
        return self._dragged is not None

    @property
    def show_corner_markers(self) -> bool:
        return self.config.show_corner_markers

    def correspondences(self) -> List[Tuple[Point2D, Point2D]]:
        return list(zip(self._source, self._destination))

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return (source, destination) as float32 arrays of shape (4, 2)."""
        src = np.array([p.as_tuple() for p in self._source], dtype=np.float32)
        dst = np.array([p.as_tuple() for p in self._destination], dtype=np.float32)
        return src, dst

    def select_nearest(self, pointer: Point2D) -> Optional[Corner]:
        """Find the destination point a pointer-down at `pointer` would pick.

        Points are scanned in corner order and the first one strictly inside
        the pick radius wins, so overlapping radii resolve to the lowest index.

        Args:
            pointer: Pointer position in canvas coordinates.

        Returns:
            The selected corner, or None if no point is within the radius.
        """
        threshold_sq = self.config.drag_threshold_radius ** 2
        for corner in Corner:
            if self._destination[corner].squared_distance_to(pointer) < threshold_sq:
                return corner
        return None

    def begin_drag(self, pointer: Point2D) -> Optional[Corner]:
        self._dragged = self.select_nearest(pointer)
        if self._dragged is not None:
            logger.debug(f"Drag started on {self._dragged.name} at ({pointer.x:.0f}, {pointer.y:.0f})")
        return self._dragged

    def update_drag(self, pointer: Point2D) -> bool:
        """Move the dragged point to `pointer`.

        Returns:
            True if a destination point changed and the view needs a redraw.
        """
        if self._dragged is None:
            return False
        self._destination[self._dragged] = pointer
        return True

    def end_drag(self) -> None:
        if self._dragged is not None:
            logger.debug(f"Drag ended on {self._dragged.name}")
        self._dragged = None

    def toggle_markers(self) -> bool:
        self.config.show_corner_markers = not self.config.show_corner_markers
        logger.debug(f"Corner markers {'on' if self.config.show_corner_markers else 'off'}")
        return self.config.show_corner_markers

    def set_destination(self, index: int, point: Point2D) -> None:
        self._destination[Corner(index)] = point

    def reset_to_source(self) -> None:
        """Map every source corner onto itself."""
        self._destination = list(self._source)
