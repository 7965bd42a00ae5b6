"""Correspondence state: source corners, destination quad and drag target."""

from homography_view.correspondence.model import (
    DEFAULT_DESTINATION_QUAD,
    CorrespondenceModel,
    Corner,
    Point2D,
    ViewConfig,
)

__all__ = [
    'DEFAULT_DESTINATION_QUAD',
    'CorrespondenceModel',
    'Corner',
    'Point2D',
    'ViewConfig',
]
