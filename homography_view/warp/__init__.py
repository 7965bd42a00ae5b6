"""Homography estimation and perspective warping."""

from homography_view.warp.homography import (
    DegenerateCorrespondence,
    compute_transform,
    is_degenerate_quad,
    project_points,
)
from homography_view.warp.renderer import WarpRenderer, draw_corner_markers, warp_image

__all__ = [
    'DegenerateCorrespondence',
    'compute_transform',
    'is_degenerate_quad',
    'project_points',
    'WarpRenderer',
    'draw_corner_markers',
    'warp_image',
]
