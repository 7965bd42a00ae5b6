"""Homography estimation from the four corner correspondences.

The solver itself is OpenCV's; this module decides when its answer is usable.
"""

import itertools
import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

# Twice the triangle area (px^2) below which three points count as collinear
COLLINEAR_TOLERANCE = 1e-6


class DegenerateCorrespondence(Exception):
    """The destination points do not determine a unique homography."""


def is_degenerate_quad(points: np.ndarray, tolerance: float = COLLINEAR_TOLERANCE) -> bool:
    """Check whether any three of the four points are collinear or coincident.

    A homography preserves collinearity, so mapping a proper rectangle onto
    such a quad has no non-singular solution.

    Args:
        points: Array of shape (4, 2).
        tolerance: Cross-product magnitude treated as zero.

    Returns:
        True if the quad is degenerate.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    for a, b, c in itertools.combinations(pts, 3):
        ab = b - a
        ac = c - a
        cross = ab[0] * ac[1] - ab[1] * ac[0]
        if abs(cross) <= tolerance:
            return True
    return False


def compute_transform(source: np.ndarray, destination: np.ndarray) -> np.ndarray:
    """Compute the 3x3 homography mapping `source` corners onto `destination`.

    Args:
        source: Source corners (4, 2) as [TL, TR, BR, BL].
        destination: Destination corners (4, 2) in the same order.

    Returns:
        Homography matrix (3, 3) float64, normalised so that M[2, 2] == 1.

    Raises:
        DegenerateCorrespondence: If the destination points are collinear,
            coincident, or the solver returns no usable matrix.
    """
    src = np.asarray(source, dtype=np.float64).reshape(-1, 2)
    dst = np.asarray(destination, dtype=np.float64).reshape(-1, 2)

    if src.shape != (4, 2) or dst.shape != (4, 2):
        raise ValueError(f"Expected two (4, 2) point arrays, got {src.shape} and {dst.shape}")

    if is_degenerate_quad(dst):
        raise DegenerateCorrespondence("Destination points are collinear or coincident")

    matrix, _ = cv2.findHomography(src, dst, method=0)

    if matrix is None or matrix.shape != (3, 3) or not np.all(np.isfinite(matrix)):
        raise DegenerateCorrespondence("Homography solver returned no solution")

    if abs(matrix[2, 2]) < 1e-12:
        raise DegenerateCorrespondence("Homography maps the origin to infinity")

    matrix = matrix / matrix[2, 2]

    if abs(np.linalg.det(matrix)) < 1e-12:
        raise DegenerateCorrespondence("Homography is singular")

    return matrix


def project_points(matrix: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Map an (N, 2) array of points through a homography.

    Returns:
        Projected points (N, 2) float64.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 1, 2)
    return cv2.perspectiveTransform(pts, matrix).reshape(-1, 2)
