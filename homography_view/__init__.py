"""Homography View - interactive perspective warp of an image onto a draggable quad."""

__version__ = '0.1.0'
