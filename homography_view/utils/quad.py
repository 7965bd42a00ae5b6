"""Parsing and formatting helpers for the command line."""

from typing import Tuple

import numpy as np


def parse_quad(text: str) -> Tuple[Tuple[float, float], ...]:
    """Parse "x,y x,y x,y x,y" into four (x, y) float pairs.

    Raises:
        ValueError: If the text does not hold exactly four numeric pairs.
    """
    pairs = text.replace(';', ' ').split()
    if len(pairs) != 4:
        raise ValueError(f"expected 4 points as 'x,y x,y x,y x,y', got {len(pairs)}")

    points = []
    for pair in pairs:
        parts = pair.split(',')
        if len(parts) != 2:
            raise ValueError(f"malformed point '{pair}', expected 'x,y'")
        try:
            x, y = float(parts[0]), float(parts[1])
        except ValueError as e:
            raise ValueError(f"malformed point '{pair}': {e}") from e
        if not (np.isfinite(x) and np.isfinite(y)):
            raise ValueError(f"malformed point '{pair}': coordinates must be finite")
        points.append((x, y))

    return tuple(points)


def format_matrix(matrix: np.ndarray, precision: int = 6) -> str:
    rows = []
    for row in matrix:
        rows.append("  [" + "  ".join(f"{v: .{precision}f}" for v in row) + "]")
    return "\n".join(rows)
