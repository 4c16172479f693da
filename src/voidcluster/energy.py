import math
from typing import Tuple

import numpy as np

# Gaussian falloff of the void-and-cluster filter
SIGMA = 1.9
TWO_SIGMA_SQUARED = 2.0 * SIGMA * SIGMA

Size = Tuple[int, int]


def energy(a: int, b: int, size: Size) -> float:
    """
    Interaction weight between cells a and b (row-major indices) on a
    toroidal grid of the given (width, height).
    """
    w, h = size
    ax, ay = a % w, a // w
    bx, by = b % w, b // w

    dx = abs(bx - ax)
    dx = min(dx, w - dx)
    dy = abs(by - ay)
    dy = min(dy, h - dy)

    return math.exp(-(dx * dx + dy * dy) / TWO_SIGMA_SQUARED)


def energy_stamp(size: Size) -> np.ndarray:
    """
    Weights of cell 0 against every cell, shape (height, width), float32.

    The kernel only depends on the wrapped offset between two cells, so the
    row for cell (x, y) is this stamp rolled by (y, x).
    """
    w, h = size
    xs = np.arange(w)
    ys = np.arange(h)
    dx = np.minimum(xs, w - xs).astype(np.float64)
    dy = np.minimum(ys, h - ys).astype(np.float64)

    d2 = dy[:, np.newaxis] ** 2 + dx[np.newaxis, :] ** 2
    return np.exp(-d2 / TWO_SIGMA_SQUARED).astype(np.float32)


def energy_row(stamp: np.ndarray, index: int) -> np.ndarray:
    """Flat float32 weights of cell `index` against the whole grid."""
    h, w = stamp.shape
    x, y = index % w, index // w
    return np.roll(stamp, (y, x), axis=(0, 1)).ravel()
