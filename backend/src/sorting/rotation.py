"""Nearest-pixel rotation for angled sorting.

rotate() resamples the source into the bounding box of its rotated
rectangle; unrotate() maps back into a source-shaped buffer. Both use
inverse mapping with round-half-up to the nearest pixel; points that land
outside the sampled image stay zero.
"""

import math

import numpy as np


class Rotation:
    """Geometry shared by rotate() and unrotate() for one run."""

    def __init__(self, width: int, height: int, angle: int):
        rad = angle * math.pi / 180.0
        self.cos_a = math.cos(rad)
        self.sin_a = math.sin(rad)
        self.width = width
        self.height = height
        self.rot_width = max(
            1, math.ceil(abs(width * self.cos_a) + abs(height * self.sin_a))
        )
        self.rot_height = max(
            1, math.ceil(abs(width * self.sin_a) + abs(height * self.cos_a))
        )
        self.cx = (width - 1) / 2.0
        self.cy = (height - 1) / 2.0
        self.rcx = (self.rot_width - 1) / 2.0
        self.rcy = (self.rot_height - 1) / 2.0


def _nearest(coords: np.ndarray) -> np.ndarray:
    # int(v + 0.5): truncation toward zero, so -0.7 maps to 0, not -1
    return np.trunc(coords + 0.5).astype(np.intp)


def _resample(
    source: np.ndarray,
    out_shape: tuple[int, int],
    src_x: np.ndarray,
    src_y: np.ndarray,
) -> np.ndarray:
    h, w = source.shape[:2]
    out = np.zeros(out_shape + source.shape[2:], dtype=source.dtype)
    valid = (src_x >= 0) & (src_x < w) & (src_y >= 0) & (src_y < h)
    out[valid] = source[src_y[valid], src_x[valid]]
    return out


def rotate(source: np.ndarray, geom: Rotation) -> np.ndarray:
    """Resample ``source`` (H, W, C) into the rotated bounding box."""
    ry, rx = np.mgrid[0 : geom.rot_height, 0 : geom.rot_width]
    dx = rx - geom.rcx
    dy = ry - geom.rcy
    src_x = _nearest(dx * geom.cos_a - dy * geom.sin_a + geom.cx)
    src_y = _nearest(dx * geom.sin_a + dy * geom.cos_a + geom.cy)
    return _resample(source, (geom.rot_height, geom.rot_width), src_x, src_y)


def unrotate(rotated: np.ndarray, geom: Rotation) -> np.ndarray:
    """Map a rotated buffer back onto the original (H, W) grid."""
    fy, fx = np.mgrid[0 : geom.height, 0 : geom.width]
    dx = fx - geom.cx
    dy = fy - geom.cy
    src_x = _nearest(dx * geom.cos_a + dy * geom.sin_a + geom.rcx)
    src_y = _nearest(-dx * geom.sin_a + dy * geom.cos_a + geom.rcy)
    return _resample(rotated, (geom.height, geom.width), src_x, src_y)
