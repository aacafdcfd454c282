"""Scalar sort keys derived from RGB.

Each function takes r, g, b as scalars or equally-shaped arrays and
computes in float32. The raw form orders pixels; the normalized [0, 1]
form is only used by threshold span detection, where the 0-255 bounds are
rescaled the same way for every key.
"""

import numpy as np

from sorting.params import SortKey


def _channels(r, g, b):
    return (
        np.asarray(r, dtype=np.float32),
        np.asarray(g, dtype=np.float32),
        np.asarray(b, dtype=np.float32),
    )


def brightness(r, g, b):
    """Luma with BT.601 weights: 0.299R + 0.587G + 0.114B."""
    r, g, b = _channels(r, g, b)
    return np.float32(0.299) * r + np.float32(0.587) * g + np.float32(0.114) * b


def intensity(r, g, b):
    r, g, b = _channels(r, g, b)
    return (r + g + b) / np.float32(3.0)


def minimum(r, g, b):
    r, g, b = _channels(r, g, b)
    return np.minimum(np.minimum(r, g), b)


def hue(r, g, b):
    """HSV hue in degrees [0, 360). Achromatic pixels have hue 0."""
    r, g, b = _channels(r, g, b)
    max_c = np.maximum(np.maximum(r, g), b)
    min_c = np.minimum(np.minimum(r, g), b)
    delta = max_c - min_c
    safe = np.where(delta > 0, delta, np.float32(1.0))

    h = np.where(
        max_c == r,
        np.float32(60.0) * np.fmod((g - b) / safe, np.float32(6.0)),
        np.where(
            max_c == g,
            np.float32(60.0) * ((b - r) / safe + np.float32(2.0)),
            np.float32(60.0) * ((r - g) / safe + np.float32(4.0)),
        ),
    )
    h = np.where(h < 0, h + np.float32(360.0), h)
    return np.where(delta > 0, h, np.float32(0.0)).astype(np.float32)


def saturation(r, g, b):
    """HSV saturation (max - min) / max, 0 for black."""
    r, g, b = _channels(r, g, b)
    max_c = np.maximum(np.maximum(r, g), b)
    min_c = np.minimum(np.minimum(r, g), b)
    safe = np.where(max_c > 0, max_c, np.float32(1.0))
    return np.where(max_c > 0, (max_c - min_c) / safe, np.float32(0.0)).astype(
        np.float32
    )


def red(r, g, b):
    return np.asarray(r, dtype=np.float32)


def green(r, g, b):
    return np.asarray(g, dtype=np.float32)


def blue(r, g, b):
    return np.asarray(b, dtype=np.float32)


SORT_KEYS = {
    SortKey.BRIGHTNESS: brightness,
    SortKey.HUE: hue,
    SortKey.SATURATION: saturation,
    SortKey.INTENSITY: intensity,
    SortKey.MINIMUM: minimum,
    SortKey.RED: red,
    SortKey.GREEN: green,
    SortKey.BLUE: blue,
}

# Divisor that maps each raw key onto [0, 1]; saturation is already unit-range.
NORM_SCALE = {
    SortKey.BRIGHTNESS: 255.0,
    SortKey.HUE: 360.0,
    SortKey.SATURATION: 1.0,
    SortKey.INTENSITY: 255.0,
    SortKey.MINIMUM: 255.0,
    SortKey.RED: 255.0,
    SortKey.GREEN: 255.0,
    SortKey.BLUE: 255.0,
}


def sort_value(r, g, b, key: SortKey):
    """Raw sort value for one pixel (or broadcast arrays)."""
    return SORT_KEYS.get(key, brightness)(r, g, b)


def sort_value_norm(r, g, b, key: SortKey):
    """Sort value rescaled into [0, 1] for threshold comparisons."""
    scale = NORM_SCALE.get(key, 255.0)
    return sort_value(r, g, b, key) / np.float32(scale)


def sort_values(pixels: np.ndarray, key: SortKey) -> np.ndarray:
    """Raw sort values for an (n, 3) pixel array."""
    return sort_value(pixels[:, 0], pixels[:, 1], pixels[:, 2], key)


def sort_values_norm(pixels: np.ndarray, key: SortKey) -> np.ndarray:
    """Normalized sort values for an (n, 3) pixel array."""
    return sort_value_norm(pixels[:, 0], pixels[:, 1], pixels[:, 2], key)
