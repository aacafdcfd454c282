import logging

import numpy as np
import pytest

from sorting.lines import LineView
from sorting.sort_keys import brightness


def make_image(h=32, w=32, seed=42, channels=3):
    """Random uint8 image (H, W, channels)."""
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, (h, w, channels), dtype=np.uint8)


def make_line(values, index=0, selection=None):
    """Line of pure-red pixels so the red key reads back ``values`` exactly."""
    pixels = np.zeros((len(values), 3), dtype=np.uint8)
    pixels[:, 0] = values
    strip = None if selection is None else np.asarray(selection, dtype=np.uint8)
    return LineView(pixels, index, strip)


def row_brightness(pixels: np.ndarray) -> np.ndarray:
    return brightness(pixels[..., 0], pixels[..., 1], pixels[..., 2])


@pytest.fixture
def image():
    return make_image()


@pytest.fixture
def restore_root_logger():
    """Remove any handlers a test attaches to the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
