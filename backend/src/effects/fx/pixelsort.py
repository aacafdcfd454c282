"""Pixel Sort effect — sorts spans of pixels along rows, columns, or an angle.

Thin adapter over sorting.transform: reads the flat params dict, sorts the
RGB channels of the frame, and leaves alpha where it was. The container
hands over its mask as an 8-bit ``_selection`` because selection changes
which pixels take part in the sort, not just how the result is mixed.
"""

import numpy as np

from sorting.params import IntervalMode, PixelSortParams, SortDirection, SortKey
from sorting.transform import run

EFFECT_ID = "fx.pixelsort"
EFFECT_NAME = "Pixel Sort"
EFFECT_CATEGORY = "glitch"
HANDLES_SELECTION = True


def _options(enum_cls) -> list[str]:
    return [member.name.lower() for member in enum_cls]


PARAMS: dict = {
    "direction": {
        "type": "choice",
        "options": _options(SortDirection),
        "default": "horizontal",
        "label": "Direction",
    },
    "sort_key": {
        "type": "choice",
        "options": _options(SortKey),
        "default": "brightness",
        "label": "Sort By",
    },
    "interval_mode": {
        "type": "choice",
        "options": _options(IntervalMode),
        "default": "threshold",
        "label": "Intervals",
        "description": "How each line is split into spans before sorting",
    },
    "lower_threshold": {
        "type": "int",
        "min": 0,
        "max": 255,
        "default": 64,
        "label": "Lower Threshold",
    },
    "upper_threshold": {
        "type": "int",
        "min": 0,
        "max": 255,
        "default": 204,
        "label": "Upper Threshold",
    },
    "reverse": {
        "type": "bool",
        "default": False,
        "label": "Reverse Sort",
    },
    "jitter": {
        "type": "int",
        "min": 0,
        "max": 100,
        "default": 0,
        "label": "Jitter",
        "unit": "px",
    },
    "span_min": {
        "type": "int",
        "min": 1,
        "max": 10000,
        "default": 1,
        "label": "Min Span",
        "unit": "px",
    },
    "span_max": {
        "type": "int",
        "min": 0,
        "max": 10000,
        "default": 0,
        "label": "Max Span",
        "unit": "px",
        "description": "0 = unlimited",
    },
    "angle": {
        "type": "int",
        "min": 0,
        "max": 359,
        "default": 0,
        "label": "Angle",
        "unit": "deg",
        "description": "Only used with horizontal direction",
    },
    "falloff": {
        "type": "int",
        "min": 0,
        "max": 100,
        "default": 0,
        "label": "Falloff",
        "unit": "%",
        "description": "Chance that a span is left unsorted",
    },
}


def apply(
    frame: np.ndarray,
    params: dict,
    state_in: dict | None = None,
    *,
    frame_index: int,
    seed: int,
    resolution: tuple[int, int],
) -> tuple[np.ndarray, dict | None]:
    """Pixel sort the frame's color channels. Stateless.

    Accepts RGB (H, W, 3) or RGBA (H, W, 4) uint8 frames.
    """
    selection = params.get("_selection")
    sort_params = PixelSortParams.from_dict(params)

    rgb = np.ascontiguousarray(frame[:, :, :3])
    sorted_rgb = run(rgb, selection, sort_params, seed=seed)

    output = frame.copy()
    output[:, :, :3] = sorted_rgb
    return output, None
