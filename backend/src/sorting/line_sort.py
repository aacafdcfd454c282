"""Line sorter — sorts the pixels of each span in place.

Per span, in this order: falloff coin flip, degenerate-length skip,
selection filtering, ascending sort by raw key, optional reverse, optional
jitter, write-back (blended by selection strength when a strip is present).

RNG consumption per span is fixed: one falloff draw when falloff > 0, then
one jitter draw per included pixel when jitter > 0. Changing the order of
these draws changes every downstream result.
"""

import numpy as np

from sorting.lines import LineView
from sorting.params import PixelSortParams
from sorting.sort_keys import sort_values
from sorting.spans import Span, detect_spans


def blend_selection(
    original: np.ndarray, processed: np.ndarray, strength: np.ndarray
) -> np.ndarray:
    """original + (processed - original) * strength / 255, truncated toward zero.

    ``strength`` has one fewer trailing axis than the pixel arrays. 0 returns
    the original exactly, 255 returns processed exactly.
    """
    orig = original.astype(np.int32)
    delta = processed.astype(np.int32) - orig
    weighted = delta * strength.astype(np.int32)[..., np.newaxis]
    step = np.sign(weighted) * (np.abs(weighted) // 255)
    return (orig + step).astype(np.uint8)


def jitter_order(order: np.ndarray, amount: int, rng: np.random.Generator) -> np.ndarray:
    """Swap each position with a random neighbour within +/- amount, left to right.

    Each swap sees the result of the previous ones.
    """
    count = order.shape[0]
    order = order.copy()
    offsets = rng.integers(-amount, amount, size=count, endpoint=True)
    for i in range(count):
        j = min(count - 1, max(0, i + int(offsets[i])))
        order[i], order[j] = order[j], order[i]
    return order


def sort_span(
    line: LineView,
    span: Span,
    params: PixelSortParams,
    rng: np.random.Generator,
) -> bool:
    """Sort one span of a line. Returns True if any pixel was written."""
    if params.falloff > 0 and int(rng.integers(0, 100)) < params.falloff:
        return False
    if span.length < 2:
        return False

    offsets = np.arange(span.start, min(span.end, len(line)))
    if line.selection is not None:
        offsets = offsets[line.selection[offsets] > 0]
    if offsets.shape[0] < 2:
        return False

    pixels = line.read(offsets)
    order = np.argsort(sort_values(pixels, params.sort_key), kind="stable")
    if params.reverse:
        order = order[::-1]
    if params.jitter > 0:
        order = jitter_order(order, params.jitter, rng)
    sorted_pixels = pixels[order]

    strengths = line.strengths(offsets)
    if strengths is None:
        line.write(offsets, sorted_pixels)
    else:
        line.write(offsets, blend_selection(pixels, sorted_pixels, strengths))
    return True


def sort_line(
    line: LineView,
    params: PixelSortParams,
    rng: np.random.Generator,
) -> int:
    """Detect spans for a line and sort each. Returns the number of spans sorted."""
    if len(line) == 0:
        return 0
    sorted_count = 0
    for span in detect_spans(line, params, rng):
        if sort_span(line, span, params, rng):
            sorted_count += 1
    return sorted_count
