"""Span detection — partitions a line into the intervals that get sorted.

Five strategies, selected by IntervalMode:
  threshold  maximal runs of pixels whose normalized key is in [lower, upper]
  random     random-length spans separated by random gaps (draws from rng)
  edges      splits where the brightness step exceeds mean + stddev
  waves      sinusoidally varying span lengths, phase offset per line
  none       the whole line

Detection is followed by two post-filters in order: drop spans shorter
than span_min, then split spans longer than span_max left to right.
"""

import math
from typing import NamedTuple

import numpy as np

from sorting.lines import LineView
from sorting.params import IntervalMode, PixelSortParams
from sorting.sort_keys import brightness, sort_values_norm

RANDOM_MIN_LENGTH = 10
RANDOM_GAP_RANGE = (1, 20)
WAVE_MIN_LENGTH = 2
WAVE_PHASE_PER_LINE = 0.1
WAVE_PHASE_STEP = 0.5


class Span(NamedTuple):
    """Half-open interval [start, end) of line-local indices."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


def _runs(mask: np.ndarray) -> list[Span]:
    """Maximal runs of True in a boolean vector; a trailing run closes at the end."""
    padded = np.concatenate(([False], mask, [False])).astype(np.int8)
    transitions = np.diff(padded)
    starts = np.flatnonzero(transitions == 1)
    ends = np.flatnonzero(transitions == -1)
    return [Span(int(s), int(e)) for s, e in zip(starts, ends)]


def detect_threshold(
    line: LineView, lower_norm: float, upper_norm: float, key
) -> list[Span]:
    if len(line) == 0:
        return []
    values = sort_values_norm(line.pixels[:, :3], key)
    in_range = (values >= np.float32(lower_norm)) & (values <= np.float32(upper_norm))
    return _runs(in_range)


def detect_random(n: int, rng: np.random.Generator) -> list[Span]:
    if n <= 0:
        return []
    max_len = max(RANDOM_MIN_LENGTH + 1, n // 4)
    spans = []
    i = 0
    while i < n:
        length = int(rng.integers(RANDOM_MIN_LENGTH, max_len, endpoint=True))
        end = min(i + length, n)
        spans.append(Span(i, end))
        gap = int(rng.integers(*RANDOM_GAP_RANGE, endpoint=True))
        i = end + gap
    return spans


def detect_edges(line: LineView) -> list[Span]:
    n = len(line)
    if n <= 0:
        return []
    if n == 1:
        return [Span(0, 1)]

    px = line.pixels
    values = brightness(px[:, 0], px[:, 1], px[:, 2]) / np.float32(255.0)
    edges = np.abs(np.diff(values))

    edges64 = edges.astype(np.float64)
    mean = edges64.mean()
    variance = max((edges64 * edges64).mean() - mean * mean, 0.0)
    threshold = np.float32(mean + math.sqrt(variance))

    spans = []
    prev = 0
    for split in np.flatnonzero(edges > threshold) + 1:
        split = int(split)
        if split > prev:
            spans.append(Span(prev, split))
        prev = split
    if n > prev:
        spans.append(Span(prev, n))
    return spans


def detect_waves(n: int, line_index: int) -> list[Span]:
    if n <= 0:
        return []
    wave_len = max(10, n // 8)
    phase = line_index * WAVE_PHASE_PER_LINE
    spans = []
    i = 0
    while i < n:
        length = int(wave_len * (0.5 + 0.5 * math.sin(phase)) + 0.5)
        length = max(WAVE_MIN_LENGTH, length)
        end = min(i + length, n)
        spans.append(Span(i, end))
        i = end
        phase += WAVE_PHASE_STEP
    return spans


def detect_none(n: int) -> list[Span]:
    if n <= 0:
        return []
    return [Span(0, n)]


def filter_spans(spans: list[Span], span_min: int, span_max: int) -> list[Span]:
    """Drop spans shorter than span_min, then cap each at span_max (0 = no cap)."""
    if span_min > 1:
        spans = [s for s in spans if s.length >= span_min]
    if span_max > 0:
        capped = []
        for start, end in spans:
            while start < end:
                stop = min(start + span_max, end)
                capped.append(Span(start, stop))
                start = stop
        spans = capped
    return spans


def detect_spans(
    line: LineView,
    params: PixelSortParams,
    rng: np.random.Generator,
) -> list[Span]:
    """Detect and filter the spans of one line. Only random mode draws from rng."""
    n = len(line)
    mode = params.interval_mode

    if mode == IntervalMode.THRESHOLD:
        spans = detect_threshold(
            line,
            np.float32(params.lower_threshold) / np.float32(255.0),
            np.float32(params.upper_threshold) / np.float32(255.0),
            params.sort_key,
        )
    elif mode == IntervalMode.RANDOM:
        spans = detect_random(n, rng)
    elif mode == IntervalMode.EDGES:
        spans = detect_edges(line)
    elif mode == IntervalMode.WAVES:
        spans = detect_waves(n, line.index)
    else:
        spans = detect_none(n)

    return filter_spans(spans, params.span_min, params.span_max)
