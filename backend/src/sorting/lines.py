"""Row and column views over an image buffer, addressed by logical index.

A LineView owns no pixels. For a horizontal line it wraps ``buffer[y]``, for
a vertical line ``buffer[:, x]``; both are numpy views, so writes land in the
underlying buffer regardless of stride.
"""

from typing import Iterator

import numpy as np


class LineView:
    """One scanline (or column) plus its aligned selection strip, if any."""

    def __init__(
        self,
        pixels: np.ndarray,
        index: int,
        selection: np.ndarray | None = None,
    ):
        if selection is not None and selection.shape[0] != pixels.shape[0]:
            raise ValueError(
                f"Selection strip length {selection.shape[0]} does not match "
                f"line length {pixels.shape[0]}"
            )
        self.pixels = pixels
        self.index = index
        self.selection = selection

    def __len__(self) -> int:
        return self.pixels.shape[0]

    def get(self, i: int) -> tuple[int, int, int]:
        r, g, b = self.pixels[i, :3]
        return int(r), int(g), int(b)

    def set(self, i: int, rgb) -> None:
        self.pixels[i, :3] = rgb

    def read(self, offsets: np.ndarray) -> np.ndarray:
        """Copy out the pixels at the given logical indices as (n, 3)."""
        return self.pixels[offsets, :3].copy()

    def write(self, offsets: np.ndarray, values: np.ndarray) -> None:
        self.pixels[offsets, :3] = values

    def strengths(self, offsets: np.ndarray) -> np.ndarray | None:
        if self.selection is None:
            return None
        return self.selection[offsets]


def iter_lines(
    buffer: np.ndarray,
    vertical: bool,
    selection: np.ndarray | None = None,
) -> Iterator[LineView]:
    """Yield every row (horizontal) or column (vertical) of an (H, W, C) buffer."""
    if vertical:
        for x in range(buffer.shape[1]):
            strip = selection[:, x] if selection is not None else None
            yield LineView(buffer[:, x], x, strip)
    else:
        for y in range(buffer.shape[0]):
            strip = selection[y] if selection is not None else None
            yield LineView(buffer[y], y, strip)
