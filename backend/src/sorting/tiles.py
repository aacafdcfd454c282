"""Tiled host storage: gather blocks into a full frame and scatter it back.

Hosts often expose a canvas as a list of block rects, each with its own
pixel buffer and channel order. Sorting needs contiguous rows and columns,
so the driver materializes the whole area first.
"""

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

RGB = (0, 1, 2)
BGR = (2, 1, 0)


class Rect(NamedTuple):
    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top


@dataclass
class Block:
    """One host tile: its rect in canvas coordinates and its buffers.

    ``image`` is (h, w, C) with the color channels at ``channels``; any other
    channel (alpha) is never touched. ``selection`` is (h, w) uint8 or None.
    """

    rect: Rect
    image: np.ndarray
    selection: np.ndarray | None = None
    channels: tuple[int, int, int] = RGB


def block_rects(area: Rect, block_size: int) -> list[Rect]:
    """Cover ``area`` with row-major block rects of at most block_size square."""
    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}")
    rects = []
    for top in range(area.top, area.bottom, block_size):
        for left in range(area.left, area.right, block_size):
            rects.append(
                Rect(
                    left,
                    top,
                    min(left + block_size, area.right),
                    min(top + block_size, area.bottom),
                )
            )
    return rects


def split_blocks(
    frame: np.ndarray,
    selection: np.ndarray | None = None,
    block_size: int = 256,
    channels: tuple[int, int, int] = RGB,
) -> list[Block]:
    """Expose a full frame as blocks of views into it (writes land in ``frame``)."""
    h, w = frame.shape[:2]
    blocks = []
    for rect in block_rects(Rect(0, 0, w, h), block_size):
        region = (slice(rect.top, rect.bottom), slice(rect.left, rect.right))
        sel = selection[region] if selection is not None else None
        blocks.append(Block(rect, frame[region], sel, channels))
    return blocks


def assemble(
    blocks: list[Block], area: Rect
) -> tuple[np.ndarray, np.ndarray | None]:
    """Gather blocks into a contiguous (H, W, 3) RGB buffer and optional selection.

    The selection buffer exists only if at least one block carries one;
    blocks without a selection leave their region at 0 (unselected).
    """
    rgb = np.zeros((area.height, area.width, 3), dtype=np.uint8)
    selection = None
    for block in blocks:
        region = (
            slice(block.rect.top - area.top, block.rect.bottom - area.top),
            slice(block.rect.left - area.left, block.rect.right - area.left),
        )
        rgb[region] = block.image[:, :, list(block.channels)]
        if block.selection is not None:
            if selection is None:
                selection = np.zeros((area.height, area.width), dtype=np.uint8)
            selection[region] = block.selection
    return rgb, selection


def write_back(blocks: list[Block], area: Rect, rgb: np.ndarray) -> None:
    """Scatter a full RGB buffer into each block's color channels."""
    for block in blocks:
        region = rgb[
            block.rect.top - area.top : block.rect.bottom - area.top,
            block.rect.left - area.left : block.rect.right - area.left,
        ]
        for i, channel in enumerate(block.channels):
            block.image[:, :, channel] = region[:, :, i]
