"""Tests for tiled host storage."""

import numpy as np
import pytest

from conftest import make_image
from sorting.tiles import BGR, Block, Rect, assemble, block_rects, split_blocks, write_back

pytestmark = pytest.mark.smoke


def test_block_rects_cover_area():
    rects = block_rects(Rect(0, 0, 10, 7), 4)
    assert len(rects) == 6
    assert rects[0] == Rect(0, 0, 4, 4)
    assert rects[-1] == Rect(8, 4, 10, 7)
    assert sum(r.width * r.height for r in rects) == 70


def test_block_rects_offset_area():
    rects = block_rects(Rect(5, 3, 9, 6), 16)
    assert rects == [Rect(5, 3, 9, 6)]


@pytest.mark.parametrize("size", [0, -3])
def test_block_rects_invalid_size(size):
    with pytest.raises(ValueError):
        block_rects(Rect(0, 0, 4, 4), size)


def test_split_blocks_are_views():
    frame = make_image(9, 11)
    blocks = split_blocks(frame, block_size=4)
    blocks[0].image[0, 0] = (1, 2, 3)
    assert tuple(frame[0, 0]) == (1, 2, 3)


def test_assemble_round_trip_rgb():
    frame = make_image(9, 11)
    rgb, selection = assemble(split_blocks(frame, block_size=4), Rect(0, 0, 11, 9))
    np.testing.assert_array_equal(rgb, frame)
    assert selection is None


def test_assemble_swizzles_bgr():
    frame = make_image(6, 6)
    bgr = frame[:, :, ::-1].copy()
    rgb, _ = assemble(split_blocks(bgr, block_size=4, channels=BGR), Rect(0, 0, 6, 6))
    np.testing.assert_array_equal(rgb, frame)


def test_write_back_bgr_and_alpha_untouched():
    frame = make_image(6, 6, channels=4)
    alpha = frame[:, :, 3].copy()
    blocks = split_blocks(frame, block_size=4, channels=BGR)
    rgb = np.zeros((6, 6, 3), dtype=np.uint8)
    rgb[:, :, 0] = 10
    rgb[:, :, 1] = 20
    rgb[:, :, 2] = 30
    write_back(blocks, Rect(0, 0, 6, 6), rgb)
    assert tuple(frame[0, 0, :3]) == (30, 20, 10)
    np.testing.assert_array_equal(frame[:, :, 3], alpha)


def test_partial_selection_blocks_default_unselected():
    image_a = np.zeros((2, 2, 3), dtype=np.uint8)
    image_b = np.zeros((2, 2, 3), dtype=np.uint8)
    blocks = [
        Block(Rect(0, 0, 2, 2), image_a, np.full((2, 2), 200, dtype=np.uint8)),
        Block(Rect(2, 0, 4, 2), image_b),
    ]
    _, selection = assemble(blocks, Rect(0, 0, 4, 2))
    np.testing.assert_array_equal(selection[:, :2], 200)
    np.testing.assert_array_equal(selection[:, 2:], 0)
