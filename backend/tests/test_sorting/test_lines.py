"""Tests for line views over rows and columns."""

import numpy as np
import pytest

from conftest import make_image
from sorting.lines import LineView, iter_lines

pytestmark = pytest.mark.smoke


def test_row_view_writes_through():
    buf = make_image(4, 6)
    line = LineView(buf[2], 2)
    assert len(line) == 6
    line.set(1, (1, 2, 3))
    assert tuple(buf[2, 1]) == (1, 2, 3)
    assert line.get(1) == (1, 2, 3)


def test_column_view_writes_through():
    buf = make_image(4, 6)
    line = LineView(buf[:, 3], 3)
    assert len(line) == 4
    line.write(np.array([0, 3]), np.array([[9, 9, 9], [8, 8, 8]], dtype=np.uint8))
    assert tuple(buf[0, 3]) == (9, 9, 9)
    assert tuple(buf[3, 3]) == (8, 8, 8)


def test_read_returns_copy():
    buf = make_image(2, 5)
    line = LineView(buf[0], 0)
    before = buf.copy()
    px = line.read(np.arange(5))
    px[:] = 0
    np.testing.assert_array_equal(buf, before)


def test_only_color_channels_touched():
    buf = make_image(2, 3, channels=4)
    alpha = buf[:, :, 3].copy()
    line = LineView(buf[1], 1)
    line.write(np.arange(3), np.zeros((3, 3), dtype=np.uint8))
    np.testing.assert_array_equal(buf[:, :, 3], alpha)
    assert np.all(buf[1, :, :3] == 0)


def test_selection_length_mismatch_raises():
    buf = make_image(2, 5)
    with pytest.raises(ValueError):
        LineView(buf[0], 0, np.zeros(4, dtype=np.uint8))


def test_strengths_none_without_selection():
    buf = make_image(2, 5)
    assert LineView(buf[0], 0).strengths(np.arange(3)) is None


def test_iter_lines_rows_and_columns():
    buf = make_image(3, 5)
    sel = np.arange(15, dtype=np.uint8).reshape(3, 5)

    rows = list(iter_lines(buf, vertical=False, selection=sel))
    assert [r.index for r in rows] == [0, 1, 2]
    assert all(len(r) == 5 for r in rows)
    np.testing.assert_array_equal(rows[1].selection, sel[1])

    cols = list(iter_lines(buf, vertical=True, selection=sel))
    assert [c.index for c in cols] == [0, 1, 2, 3, 4]
    assert all(len(c) == 3 for c in cols)
    np.testing.assert_array_equal(cols[2].selection, sel[:, 2])


def test_iter_lines_without_selection():
    buf = make_image(2, 2)
    assert all(line.selection is None for line in iter_lines(buf, vertical=True))
