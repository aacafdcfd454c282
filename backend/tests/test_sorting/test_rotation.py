"""Tests for nearest-pixel rotation used by angled sorting."""

import numpy as np
import pytest

from conftest import make_image
from sorting.rotation import Rotation, rotate, unrotate

pytestmark = pytest.mark.smoke


def test_bounding_box_45_degrees():
    geom = Rotation(10, 10, 45)
    # 10 * cos45 + 10 * sin45 = 14.14 → 15
    assert (geom.rot_width, geom.rot_height) == (15, 15)


def test_bounding_box_30_degrees_non_square():
    geom = Rotation(40, 20, 30)
    assert geom.rot_width == int(np.ceil(40 * np.cos(np.pi / 6) + 20 * 0.5))
    assert geom.rot_height == int(np.ceil(40 * 0.5 + 20 * np.cos(np.pi / 6)))


def test_angle_zero_is_identity():
    img = make_image(7, 9)
    geom = Rotation(9, 7, 0)
    rotated = rotate(img, geom)
    np.testing.assert_array_equal(rotated, img)
    np.testing.assert_array_equal(unrotate(rotated, geom), img)


def test_rotated_corners_are_background():
    img = np.full((20, 20, 3), 200, dtype=np.uint8)
    rotated = rotate(img, Rotation(20, 20, 45))
    assert tuple(rotated[0, 0]) == (0, 0, 0)
    assert tuple(rotated[-1, -1]) == (0, 0, 0)
    centre = rotated.shape[0] // 2
    assert tuple(rotated[centre, centre]) == (200, 200, 200)


@pytest.mark.parametrize("angle", [17, 30, 45, 90, 135, 200, 315])
def test_uniform_round_trip_interior(angle):
    color = (10, 200, 30)
    img = np.empty((24, 30, 3), dtype=np.uint8)
    img[:] = color
    geom = Rotation(30, 24, angle)
    back = unrotate(rotate(img, geom), geom)
    assert back.shape == img.shape
    np.testing.assert_array_equal(back[2:-2, 2:-2], img[2:-2, 2:-2])


def test_round_trip_keeps_selection_shape():
    sel = np.full((12, 16), 255, dtype=np.uint8)
    geom = Rotation(16, 12, 60)
    assert unrotate(rotate(sel, geom), geom).shape == (12, 16)
