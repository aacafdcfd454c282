"""Tests for fx.pixelsort — effect contract over the sorting core."""

import numpy as np
import pytest

from conftest import make_image, row_brightness
from effects.fx.pixelsort import EFFECT_ID, HANDLES_SELECTION, PARAMS, apply

pytestmark = pytest.mark.smoke


def _frame(h=100, w=100):
    return make_image(h, w, seed=42, channels=4)


KW = {"frame_index": 0, "seed": 42, "resolution": (100, 100)}


def test_basic():
    frame = _frame()
    result, state = apply(frame, {"direction": "horizontal"}, None, **KW)
    assert result.shape == frame.shape
    assert result.dtype == np.uint8


def test_determinism():
    frame = _frame()
    params = {"interval_mode": "random", "jitter": 4, "falloff": 30}
    r1, _ = apply(frame, params, None, **KW)
    r2, _ = apply(frame, params, None, **KW)
    np.testing.assert_array_equal(r1, r2)


def test_determinism_vertical():
    frame = _frame()
    params = {"direction": "vertical", "reverse": True, "interval_mode": "edges"}
    r1, _ = apply(frame, params, None, **KW)
    r2, _ = apply(frame, params, None, **KW)
    np.testing.assert_array_equal(r1, r2)


def test_boundary():
    frame = _frame()
    r_min, _ = apply(
        frame, {"lower_threshold": 0, "upper_threshold": 0}, None, **KW
    )
    assert r_min.shape == frame.shape
    r_max, _ = apply(
        frame,
        {"lower_threshold": 255, "upper_threshold": 255, "direction": "vertical"},
        None,
        **KW,
    )
    assert r_max.shape == frame.shape
    assert r_max.dtype == np.uint8


def test_out_of_range_params_are_clamped():
    frame = _frame(20, 20)
    params = {"jitter": 500, "falloff": 1000, "span_min": -4, "sort_key": "bogus"}
    result, _ = apply(frame, params, None, **KW)
    np.testing.assert_array_equal(result, frame)  # falloff 100 skips every span


def test_state():
    _, state = apply(_frame(), {}, None, **KW)
    assert state is None


def test_modifies_frame():
    frame = _frame()
    result, _ = apply(frame, {"interval_mode": "none"}, None, **KW)
    assert not np.array_equal(result, frame)
    assert np.all(np.diff(row_brightness(result[:, :, :3]), axis=1) >= 0)


def test_reverse_differs():
    frame = _frame()
    r_fwd, _ = apply(frame, {"reverse": False}, None, **KW)
    r_rev, _ = apply(frame, {"reverse": True}, None, **KW)
    assert not np.array_equal(r_fwd, r_rev)


def test_alpha_preserved():
    frame = _frame()
    result, _ = apply(frame, {"interval_mode": "none", "angle": 30}, None, **KW)
    np.testing.assert_array_equal(result[:, :, 3], frame[:, :, 3])


def test_rgb_frame_accepted():
    frame = make_image(16, 16)
    result, _ = apply(frame, {"interval_mode": "none"}, None, **KW)
    assert result.shape == (16, 16, 3)


def test_empty_selection_leaves_frame():
    frame = _frame()
    params = {"interval_mode": "none", "_selection": np.zeros((100, 100), np.uint8)}
    result, _ = apply(frame, params, None, **KW)
    np.testing.assert_array_equal(result, frame)


def test_input_frame_not_mutated():
    frame = _frame()
    before = frame.copy()
    apply(frame, {"interval_mode": "none"}, None, **KW)
    np.testing.assert_array_equal(frame, before)


def test_params_schema():
    assert EFFECT_ID == "fx.pixelsort"
    assert HANDLES_SELECTION is True
    assert set(PARAMS) == {
        "direction",
        "sort_key",
        "interval_mode",
        "lower_threshold",
        "upper_threshold",
        "reverse",
        "jitter",
        "span_min",
        "span_max",
        "angle",
        "falloff",
    }
    assert PARAMS["sort_key"]["options"][0] == "brightness"
    assert PARAMS["interval_mode"]["options"] == [
        "threshold",
        "random",
        "edges",
        "waves",
        "none",
    ]
    for spec in PARAMS.values():
        if spec["type"] == "int":
            assert spec["min"] <= spec["default"] <= spec["max"]
