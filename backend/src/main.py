"""Command-line host for the pixel sort engine.

    pixelsort INPUT OUTPUT [--mask MASK] [--params FILE.json] [flags...]

Reads an image (and an optional grayscale selection mask) with Pillow,
runs fx.pixelsort through the effect container, and writes the result.
With --tile-size the image is handed over as blocks, the way a painting
host stores its canvas. Exit codes: 0 ok, 1 sort failed, 2 bad input.
"""

import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path

import numpy as np
import sentry_sdk
from PIL import Image

from _version import __version__
from diagnostics import init_diagnostics
from effects.fx.pixelsort import EFFECT_ID
from engine.container import container_for
from engine.determinism import RUN_SEED, derive_seed
from security import (
    strip_pii,
    validate_dimensions,
    validate_image_path,
    validate_output_path,
)
from sorting.params import IntervalMode, PixelSortParams, SortDirection, SortKey
from sorting.tiles import Rect, split_blocks
from sorting.transform import run_blocks

logger = logging.getLogger(__name__)

CONSENT_PATH = "~/.pixelsort/telemetry_consent"


def init_sentry():
    """Consent-gated Sentry init: an empty DSN keeps the SDK disabled."""
    consent_path = os.path.expanduser(CONSENT_PATH)
    dsn = ""
    if os.path.exists(consent_path) and Path(consent_path).read_text().strip() == "yes":
        dsn = os.environ.get("SENTRY_DSN", "")

    sentry_sdk.init(
        dsn=dsn,
        release=f"pixelsort@{__version__}",
        environment=os.environ.get("SENTRY_ENV", "development"),
        traces_sample_rate=0.1,
        before_send=strip_pii,
        max_breadcrumbs=50,
    )


def _names(enum_cls) -> list[str]:
    return [m.name.lower() for m in enum_cls]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixelsort", description="Sort spans of pixels in an image."
    )
    parser.add_argument("input", help="Source image")
    parser.add_argument("output", help="Destination image (lossless format)")
    parser.add_argument("--mask", help="Grayscale selection mask, same size as input")
    parser.add_argument("--params", help="JSON file with parameter fields")
    parser.add_argument("--direction", choices=_names(SortDirection))
    parser.add_argument("--sort-key", dest="sort_key", choices=_names(SortKey))
    parser.add_argument(
        "--mode", dest="interval_mode", choices=_names(IntervalMode)
    )
    parser.add_argument("--lower", dest="lower_threshold", type=int)
    parser.add_argument("--upper", dest="upper_threshold", type=int)
    parser.add_argument("--reverse", action="store_true", default=None)
    parser.add_argument("--jitter", type=int)
    parser.add_argument("--span-min", dest="span_min", type=int)
    parser.add_argument("--span-max", dest="span_max", type=int)
    parser.add_argument("--angle", type=int)
    parser.add_argument("--falloff", type=int)
    parser.add_argument(
        "--seed", type=int, default=0, help="User seed mixed into the run seed"
    )
    parser.add_argument(
        "--tile-size", type=int, default=0, help="Process as tiled blocks of this size"
    )
    parser.add_argument("--no-diagnostics", action="store_true")
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def build_params(args: argparse.Namespace) -> dict:
    """Merge the JSON parameter file (if any) with explicit flags; flags win."""
    values: dict = {}
    if args.params:
        with open(args.params) as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise ValueError("Parameter file must contain a JSON object")
        values.update(loaded)
    for name in (f.name for f in dataclasses.fields(PixelSortParams)):
        flag = getattr(args, name, None)
        if flag is not None:
            values[name] = flag
    return values


def load_frame(path: str) -> np.ndarray:
    """Load any Pillow-readable image as RGBA uint8."""
    with Image.open(path) as img:
        return np.array(img.convert("RGBA"))


def load_mask(path: str, shape: tuple[int, int]) -> np.ndarray:
    """Load a selection mask as float [0, 1] (H, W)."""
    with Image.open(path) as img:
        mask = np.array(img.convert("L"))
    if mask.shape != shape:
        raise ValueError(f"Mask size {mask.shape[::-1]} does not match image {shape[::-1]}")
    return mask.astype(np.float32) / 255.0


def save_frame(frame: np.ndarray, path: str):
    Image.fromarray(frame).save(path)


def sort_image(
    frame: np.ndarray,
    mask: np.ndarray | None,
    params: dict,
    *,
    user_seed: int = 0,
    tile_size: int = 0,
) -> tuple[np.ndarray, Exception | None]:
    """Sort an RGBA frame. Returns (output, error); on error output is the input."""
    h, w = frame.shape[:2]
    if tile_size > 0:
        output = frame.copy()
        selection = None
        if mask is not None:
            selection = np.rint(mask * 255.0).astype(np.uint8)
        blocks = split_blocks(output, selection, tile_size)
        seed = derive_seed(RUN_SEED, EFFECT_ID, 0, user_seed)
        try:
            run_blocks(
                blocks, Rect(0, 0, w, h), PixelSortParams.from_dict(params), seed=seed
            )
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error("Tiled sort failed: %s", type(e).__name__)
            return frame.copy(), e
        return output, None

    container = container_for(EFFECT_ID)
    effect_params = dict(params, seed=user_seed)
    if mask is not None:
        effect_params["_mask"] = mask
    output, _ = container.process(
        frame,
        effect_params,
        None,
        frame_index=0,
        project_seed=RUN_SEED,
        resolution=(w, h),
    )
    return output, container.last_error


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.no_diagnostics:
        init_diagnostics()
    init_sentry()

    errors = validate_image_path(args.input)
    if args.mask:
        errors += validate_image_path(args.mask)
    errors += validate_output_path(args.output)
    if errors:
        for err in errors:
            print(f"error: {err}", file=sys.stderr)
        return 2

    try:
        params = build_params(args)
        frame = load_frame(args.input)
        errors = validate_dimensions(frame.shape[1], frame.shape[0])
        if errors:
            raise ValueError("; ".join(errors))
        mask = load_mask(args.mask, frame.shape[:2]) if args.mask else None
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    output, error = sort_image(
        frame, mask, params, user_seed=args.seed, tile_size=args.tile_size
    )
    if error is not None:
        print(f"error: pixel sort failed ({type(error).__name__})", file=sys.stderr)
        return 1

    save_frame(output, args.output)
    logger.info("Wrote %s (%dx%d)", args.output, frame.shape[1], frame.shape[0])
    return 0


if __name__ == "__main__":
    sys.exit(main())
