"""One full pixel sort run over a materialized frame.

Per run: seed the RNG once, optionally rotate for angled sorting, sort every
row or column, unrotate, blend by selection, return the new buffer. Lines
are processed in order (rows top to bottom, columns left to right) and the
RNG is consumed in that order, so identical inputs give identical output.
"""

import logging

import numpy as np

from engine.determinism import RUN_SEED, make_rng
from sorting.line_sort import blend_selection, sort_line
from sorting.lines import iter_lines
from sorting.params import PixelSortParams, clamp
from sorting.rotation import Rotation, rotate, unrotate
from sorting.tiles import Block, Rect, assemble, write_back

logger = logging.getLogger(__name__)


def _validate(source: np.ndarray, selection: np.ndarray | None):
    if source.ndim != 3 or source.shape[2] != 3:
        raise ValueError(f"Expected (H, W, 3) RGB buffer, got shape {source.shape}")
    if selection is not None and selection.shape != source.shape[:2]:
        raise ValueError(
            f"Selection shape {selection.shape} does not match image "
            f"{source.shape[:2]}"
        )


def run(
    source: np.ndarray,
    selection: np.ndarray | None,
    params: PixelSortParams,
    *,
    seed: int = RUN_SEED,
) -> np.ndarray:
    """Pixel sort an (H, W, 3) uint8 image. Returns a new buffer; source is untouched.

    Args:
        source:    RGB image, uint8.
        selection: Optional (H, W) uint8 strengths; 0 = untouched,
                   255 = fully sorted, in between = interpolated.
        params:    Sort parameters (clamped again here).
        seed:      RNG seed for this run.
    """
    _validate(source, selection)
    params = clamp(params)
    h, w = source.shape[:2]
    if h == 0 or w == 0:
        logger.debug("Zero-area image %dx%d, nothing to sort", w, h)
        return source.copy()

    logger.info("Pixel sort params: %s", params.to_dict())
    logger.debug("Full-image sort: %dx%d angle=%d", w, h, params.angle)

    rng = make_rng(seed)
    if selection is not None:
        selection = np.asarray(selection, dtype=np.uint8)
    image = np.array(source, dtype=np.uint8, copy=True)

    if params.uses_angle:
        geom = Rotation(w, h, params.angle)
        work = rotate(image, geom)
        # Strengths apply in source space, after unrotation
        for line in iter_lines(work, vertical=False):
            sort_line(line, params, rng)
        result = unrotate(work, geom)
        if selection is not None:
            result = blend_selection(source, result, selection)
        return result

    for line in iter_lines(image, params.vertical, selection):
        sort_line(line, params, rng)
    return image


def run_blocks(
    blocks: list[Block],
    area: Rect,
    params: PixelSortParams,
    *,
    seed: int = RUN_SEED,
) -> None:
    """Sort a tiled canvas in place: assemble, run, write each block back."""
    if area.width <= 0 or area.height <= 0:
        logger.debug("Empty area %s, nothing to sort", area)
        return
    rgb, selection = assemble(blocks, area)
    result = run(rgb, selection, params, seed=seed)
    write_back(blocks, area, result)
