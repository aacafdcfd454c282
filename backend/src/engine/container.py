"""Effect container — host boundary around pure effect functions.

Pipeline: sanitize params → selection/mask → process → validate → mix.
Any failure inside is turned into an explicit failure result: the input
frame comes back unchanged and ``last_error`` holds the exception.
"""

import logging
import math

import numpy as np
import sentry_sdk

from engine.determinism import derive_seed

logger = logging.getLogger(__name__)


def _capture_with_context(e: Exception, effect_id: str, extra: dict):
    """Capture exception to Sentry with effect-level context and fingerprint dedup."""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("effect_id", effect_id)
        scope.fingerprint = ["effect-crash", effect_id, type(e).__name__]
        scope.set_context("effect", extra)
        sentry_sdk.capture_exception(e, scope=scope)


def mask_to_selection(mask: np.ndarray) -> np.ndarray:
    """Float [0, 1] mask → uint8 strengths (0 = unselected, 255 = full)."""
    mask = np.asarray(mask)
    if mask.dtype == np.uint8:
        return mask
    return np.clip(np.rint(mask.astype(np.float32) * 255.0), 0, 255).astype(np.uint8)


class EffectContainer:
    """Container that wraps an effect's apply() function.

    Effects registered with ``handles_selection`` get the mask as an 8-bit
    ``_selection`` param and blend it themselves; for the rest the container
    blends the mask after processing. Effect authors write only the
    processing stage.
    """

    def __init__(self, effect_fn, effect_id: str, handles_selection: bool = False):
        self.effect_fn = effect_fn
        self.effect_id = effect_id
        self.handles_selection = handles_selection
        self.last_error: Exception | None = None

    def process(
        self,
        frame: np.ndarray,
        params: dict,
        state_in: dict | None,
        *,
        frame_index: int,
        project_seed: int,
        resolution: tuple[int, int],
    ) -> tuple[np.ndarray, dict | None]:
        self.last_error = None

        user_seed = params.get("seed", 0)
        seed = derive_seed(project_seed, self.effect_id, frame_index, user_seed)

        # Drop NaN/Inf values so the effect falls back to its defaults
        effect_params = {
            k: v
            for k, v in params.items()
            if not (isinstance(v, float) and (math.isnan(v) or math.isinf(v)))
        }
        mask = effect_params.pop("_mask", None)
        mix = effect_params.pop("_mix", 1.0)

        # PII-safe: keys only, no values
        sentry_ctx = {
            "frame_index": frame_index,
            "param_keys": list(effect_params.keys()),
            "seed": seed,
            "resolution": resolution,
            "frame_shape": list(frame.shape),
        }

        try:
            if mask is not None and self.handles_selection:
                effect_params["_selection"] = mask_to_selection(mask)
            wet_frame, state_out = self.effect_fn(
                frame,
                effect_params,
                state_in,
                frame_index=frame_index,
                seed=seed,
                resolution=resolution,
            )
        except Exception as e:
            self.last_error = e
            _capture_with_context(e, self.effect_id, sentry_ctx)
            logger.error(
                "Effect %s failed on frame %d: %s",
                self.effect_id,
                frame_index,
                type(e).__name__,
            )
            logger.debug("Effect %s exception detail: %s", self.effect_id, e)
            return frame.copy(), state_in

        try:
            if not isinstance(wet_frame, np.ndarray):
                raise TypeError(
                    f"Effect returned {type(wet_frame).__name__}, expected ndarray"
                )
            if wet_frame.shape != frame.shape:
                raise ValueError(
                    f"Effect returned shape {wet_frame.shape}, expected {frame.shape}"
                )
            if wet_frame.dtype != np.uint8:
                wet_frame = np.clip(wet_frame, 0, 255).astype(np.uint8)
        except (TypeError, ValueError) as e:
            self.last_error = e
            _capture_with_context(e, self.effect_id, sentry_ctx)
            logger.error(
                "Effect %s produced invalid output on frame %d: %s",
                self.effect_id,
                frame_index,
                type(e).__name__,
            )
            return frame.copy(), state_in

        try:
            if mix < 1.0:
                output = np.clip(
                    frame.astype(np.float32) * (1.0 - mix)
                    + wet_frame.astype(np.float32) * mix,
                    0,
                    255,
                ).astype(np.uint8)
            else:
                output = wet_frame

            if mask is not None and not self.handles_selection:
                weight = np.asarray(mask, dtype=np.float32)[:, :, np.newaxis]
                output = np.clip(
                    frame.astype(np.float32) * (1.0 - weight)
                    + output.astype(np.float32) * weight,
                    0,
                    255,
                ).astype(np.uint8)
        except Exception as e:
            self.last_error = e
            _capture_with_context(e, self.effect_id, sentry_ctx)
            logger.error(
                "Effect %s mix/mask failed on frame %d: %s",
                self.effect_id,
                frame_index,
                type(e).__name__,
            )
            return frame.copy(), state_in

        return output, state_out


def container_for(effect_id: str) -> EffectContainer:
    """Build a container for a registered effect. Raises ValueError if unknown."""
    from effects import registry

    info = registry.get(effect_id)
    if info is None:
        raise ValueError(f"unknown effect: {effect_id}")
    return EffectContainer(info["fn"], effect_id, info["handles_selection"])
