"""Seeded determinism for reproducible sorting runs."""

import hashlib
import numpy as np

# Every run that does not derive its own seed restarts from this value.
RUN_SEED = 42


def derive_seed(
    project_seed: int, effect_id: str, frame_index: int, user_seed: int = 0
) -> int:
    """Derive a deterministic seed from context. Same inputs = same output, always."""
    key = f"{project_seed}:{effect_id}:{frame_index}:{user_seed}"
    return int(hashlib.sha256(key.encode()).hexdigest()[:16], 16)


def make_rng(seed: int = RUN_SEED) -> np.random.Generator:
    """Create a fresh RNG. Call once per run and pass it to whatever draws."""
    return np.random.default_rng(seed)
