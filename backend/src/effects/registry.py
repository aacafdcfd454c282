"""Effect registry — central lookup for all registered effects."""

from typing import Any, Callable

EffectFn = Callable[..., tuple[Any, dict | None]]

_REGISTRY: dict[str, dict] = {}


def register(
    effect_id: str,
    fn: EffectFn,
    params: dict,
    name: str,
    category: str,
    handles_selection: bool = False,
):
    """Register an effect."""
    _REGISTRY[effect_id] = {
        "fn": fn,
        "params": params,
        "name": name,
        "category": category,
        "handles_selection": handles_selection,
    }


def get(effect_id: str) -> dict | None:
    """Get effect info by ID."""
    return _REGISTRY.get(effect_id)


def list_all() -> list[dict]:
    """List all registered effects with metadata."""
    return [
        {
            "id": eid,
            "name": info["name"],
            "category": info["category"],
            "params": info["params"],
        }
        for eid, info in _REGISTRY.items()
    ]


def _auto_register():
    """Import and register all built-in effects."""
    from effects.fx import pixelsort

    for mod in [pixelsort]:
        register(
            mod.EFFECT_ID,
            mod.apply,
            mod.PARAMS,
            mod.EFFECT_NAME,
            mod.EFFECT_CATEGORY,
            handles_selection=getattr(mod, "HANDLES_SELECTION", False),
        )


_auto_register()
