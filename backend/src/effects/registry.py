"""Effect registry — lookup table the host adapter resolves keyer effects from."""

from typing import Any, Callable

EffectFn = Callable[..., tuple[Any, dict | None]]

_REGISTRY: dict[str, dict] = {}


def register(effect_id: str, fn: EffectFn, params: dict, name: str, category: str):
    """Register an effect.

    Raises:
        ValueError: If the id is already taken by a different function.
    """
    existing = _REGISTRY.get(effect_id)
    if existing is not None and existing["fn"] is not fn:
        raise ValueError(f"effect id already registered: {effect_id}")
    _REGISTRY[effect_id] = {
        "fn": fn,
        "params": params,
        "name": name,
        "category": category,
    }


def get(effect_id: str) -> dict | None:
    return _REGISTRY.get(effect_id)


def list_all(category: str | None = None) -> list[dict]:
    """Registered effects with metadata, optionally limited to one category."""
    return [
        {
            "id": eid,
            "name": info["name"],
            "category": info["category"],
            "params": info["params"],
        }
        for eid, info in _REGISTRY.items()
        if category is None or info["category"] == category
    ]


def defaults(effect_id: str) -> dict:
    """Default value for every knob of an effect (KeyError if unknown)."""
    info = _REGISTRY[effect_id]
    return {name: spec.get("default") for name, spec in info["params"].items()}


def _auto_register():
    from effects.fx import color_key

    register(
        color_key.EFFECT_ID,
        color_key.apply,
        color_key.PARAMS,
        color_key.EFFECT_NAME,
        color_key.EFFECT_CATEGORY,
    )


_auto_register()
