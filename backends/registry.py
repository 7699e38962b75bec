from __future__ import annotations

from typing import Any, Callable, Dict


_REGISTRY: Dict[str, Callable[..., Any]] = {}


def register(name: str, factory: Callable[..., Any]) -> None:
    _REGISTRY[name] = factory


def get_backend(name: str, settings: Any):
    if name not in _REGISTRY:
        raise KeyError(f"Unknown backend: {name}")
    return _REGISTRY[name](settings)


def available_backends() -> Dict[str, Callable[..., Any]]:
    return dict(_REGISTRY)
