# computed_cache.py
from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

CACHE_KEY = "computed_cache"


def new_context(settings: dict[str, Any] | None = None) -> dict[str, Any]:
    """One audit context: settings plus an empty computed-artifact cache."""
    return {"settings": dict(settings or {}), CACHE_KEY: {}}


def _identity_key(dependencies: Any) -> Any:
    # Artifacts are immutable snapshots, so object identity stands in for content.
    # A dict of dependencies is keyed by the identity of each of its values.
    if isinstance(dependencies, dict):
        return tuple(sorted((str(k), id(v)) for k, v in dependencies.items()))
    return id(dependencies)


class ComputedArtifact:
    """
    Base class for derived artifacts computed on demand.

    Subclasses implement compute(); callers use request(), which memoizes the
    result in the context cache keyed by artifact name and input identity.
    """

    name = "ComputedArtifact"

    @classmethod
    def compute(cls, dependencies: Any, context: dict[str, Any]) -> Any:
        raise NotImplementedError(f"{cls.name} does not implement compute()")

    @classmethod
    def request(cls, dependencies: Any, context: dict[str, Any]) -> Any:
        cache = context.setdefault(CACHE_KEY, {})
        key = (cls.name, _identity_key(dependencies))
        if key in cache:
            logger.debug(f"{cls.name}: cache hit")
            return cache[key][1]

        value = cls.compute(dependencies, context)
        # Keep the inputs alive so their ids cannot be reused while cached.
        cache[key] = (dependencies, value)
        return value
