from __future__ import annotations

import hashlib
import json
import random
from typing import Any, Callable, Mapping


RollSource = Callable[[int, int], int]


def _normalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _normalize(val) for key, val in sorted(value.items(), key=lambda item: str(item[0]))}
    if isinstance(value, (list, tuple, set, frozenset)):
        normalized = [_normalize(item) for item in value]
        if isinstance(value, (set, frozenset)):
            return sorted(normalized, key=lambda item: json.dumps(item, sort_keys=True, separators=(",", ":")))
        return normalized
    return value


def derive_seed(namespace: str, context: Mapping[str, Any]) -> int:
    """Stable 32-bit seed for a namespace plus an arbitrary JSON-ish context."""

    payload = {"namespace": namespace, "context": _normalize(context)}
    serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str, allow_nan=False)
    digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()
    return int(digest, 16) % (2**32)


def derive_rng(namespace: str, context: Mapping[str, Any]) -> random.Random:
    return random.Random(derive_seed(namespace, context))


def seeded_roll_source(seed: int | random.Random) -> RollSource:
    """Inclusive ``(low, high)`` integer source backed by a private ``random.Random``."""

    rng = seed if isinstance(seed, random.Random) else random.Random(int(seed))

    def _roll(low: int, high: int) -> int:
        return rng.randint(int(low), int(high))

    return _roll


def roll_source_for(namespace: str, context: Mapping[str, Any]) -> RollSource:
    return seeded_roll_source(derive_rng(namespace, context))
