from __future__ import annotations

from typing import Any, Mapping, Union


FlagValue = Union[bool, str, int, float]


def is_flag_value(value: Any) -> bool:
    return isinstance(value, (bool, str, int, float))


def normalize_flag_map(values: Mapping[str, Any] | None) -> dict[str, FlagValue]:
    if not isinstance(values, Mapping):
        return {}
    normalized: dict[str, FlagValue] = {}
    for raw_key, raw_value in values.items():
        key = str(raw_key or "").strip()
        if not key or not is_flag_value(raw_value):
            continue
        normalized[key] = raw_value
    return normalized
