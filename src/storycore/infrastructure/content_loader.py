from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any

from storycore.application.mappers.content_mapper import (
    npc_from_dict,
    perk_from_dict,
    require_mapping,
    scene_option_from_dict,
)
from storycore.domain.models.dialogue import Npc
from storycore.domain.models.perk import Perk
from storycore.domain.models.scene import SceneOption


logger = logging.getLogger(__name__)

CONTENT_VERSION = 1


@dataclass(frozen=True)
class ContentBundle:
    npcs: tuple[Npc, ...] = ()
    perks: tuple[Perk, ...] = ()
    options: tuple[SceneOption, ...] = ()


def _rows(payload: Any, key: str) -> list[Any]:
    rows = payload.get(key) or []
    if not isinstance(rows, list):
        raise ValueError(f"'{key}' must be a list")
    return rows


def load_content_payload(payload: Any) -> ContentBundle:
    data = require_mapping(payload, "content")
    version = data.get("version", CONTENT_VERSION)
    if version != CONTENT_VERSION:
        raise ValueError(f"Unsupported content version: {version}")
    return ContentBundle(
        npcs=tuple(npc_from_dict(row) for row in _rows(data, "npcs")),
        perks=tuple(perk_from_dict(row) for row in _rows(data, "perks")),
        options=tuple(scene_option_from_dict(row) for row in _rows(data, "options")),
    )


def read_content_json(path: str | Path) -> Any:
    source = Path(path)
    if not source.exists():
        raise ValueError(f"File not found: {source}")
    try:
        return json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc


def load_content_file(path: str | Path) -> ContentBundle:
    bundle = load_content_payload(read_content_json(path))
    logger.debug(
        "Loaded content from %s: %s npcs, %s perks, %s options",
        path,
        len(bundle.npcs),
        len(bundle.perks),
        len(bundle.options),
    )
    return bundle
