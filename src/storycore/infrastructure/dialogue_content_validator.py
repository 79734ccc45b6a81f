"""Validate authored NPC dialogue graphs.

Usage examples:
    python -m storycore.infrastructure.dialogue_content_validator
    python -m storycore.infrastructure.dialogue_content_validator --path data/content/sample_content.json
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Optional, Sequence

from storycore.application.services.behavior_registry import (
    BehaviorRegistry,
    default_behavior_registry,
    redirect_target,
)
from storycore.domain.models.dialogue import END_OF_CONVERSATION, Npc
from storycore.infrastructure.content_loader import load_content_payload, read_content_json


DEFAULT_CONTENT_FILE = Path(__file__).resolve().parents[3] / "data" / "content" / "sample_content.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate NPC dialogue graphs in a content JSON file")
    parser.add_argument(
        "--path",
        default=str(DEFAULT_CONTENT_FILE),
        help="Path to content JSON file",
    )
    return parser


def _terminating_nodes(npc: Npc) -> set[str]:
    done = {node_id for node_id, node in npc.nodes.items() if not node.responses}
    changed = True
    while changed:
        changed = False
        for node_id, node in npc.nodes.items():
            if node_id in done:
                continue
            if any(row.next_node_id == END_OF_CONVERSATION or row.next_node_id in done for row in node.responses):
                done.add(node_id)
                changed = True
    return done


def validate_npc(npc: Npc, registry: Optional[BehaviorRegistry] = None) -> list[str]:
    handlers = registry or default_behavior_registry()
    errors: list[str] = []
    prefix = f"npc {npc.id}"
    if npc.initial_node_id not in npc.nodes:
        errors.append(f"{prefix}: initial node '{npc.initial_node_id}' does not exist")

    for node_id, node in npc.nodes.items():
        where = f"{prefix} node {node_id}"
        if node.on_enter and not handlers.has(node.on_enter):
            errors.append(f"{where}: on_enter handler '{node.on_enter}' is not registered")
        redirect = redirect_target(node.on_enter) if node.on_enter else None
        if redirect is not None and redirect not in npc.nodes:
            errors.append(f"{where}: on_enter redirect target '{redirect}' does not exist")
        seen: set[str] = set()
        for response in node.responses:
            if response.id in seen:
                errors.append(f"{where}: duplicate response id '{response.id}'")
            seen.add(response.id)
            target = response.next_node_id
            if target != END_OF_CONVERSATION and target not in npc.nodes:
                errors.append(f"{where} response {response.id}: next node '{target}' does not exist")
            if response.on_select and not handlers.has(response.on_select):
                errors.append(f"{where} response {response.id}: on_select handler '{response.on_select}' is not registered")

    terminating = _terminating_nodes(npc)
    for node_id in npc.nodes:
        if node_id not in terminating:
            errors.append(f"{prefix} node {node_id}: cannot reach the end of the conversation")
    return errors


def validate_content(payload: Any, registry: Optional[BehaviorRegistry] = None) -> list[str]:
    try:
        bundle = load_content_payload(payload)
    except ValueError as exc:
        return [str(exc)]
    errors: list[str] = []
    seen: set[str] = set()
    for npc in bundle.npcs:
        if npc.id in seen:
            errors.append(f"duplicate npc id '{npc.id}'")
        seen.add(npc.id)
        errors.extend(validate_npc(npc, registry))
    return errors


def validate_content_file(path: str | Path, registry: Optional[BehaviorRegistry] = None) -> list[str]:
    try:
        payload = read_content_json(path)
    except ValueError as exc:
        return [str(exc)]
    return validate_content(payload, registry)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    errors = validate_content_file(args.path)
    if errors:
        print(f"Dialogue content invalid ({len(errors)} errors):")
        for message in errors:
            print(f"- {message}")
        return 1

    print("Dialogue content valid.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
