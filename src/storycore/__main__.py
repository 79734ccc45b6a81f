from pathlib import Path
import argparse
import logging
import os
import sys
from typing import Sequence

from dotenv import load_dotenv

# Ensure the src directory is on sys.path when running as a script
_SRC_DIR = Path(__file__).resolve().parents[1]
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from storycore.application.services.skill_resolver import SkillResolver
from storycore.bootstrap import create_rules_engine
from storycore.domain.models.stats import ABILITY_MAX, ABILITY_MIN, ability_rank_label
from storycore.infrastructure import dialogue_content_validator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="storycore", description="Narrative rules engine developer tools")
    commands = parser.add_subparsers(dest="command", required=True)

    odds = commands.add_parser("odds", help="Print skill check success chances")
    odds.add_argument("--ability", type=int, default=None, help="Only show this ability score")
    odds.add_argument("--min-difficulty", type=int, default=4)
    odds.add_argument("--max-difficulty", type=int, default=14)

    perks = commands.add_parser("perks", help="List the perk catalog")
    perks.add_argument("--artifacts", action="store_true", help="Only list artifact perks")

    validate = commands.add_parser("validate", help="Validate NPC dialogue content")
    validate.add_argument("--path", default=str(dialogue_content_validator.DEFAULT_CONTENT_FILE))
    return parser


def _print_odds(ability: int | None, low: int, high: int) -> None:
    difficulties = list(range(low, high + 1))
    print("ability       " + " ".join(f"{value:>4}" for value in difficulties))
    scores = [ability] if ability is not None else list(range(ABILITY_MIN, ABILITY_MAX + 1))
    for score in scores:
        cells = " ".join(f"{SkillResolver.success_probability(score, value):>3}%" for value in difficulties)
        print(f"{score:>2} {ability_rank_label(score):<10} {cells}")


def _print_perks(artifacts_only: bool) -> None:
    engine = create_rules_engine()
    for perk in engine.perks.all_perks():
        if artifacts_only and not perk.is_artifact:
            continue
        marker = " [artifact]" if perk.is_artifact else ""
        print(f"{perk.id:<22} {perk.category.value:<12} {perk.rarity.value:<10} max rank {perk.max_rank}{marker}")


def run(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    if args.command == "odds":
        _print_odds(args.ability, args.min_difficulty, args.max_difficulty)
        return 0
    if args.command == "perks":
        _print_perks(args.artifacts)
        return 0
    return dialogue_content_validator.main(["--path", args.path])


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("STORYCORE_LOG_LEVEL", "WARNING").upper())
    try:
        return run(argv)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except ValueError as exc:
        print("Configuration or content error.")
        print(f"Reason: {exc}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
