"""Dump effective stats for a sample character build.

Loads the JSON catalog, builds a character through the build service and
prints the resolved stats, actions and remaining module points. Exercises
the whole pipeline: catalog → selections → effect codes → effective stats.

Usage:
    python -m scripts.dump_character [--catalog DIR] [--module SPEC ...]
                                     [--trait ID ...] [--json] [--verbose]

A module SPEC is "<module id>" or "<module id>:<loc>,<loc>,...", e.g.
"Acrobat:1,2a,3". Without --module/--trait a sample Acrobat build is used.
"""

import argparse
import json
import logging
from dataclasses import asdict
from pathlib import Path

from module_planner.engine.build_config import BuildConfig
from module_planner.engine.build_engine import CharacterBuildService
from module_planner.parser.catalog_parser import load_catalog
from module_planner.store.character_store import character_to_dict


DEFAULT_CATALOG = Path(__file__).resolve().parent.parent / "data"

SAMPLE_MODULES = ["Acrobat:1,2a,3"]
SAMPLE_TRAITS = ["Quick Reflexes"]


def _parse_module_spec(spec: str) -> tuple[str, list[str]]:
    """'Acrobat:1,2a' → ('Acrobat', ['1', '2a'])."""
    module_id, _, locations = spec.partition(":")
    return module_id.strip(), [loc.strip() for loc in locations.split(",") if loc.strip()]


def build_sample(
    service: CharacterBuildService,
    module_specs: list[str],
    trait_ids: list[str],
) -> list[str]:
    """Apply selections in order; return messages for rejected operations."""
    failures: list[str] = []
    for spec in module_specs:
        module_id, locations = _parse_module_spec(spec)
        result = service.add_module(module_id)
        if not result:
            failures.append(f"add_module({module_id}): {result.error.message}")
            continue
        for location in locations:
            result = service.select_option(module_id, location)
            if not result:
                failures.append(
                    f"select_option({module_id}, {location}): {result.error.message}"
                )
    for trait_id in trait_ids:
        result = service.add_trait(trait_id)
        if not result:
            failures.append(f"add_trait({trait_id}): {result.error.message}")
    return failures


def main():
    parser = argparse.ArgumentParser(description="Dump sample character stats")
    parser.add_argument("--catalog", type=Path, default=DEFAULT_CATALOG,
                        help="Catalog directory with modules/ and traits/")
    parser.add_argument("--module", action="append", dest="modules",
                        help="Module spec '<id>[:<loc>,...]'; repeat for more")
    parser.add_argument("--trait", action="append", dest="traits",
                        help="Trait id; repeat for more")
    parser.add_argument("--points", type=int, default=BuildConfig().starting_points,
                        help="Starting module points")
    parser.add_argument("--json", action="store_true",
                        help="Print the stored character document as JSON")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    catalog = load_catalog(args.catalog)
    config = BuildConfig(starting_points=args.points)
    service = CharacterBuildService.new_character(
        catalog, name="Sample", race="Human", config=config
    )

    use_sample = args.modules is None and args.traits is None
    failures = build_sample(
        service,
        SAMPLE_MODULES if use_sample else (args.modules or []),
        SAMPLE_TRAITS if use_sample else (args.traits or []),
    )

    if args.json:
        print(json.dumps(character_to_dict(service.state), indent=2))
        return

    stats = service.stats
    character = service.character

    print(f"\n{'='*60}")
    print(f"  {character.name} ({character.race})")
    print(f"{'='*60}")
    ledger = character.module_points
    print(f"  Module points: {ledger.spent}/{ledger.total} spent, "
          f"{ledger.available()} available")

    print("\n  Attributes:")
    for name, value in stats.attributes.items():
        print(f"    {name:<14} {value}")

    print("\n  Resources:")
    for name, pool in stats.resources.items():
        print(f"    {name:<14} {pool.current}/{pool.max}")
    print(f"    {'initiative':<14} {stats.initiative}")
    print(f"    {'movement':<14} {stats.movement}")

    print("\n  Skills (value / talent):")
    for name, rating in stats.skills.items():
        if rating.value:
            print(f"    {name:<14} {rating.value} / {rating.talent}")

    bonuses = {k: v for k, v in stats.mitigation.items() if v}
    if bonuses:
        print("\n  Mitigation:")
        for name, value in bonuses.items():
            print(f"    {name:<14} {value:+d}")
    for label, values in (
        ("Immunities", stats.immunities),
        ("Vision", stats.vision),
        ("Languages", stats.languages),
        ("Trait flags", stats.trait_flags),
    ):
        if values:
            print(f"\n  {label}: {', '.join(values)}")

    if stats.actions:
        print("\n  Actions:")
        for action in stats.actions:
            print(f"    [{action.type}] {action.name}  "
                  f"({action.source_module} {action.source_option})")
    if stats.action_usage:
        print("\n  Action usage:")
        for code, usage in stats.action_usage.items():
            print(f"    {code:<6} {asdict(usage)}")

    if failures:
        print("\n  Rejected:")
        for message in failures:
            print(f"    ✗ {message}")

    problems = service.validate()
    if problems:
        print("\n  Validation:")
        for problem in problems:
            print(f"    ✗ [{problem.kind.value}] {problem.message}")
    print()


if __name__ == "__main__":
    main()
