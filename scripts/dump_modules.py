"""Dump the module catalog as option trees.

Loads the JSON catalog and prints, per module, its tiers, each option's
prerequisite and cost under the configured schedule, and the actions its
options grant.

Usage:
    python -m scripts.dump_modules [--catalog DIR] [--type TYPE]
                                   [--schedule NAME] [--verbose]
"""

import argparse
import logging
from pathlib import Path

from module_planner.engine.cost_schedule import COST_SCHEDULES, get_schedule
from module_planner.graph.dependency_graph import PrerequisiteResolver
from module_planner.models.derived_stats import parse_action_name
from module_planner.models.module import ModuleDefinition, ModuleType
from module_planner.parser.catalog_parser import load_catalog


DEFAULT_CATALOG = Path(__file__).resolve().parent.parent / "data"


def format_module(module: ModuleDefinition, resolver: PrerequisiteResolver, schedule) -> list[str]:
    """Printable lines for one module's option tree."""
    tree = resolver.tree_for(module)
    lines = [
        f"  {module.name} [{module.type.value}, ruleset {module.ruleset}]"
        f"  unlock {schedule.module_cost(module)}",
    ]
    for tier in tree.tiers():
        for node in tree.nodes_in_tier(tier):
            parents = tree.parents_of(node.text)
            if tree.required_tier(node.location) is None:
                needs = "root"
            else:
                needs = "after " + (" | ".join(p.text for p in parents) or "nothing")
            cost = schedule.option_cost(module, node.text)
            marker = ""
            parsed = parse_action_name(node.name)
            if parsed is not None:
                marker = f"  <{parsed[0]}>"
            lines.append(
                f"    {node.text:<4} {node.name:<32} cost {cost}  {needs}{marker}"
            )
    skipped = len(module.options) - len(tree)
    if skipped:
        lines.append(f"    ({skipped} option(s) with invalid or duplicate locations)")
    return lines


def main():
    parser = argparse.ArgumentParser(description="Dump module option trees")
    parser.add_argument("--catalog", type=Path, default=DEFAULT_CATALOG,
                        help="Catalog directory with modules/ and traits/")
    parser.add_argument("--type", choices=[t.value for t in ModuleType],
                        help="Only modules of this type")
    parser.add_argument("--schedule", choices=sorted(COST_SCHEDULES), default="flat",
                        help="Cost schedule used for the cost column")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    catalog = load_catalog(args.catalog)
    schedule = get_schedule(args.schedule)
    resolver = PrerequisiteResolver()

    modules = catalog.modules_by_type(args.type) if args.type else catalog.modules()
    modules.sort(key=lambda m: (m.type.value, m.name))

    print(f"\n{'='*60}")
    print(f"  Module Catalog ({schedule.name} pricing)")
    print(f"{'='*60}")
    print(f"  Modules: {len(modules)}")
    print(f"  Traits:  {len(catalog.traits())}\n")

    for module in modules:
        for line in format_module(module, resolver, schedule):
            print(line)
        print()

    if not args.type:
        print("  Traits:")
        for trait in sorted(catalog.traits(), key=lambda t: t.name):
            effects = ":".join(trait.effects) or "-"
            print(f"    {trait.name:<20} {trait.type.value:<9} {effects}")
        print()


if __name__ == "__main__":
    main()
