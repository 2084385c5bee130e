"""Module option trees and prerequisite evaluation.

Option locations encode a small tree: the tier number is the depth and an
optional lowercase letter marks a branch within the tier.

  "1"   root; every tier-1 location is always selectable
  "N"   bare tier (the tier's trunk), requires any selected option in tier N-1
  "Na"  branch; when tier N has a trunk it requires any selected option in
        tier N, otherwise it hangs off tier N-1 like a bare option

An option can be deselected only while nothing in a deeper tier is still
selected. Evaluation is pure: it reads the module and the selection passed
in and nothing else.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from module_planner.models.module import ModuleDefinition


_LOCATION_RE = re.compile(r"^(\d+)([a-z])?$")


class InvalidLocationError(ValueError):
    """Raised for location strings that are not '<tier>[branch]'."""


@dataclass(frozen=True, slots=True)
class Location:
    tier: int
    branch: str | None = None

    @property
    def is_branch(self) -> bool:
        return self.branch is not None

    def required_tier(self, has_trunk: bool = False) -> int | None:
        """Tier that must already hold a selection, or None if always open.

        *has_trunk* says whether this location's tier has a bare option.
        """
        if self.tier == 1:
            return None
        if self.is_branch and has_trunk:
            return self.tier
        return self.tier - 1

    def __str__(self) -> str:
        return f"{self.tier}{self.branch or ''}"


def parse_location(text: str) -> Location:
    """Parse '2a' → Location(2, 'a'). Raises InvalidLocationError."""
    match = _LOCATION_RE.match(text or "")
    if not match:
        raise InvalidLocationError(f"Invalid option location: {text!r}")
    tier = int(match.group(1))
    if tier < 1:
        raise InvalidLocationError(f"Option tier must be >= 1: {text!r}")
    return Location(tier=tier, branch=match.group(2))


def _try_parse(text: str) -> Location | None:
    try:
        return parse_location(text)
    except InvalidLocationError:
        return None


def selected_tiers(selected_locations: Iterable[str]) -> set[int]:
    """Tier numbers present in a selection; malformed entries are skipped."""
    tiers: set[int] = set()
    for text in selected_locations:
        loc = _try_parse(text)
        if loc is not None:
            tiers.add(loc.tier)
    return tiers


# ---------------------------------------------------------------------------
# Option tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OptionNode:
    location: Location
    text: str           # location exactly as written in the catalog
    name: str


class OptionTree:
    """Per-module tree of option locations grouped by tier."""

    __slots__ = ("module_id", "_nodes", "_by_tier", "_trunks")

    def __init__(self, module_id: str) -> None:
        self.module_id = module_id
        self._nodes: dict[str, OptionNode] = {}
        self._by_tier: dict[int, list[OptionNode]] = defaultdict(list)
        self._trunks: set[int] = set()

    @classmethod
    def build(cls, module: ModuleDefinition) -> OptionTree:
        """Build the tree from a module's options; bad locations are skipped."""
        tree = cls(module.id)
        for option in module.options:
            loc = _try_parse(option.location)
            if loc is None or option.location in tree._nodes:
                continue
            node = OptionNode(location=loc, text=option.location, name=option.name)
            tree._nodes[option.location] = node
            tree._by_tier[loc.tier].append(node)
            if not loc.is_branch:
                tree._trunks.add(loc.tier)
        return tree

    def get_node(self, location: str) -> OptionNode | None:
        return self._nodes.get(location)

    def has_trunk(self, tier: int) -> bool:
        """True if *tier* has a bare (unbranched) option."""
        return tier in self._trunks

    def required_tier(self, location: Location) -> int | None:
        return location.required_tier(self.has_trunk(location.tier))

    def tiers(self) -> list[int]:
        return sorted(self._by_tier)

    def nodes_in_tier(self, tier: int) -> list[OptionNode]:
        return list(self._by_tier.get(tier, []))

    def parents_of(self, location: str) -> list[OptionNode]:
        """Options any one of which satisfies *location*'s prerequisite."""
        node = self._nodes.get(location)
        if node is None:
            return []
        required = self.required_tier(node.location)
        if required is None:
            return []
        return [n for n in self._by_tier.get(required, []) if n.text != location]

    def children_of(self, location: str) -> list[OptionNode]:
        """Options whose prerequisite *location* can satisfy."""
        node = self._nodes.get(location)
        if node is None:
            return []
        return [
            n for n in self
            if n.text != location and self.required_tier(n.location) == node.location.tier
        ]

    def __iter__(self):
        for tier in self.tiers():
            yield from self._by_tier[tier]

    def __len__(self) -> int:
        return len(self._nodes)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class PrerequisiteResolver:
    """Decides whether options may be (de)selected.

    Trees are built lazily per module and cached; catalog definitions are
    frozen so a cached tree never goes stale.
    """

    __slots__ = ("_trees",)

    def __init__(self) -> None:
        self._trees: dict[str, OptionTree] = {}

    def tree_for(self, module: ModuleDefinition) -> OptionTree:
        tree = self._trees.get(module.id)
        if tree is None:
            tree = OptionTree.build(module)
            self._trees[module.id] = tree
        return tree

    def can_select(
        self,
        module: ModuleDefinition,
        location: str,
        selected_locations: Iterable[str],
    ) -> bool:
        loc = _try_parse(location)
        if loc is None:
            return False
        required = self.tree_for(module).required_tier(loc)
        if required is None:
            return True
        return required in selected_tiers(selected_locations)

    def can_deselect(self, location: str, selected_locations: Iterable[str]) -> bool:
        loc = _try_parse(location)
        if loc is None:
            return False
        return not any(tier > loc.tier for tier in selected_tiers(selected_locations))

    def dependents_of(self, location: str, selected_locations: Iterable[str]) -> list[str]:
        """Selected locations in deeper tiers that block deselecting *location*."""
        loc = _try_parse(location)
        if loc is None:
            return []
        result = []
        for text in selected_locations:
            other = _try_parse(text)
            if other is not None and other.tier > loc.tier:
                result.append(text)
        return result

    def available_locations(
        self,
        module: ModuleDefinition,
        selected_locations: Iterable[str],
    ) -> list[str]:
        """Unselected option locations whose prerequisite is currently met."""
        selected = list(selected_locations)
        taken = set(selected)
        return [
            node.text
            for node in self.tree_for(module)
            if node.text not in taken and self.can_select(module, node.text, selected)
        ]

    def unmet_requirements(
        self,
        module: ModuleDefinition,
        location: str,
        selected_locations: Iterable[str],
    ) -> list[str]:
        """Human-readable reasons *location* cannot be selected right now."""
        loc = _try_parse(location)
        if loc is None:
            return [f"Invalid option location {location!r}"]
        tree = self.tree_for(module)
        if tree.get_node(location) is None:
            return [f"{module.name} has no option at {location}"]
        if self.can_select(module, location, selected_locations):
            return []
        return [f"Requires a tier {tree.required_tier(loc)} option of {module.name}"]
