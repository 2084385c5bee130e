"""Build service: the only way selection state on a character changes.

Orchestrates Catalog, PrerequisiteResolver, PointLedger and compute_stats()
to answer "can I take this option?" and to apply the answer.

Every mutating operation validates completely before touching anything, so
a failed call leaves the character exactly as it was. A successful call
mutates selection state and the ledger together, then runs a full recompute
of the effective stats. Failures are returned as BuildResult values carrying
a BuildError; nothing in normal build flow raises.
"""

from __future__ import annotations

import copy
import functools
import logging
import threading
from dataclasses import dataclass
from enum import Enum

from module_planner.engine.build_config import BuildConfig
from module_planner.engine.cost_schedule import CostSchedule, legacy_option_cost
from module_planner.graph.dependency_graph import (
    InvalidLocationError,
    PrerequisiteResolver,
    parse_location,
)
from module_planner.models.catalog import Catalog
from module_planner.models.character import (
    Character,
    ResourcePool,
    SelectedModule,
    SelectedOption,
    SelectedTrait,
)
from module_planner.models.derived_stats import CharacterStats, compute_stats
from module_planner.models.game_settings import GameSettings
from module_planner.models.ledger import PointLedger
from module_planner.models.module import ModuleDefinition
from module_planner.parser.effect_resolver import EffectResolver


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


class BuildErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    ALREADY_SELECTED = "AlreadySelected"
    ALREADY_EXISTS = "AlreadyExists"
    PREREQUISITE_NOT_MET = "PrerequisiteNotMet"
    HAS_DEPENDENTS = "HasDependents"
    INSUFFICIENT_POINTS = "InsufficientPoints"
    TRAIT_CAP_REACHED = "TraitCapReached"
    INVALID_LOCATION = "InvalidLocation"

    @property
    def status_code(self) -> int:
        """HTTP status a transport layer should answer with."""
        if self is BuildErrorKind.NOT_FOUND:
            return 404
        return 400


@dataclass(frozen=True, slots=True)
class BuildError:
    """A single rule violation, from a rejected operation or validate()."""

    kind: BuildErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return self.kind.status_code


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Outcome of one build operation.

    ``points`` is what the ledger moved: charged on add/select, refunded on
    remove/deselect.
    """

    error: BuildError | None = None
    points: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok


def _fail(kind: BuildErrorKind, message: str) -> BuildResult:
    return BuildResult(error=BuildError(kind, message))


def _serialized(method):
    """Run *method* while holding the service lock."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


def _recorded_cost(choice: SelectedOption) -> int:
    """What deselecting *choice* refunds."""
    if choice.cost is not None:
        return choice.cost
    try:
        return legacy_option_cost(choice.location)
    except InvalidLocationError:
        return 0


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CharacterBuildService:
    """Validates and applies module, option and trait selections.

    Wraps one live Character. Consumes the Catalog, BuildConfig and
    GameSettings without modifying them. One service per character; calls
    on the same service are serialised by an internal lock.
    """

    __slots__ = (
        "_character", "_catalog", "_config", "_settings",
        "_prereqs", "_resolver", "_lock",
    )

    def __init__(
        self,
        character: Character,
        catalog: Catalog,
        config: BuildConfig | None = None,
        settings: GameSettings | None = None,
        resolver: EffectResolver | None = None,
    ) -> None:
        self._character = character
        self._catalog = catalog
        self._config = config or BuildConfig()
        self._settings = settings or GameSettings.defaults()
        self._prereqs = PrerequisiteResolver()
        self._resolver = resolver or EffectResolver(catalog)
        self._lock = threading.RLock()
        self.recompute()

    # --- Factories ---------------------------------------------------------

    @classmethod
    def new_character(
        cls,
        catalog: Catalog,
        name: str = "Unnamed",
        race: str = "",
        attributes: dict[str, int] | None = None,
        config: BuildConfig | None = None,
        settings: GameSettings | None = None,
    ) -> CharacterBuildService:
        """Create a fresh character with the configured starting points."""
        config = config or BuildConfig()
        character = Character(
            name=name,
            race=race,
            module_points=PointLedger(total=config.starting_points),
        )
        if attributes:
            character.attributes.update(attributes)
        return cls(character, catalog, config, settings)

    @classmethod
    def from_state(
        cls,
        state: Character,
        catalog: Catalog,
        config: BuildConfig | None = None,
        settings: GameSettings | None = None,
    ) -> CharacterBuildService:
        """Restore a service from a previously saved character snapshot."""
        return cls(copy.deepcopy(state), catalog, config, settings)

    def copy(self) -> CharacterBuildService:
        """Deep-copy the service for speculative exploration."""
        with self._lock:
            clone = CharacterBuildService.__new__(CharacterBuildService)
            clone._character = copy.deepcopy(self._character)
            clone._catalog = self._catalog
            clone._config = self._config
            clone._settings = self._settings
            clone._prereqs = self._prereqs
            clone._resolver = self._resolver
            clone._lock = threading.RLock()
            return clone

    # --- State -------------------------------------------------------------

    @property
    def state(self) -> Character:
        """Return a deep copy of the character for serialisation."""
        with self._lock:
            return copy.deepcopy(self._character)

    @property
    def character(self) -> Character:
        """The live character. Mutate it only through this service."""
        return self._character

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def config(self) -> BuildConfig:
        return self._config

    @property
    def stats(self) -> CharacterStats:
        """Effective stats from the last recompute."""
        with self._lock:
            if self._character.effective is None:
                return self.recompute()
            return self._character.effective

    # --- Helpers -----------------------------------------------------------

    def _schedule(self, module: ModuleDefinition) -> CostSchedule:
        return self._config.schedule_for(module.ruleset)

    def _selected_with_definition(
        self, module_id: str
    ) -> tuple[SelectedModule, ModuleDefinition] | BuildResult:
        selected = self._character.find_module(module_id)
        if selected is None:
            return _fail(
                BuildErrorKind.NOT_FOUND,
                f"Module {module_id!r} is not selected on this character",
            )
        module = self._catalog.get_module(module_id)
        if module is None:
            return _fail(
                BuildErrorKind.NOT_FOUND, f"Module {module_id!r} not found in catalog"
            )
        return selected, module

    # --- Recompute ---------------------------------------------------------

    @_serialized
    def recompute(self) -> CharacterStats:
        """Full recompute of effective stats from the selection state.

        Writes the effective view and the resolved resource pools back onto
        the character. Running it twice in a row changes nothing.
        """
        resolved = self._resolver.resolve(self._character)
        stats = compute_stats(
            self._character, resolved.deltas, resolved.actions, self._settings
        )
        self._character.resources = {
            name: ResourcePool(current=pool.current, max=pool.max)
            for name, pool in stats.resources.items()
        }
        self._character.effective = stats
        return stats

    # --- Modules -----------------------------------------------------------

    @_serialized
    def add_module(self, module_id: str) -> BuildResult:
        """Unlock a catalog module for this character."""
        module = self._catalog.get_module(module_id)
        if module is None:
            return _fail(
                BuildErrorKind.NOT_FOUND, f"Module {module_id!r} not found in catalog"
            )
        if self._character.find_module(module_id) is not None:
            return _fail(
                BuildErrorKind.ALREADY_EXISTS,
                f"Module {module.name} is already selected",
            )
        cost = self._schedule(module).module_cost(module)
        ledger = self._character.module_points
        if not ledger.can_afford(cost):
            return _fail(
                BuildErrorKind.INSUFFICIENT_POINTS,
                f"Module {module.name} costs {cost}, {ledger.available()} available",
            )

        ledger.charge(cost)
        self._character.modules.append(SelectedModule(module_id, unlock_cost=cost))
        logger.debug("Added module %r for %d points", module_id, cost)
        self.recompute()
        return BuildResult(points=cost)

    @_serialized
    def remove_module(self, module_id: str) -> BuildResult:
        """Drop a module and every option selected in it."""
        selected = self._character.find_module(module_id)
        if selected is None:
            return _fail(
                BuildErrorKind.NOT_FOUND,
                f"Module {module_id!r} is not selected on this character",
            )
        refund = selected.unlock_cost + sum(
            _recorded_cost(choice) for choice in selected.selected_options
        )

        self._character.module_points.refund(refund)
        self._character.modules.remove(selected)
        logger.debug("Removed module %r, refunded %d points", module_id, refund)
        self.recompute()
        return BuildResult(points=refund)

    # --- Options -----------------------------------------------------------

    @_serialized
    def select_option(self, module_id: str, location: str) -> BuildResult:
        """Take the option at *location* in an already selected module."""
        try:
            parse_location(location)
        except InvalidLocationError as exc:
            return _fail(BuildErrorKind.INVALID_LOCATION, str(exc))

        found = self._selected_with_definition(module_id)
        if isinstance(found, BuildResult):
            return found
        selected, module = found

        if module.option_at(location) is None:
            return _fail(
                BuildErrorKind.NOT_FOUND, f"{module.name} has no option at {location}"
            )
        if selected.find_option(location) is not None:
            return _fail(
                BuildErrorKind.ALREADY_SELECTED,
                f"Option {location} of {module.name} is already selected",
            )
        if not self._prereqs.can_select(module, location, selected.locations):
            reasons = self._prereqs.unmet_requirements(
                module, location, selected.locations
            )
            return _fail(BuildErrorKind.PREREQUISITE_NOT_MET, "; ".join(reasons))

        cost = self._schedule(module).option_cost(module, location)
        ledger = self._character.module_points
        if not ledger.can_afford(cost):
            return _fail(
                BuildErrorKind.INSUFFICIENT_POINTS,
                f"Option {location} of {module.name} costs {cost}, "
                f"{ledger.available()} available",
            )

        ledger.charge(cost)
        selected.selected_options.append(SelectedOption(location, cost=cost))
        logger.debug("Selected %s/%s for %d points", module_id, location, cost)
        self.recompute()
        return BuildResult(points=cost)

    @_serialized
    def deselect_option(self, module_id: str, location: str) -> BuildResult:
        """Give back one option; refused while deeper tiers depend on it."""
        try:
            parse_location(location)
        except InvalidLocationError as exc:
            return _fail(BuildErrorKind.INVALID_LOCATION, str(exc))

        selected = self._character.find_module(module_id)
        if selected is None:
            return _fail(
                BuildErrorKind.NOT_FOUND,
                f"Module {module_id!r} is not selected on this character",
            )
        choice = selected.find_option(location)
        if choice is None:
            return _fail(
                BuildErrorKind.NOT_FOUND,
                f"Option {location} of {module_id!r} is not selected",
            )
        if not self._prereqs.can_deselect(location, selected.locations):
            blocking = self._prereqs.dependents_of(location, selected.locations)
            return _fail(
                BuildErrorKind.HAS_DEPENDENTS,
                f"Option {location} is required by {', '.join(blocking)}",
            )

        refund = _recorded_cost(choice)
        self._character.module_points.refund(refund)
        selected.selected_options.remove(choice)
        logger.debug("Deselected %s/%s, refunded %d points", module_id, location, refund)
        self.recompute()
        return BuildResult(points=refund)

    # --- Traits ------------------------------------------------------------

    @_serialized
    def add_trait(self, trait_id: str) -> BuildResult:
        trait = self._catalog.get_trait(trait_id)
        if trait is None:
            return _fail(
                BuildErrorKind.NOT_FOUND, f"Trait {trait_id!r} not found in catalog"
            )
        if self._character.find_trait(trait_id) is not None:
            return _fail(
                BuildErrorKind.ALREADY_EXISTS, f"Trait {trait.name} is already selected"
            )
        if len(self._character.traits) >= self._config.max_traits:
            return _fail(
                BuildErrorKind.TRAIT_CAP_REACHED,
                f"At most {self._config.max_traits} traits per character",
            )
        cost = self._config.trait_cost(trait.is_positive)
        ledger = self._character.module_points
        if not ledger.can_afford(cost):
            return _fail(
                BuildErrorKind.INSUFFICIENT_POINTS,
                f"Trait {trait.name} costs {cost}, {ledger.available()} available",
            )

        ledger.charge(cost)
        self._character.traits.append(SelectedTrait(
            trait_id=trait.id,
            name=trait.name,
            type=trait.type.value,
            description=trait.description,
        ))
        logger.debug("Added trait %r for %d points", trait_id, cost)
        self.recompute()
        return BuildResult(points=cost)

    @_serialized
    def remove_trait(self, trait_id: str) -> BuildResult:
        selected = self._character.find_trait(trait_id)
        if selected is None:
            return _fail(
                BuildErrorKind.NOT_FOUND,
                f"Trait {trait_id!r} is not selected on this character",
            )
        refund = self._config.trait_cost(selected.is_positive)

        self._character.module_points.refund(refund)
        self._character.traits.remove(selected)
        logger.debug("Removed trait %r, refunded %d points", trait_id, refund)
        self.recompute()
        return BuildResult(points=refund)

    # --- Points ------------------------------------------------------------

    @_serialized
    def award_points(self, points: int) -> int:
        """Grant module points earned in play; returns the new total."""
        self._character.module_points.award(points)
        return self._character.module_points.total

    # --- Queries -----------------------------------------------------------

    def available_points(self) -> int:
        return self._character.module_points.available()

    def option_cost(self, module_id: str, location: str) -> int | None:
        """Price of *location* under the module's schedule, or None if unknown."""
        module = self._catalog.get_module(module_id)
        if module is None or module.option_at(location) is None:
            return None
        try:
            return self._schedule(module).option_cost(module, location)
        except InvalidLocationError:
            return None

    def available_options(self, module_id: str) -> list[str]:
        """Unselected locations whose prerequisite is met right now."""
        with self._lock:
            found = self._selected_with_definition(module_id)
            if isinstance(found, BuildResult):
                return []
            selected, module = found
            return self._prereqs.available_locations(module, selected.locations)

    def unmet_requirements(self, module_id: str, location: str) -> list[str]:
        """Human-readable reasons select_option() would be refused."""
        with self._lock:
            module = self._catalog.get_module(module_id)
            if module is None:
                return [f"Module {module_id!r} not found in catalog"]
            selected = self._character.find_module(module_id)
            if selected is None:
                return [f"Module {module.name} must be added first"]
            if selected.find_option(location) is not None:
                return [f"Option {location} of {module.name} is already selected"]

            reasons = self._prereqs.unmet_requirements(
                module, location, selected.locations
            )
            if reasons:
                return reasons
            cost = self._schedule(module).option_cost(module, location)
            available = self.available_points()
            if cost > available:
                reasons.append(f"Needs {cost} module points, {available} available")
            return reasons

    # --- Validation --------------------------------------------------------

    def validate(self) -> list[BuildError]:
        """Audit the character's selection state against the build rules."""
        with self._lock:
            errors = self._validate_modules()
            errors.extend(self._validate_traits())
            errors.extend(self._validate_ledger())
            return errors

    def is_valid(self) -> bool:
        return not self.validate()

    def _validate_modules(self) -> list[BuildError]:
        errors: list[BuildError] = []
        seen: set[str] = set()
        for selected in self._character.modules:
            if selected.module_id in seen:
                errors.append(BuildError(
                    BuildErrorKind.ALREADY_EXISTS,
                    f"Module {selected.module_id!r} selected more than once",
                ))
            seen.add(selected.module_id)

            module = self._catalog.get_module(selected.module_id)
            if module is None:
                errors.append(BuildError(
                    BuildErrorKind.NOT_FOUND,
                    f"Module {selected.module_id!r} not found in catalog",
                ))
                continue

            locations = selected.locations
            if len(locations) != len(set(locations)):
                errors.append(BuildError(
                    BuildErrorKind.ALREADY_SELECTED,
                    f"Duplicate option locations in {module.name}",
                ))
            for location in locations:
                try:
                    parse_location(location)
                except InvalidLocationError as exc:
                    errors.append(BuildError(BuildErrorKind.INVALID_LOCATION, str(exc)))
                    continue
                if module.option_at(location) is None:
                    errors.append(BuildError(
                        BuildErrorKind.NOT_FOUND,
                        f"{module.name} has no option at {location}",
                    ))
                if not self._prereqs.can_select(module, location, locations):
                    errors.append(BuildError(
                        BuildErrorKind.PREREQUISITE_NOT_MET,
                        f"Option {location} of {module.name} is missing its prerequisite",
                    ))
        return errors

    def _validate_traits(self) -> list[BuildError]:
        errors: list[BuildError] = []
        traits = self._character.traits
        if len(traits) > self._config.max_traits:
            errors.append(BuildError(
                BuildErrorKind.TRAIT_CAP_REACHED,
                f"At most {self._config.max_traits} traits, have {len(traits)}",
            ))
        ids = [t.trait_id for t in traits]
        if len(ids) != len(set(ids)):
            errors.append(BuildError(BuildErrorKind.ALREADY_EXISTS, "Duplicate traits"))
        return errors

    def _validate_ledger(self) -> list[BuildError]:
        errors: list[BuildError] = []
        ledger = self._character.module_points
        expected = sum(
            selected.unlock_cost + sum(_recorded_cost(c) for c in selected.selected_options)
            for selected in self._character.modules
        )
        expected += sum(
            self._config.trait_cost(t.is_positive) for t in self._character.traits
        )
        if ledger.spent != expected:
            errors.append(BuildError(
                BuildErrorKind.INSUFFICIENT_POINTS,
                f"Ledger records {ledger.spent} spent, selections account for {expected}",
            ))
        if ledger.spent > ledger.total:
            errors.append(BuildError(
                BuildErrorKind.INSUFFICIENT_POINTS,
                f"Spent {ledger.spent} exceeds total {ledger.total}",
            ))
        return errors
