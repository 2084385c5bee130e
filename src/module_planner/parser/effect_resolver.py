"""Resolve a character's selections into effect deltas and actions.

The resolver bridges selection state and the catalog. Selections store only
ids and locations; the resolver walks the chain
(selected module → ModuleDefinition → option → data string → EffectDelta)
and the same for traits. Anything that no longer resolves in the catalog is
logged and contributes nothing.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType

from module_planner.models.catalog import Catalog
from module_planner.models.character import Character
from module_planner.models.derived_stats import derive_actions
from module_planner.models.effect import Action, EffectDelta
from module_planner.models.module import ModuleDefinition, ModuleOption
from module_planner.models.trait import TraitDefinition
from module_planner.parser.effect_parser import EffectCompiler


logger = logging.getLogger(__name__)


# Traits that predate effect codes carried their bonus in code keyed by
# name. Expressed here as effect codes so they fold like everything else.
NAMED_TRAIT_EFFECTS = MappingProxyType({
    "Tech Savvy": "ASB=1",
    "Quick Reflexes": "ASH=2",
    "Fearless": "I1",
})


@dataclass(slots=True)
class ResolvedEffects:
    """Everything a recompute needs from the catalog."""

    deltas: list[EffectDelta] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


class EffectResolver:
    """Resolves selection state into EffectDelta lists.

    Build once per catalog snapshot, then call resolve() on characters.
    """

    __slots__ = ("_catalog", "_compiler")

    def __init__(self, catalog: Catalog, compiler: EffectCompiler | None = None) -> None:
        self._catalog = catalog
        self._compiler = compiler or EffectCompiler()

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def selected_options(
        self,
        character: Character,
        missing: list[str] | None = None,
    ) -> list[tuple[ModuleDefinition, ModuleOption]]:
        """Catalog options for every selection that still resolves."""
        result: list[tuple[ModuleDefinition, ModuleOption]] = []
        for selected in character.modules:
            module = self._catalog.get_module(selected.module_id)
            if module is None:
                logger.warning("Selected module %r not found in catalog", selected.module_id)
                if missing is not None:
                    missing.append(f"module:{selected.module_id}")
                continue
            for choice in selected.selected_options:
                option = module.option_at(choice.location)
                if option is None:
                    logger.warning(
                        "Module %r has no option at %r", module.id, choice.location
                    )
                    if missing is not None:
                        missing.append(f"option:{module.id}/{choice.location}")
                    continue
                result.append((module, option))
        return result

    def trait_delta(self, trait: TraitDefinition) -> EffectDelta:
        """Compile a trait's explicit codes plus any name-keyed bonus."""
        delta = EffectDelta()
        for code in trait.effects:
            delta = delta.merged(self._compiler.compile(code))
        named = NAMED_TRAIT_EFFECTS.get(trait.name)
        if named:
            delta = delta.merged(self._compiler.compile(named))
        return delta

    def resolve(self, character: Character) -> ResolvedEffects:
        resolved = ResolvedEffects()
        options = self.selected_options(character, resolved.missing)
        for _module, option in options:
            resolved.deltas.append(self._compiler.compile(option.data))
        resolved.actions = derive_actions(options)

        for selected in character.traits:
            trait = self._catalog.get_trait(selected.trait_id)
            if trait is None:
                logger.warning("Selected trait %r not found in catalog", selected.trait_id)
                resolved.missing.append(f"trait:{selected.trait_id}")
                continue
            resolved.deltas.append(self.trait_delta(trait))

        return resolved
