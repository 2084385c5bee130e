"""Read-only catalog snapshot of module and trait definitions.

Build once (from JSON via ``parser.catalog_parser`` or from definitions
directly) and inject into the build engine. Lookups never raise: a missing
id is reported as ``None``.
"""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType

from module_planner.models.module import ModuleDefinition, ModuleType
from module_planner.models.trait import TraitDefinition, TraitType


class Catalog:
    """Immutable id → definition lookup for modules and traits."""

    __slots__ = ("_modules", "_traits")

    def __init__(
        self,
        modules: Iterable[ModuleDefinition] = (),
        traits: Iterable[TraitDefinition] = (),
    ) -> None:
        module_map: dict[str, ModuleDefinition] = {}
        for module in modules:
            if module.id in module_map:
                raise ValueError(f"Duplicate module id: {module.id!r}")
            module_map[module.id] = module
        trait_map: dict[str, TraitDefinition] = {}
        for trait in traits:
            if trait.id in trait_map:
                raise ValueError(f"Duplicate trait id: {trait.id!r}")
            trait_map[trait.id] = trait
        self._modules = MappingProxyType(module_map)
        self._traits = MappingProxyType(trait_map)

    # --- Modules -------------------------------------------------------------

    def get_module(self, module_id: str) -> ModuleDefinition | None:
        return self._modules.get(module_id)

    def modules(self) -> list[ModuleDefinition]:
        return list(self._modules.values())

    def modules_by_type(self, module_type: ModuleType | str) -> list[ModuleDefinition]:
        wanted = ModuleType(module_type)
        return [m for m in self._modules.values() if m.type == wanted]

    # --- Traits --------------------------------------------------------------

    def get_trait(self, trait_id: str) -> TraitDefinition | None:
        return self._traits.get(trait_id)

    def traits(self) -> list[TraitDefinition]:
        return list(self._traits.values())

    def traits_by_type(self, trait_type: TraitType | str) -> list[TraitDefinition]:
        wanted = TraitType(trait_type)
        return [t for t in self._traits.values() if t.type == wanted]

    def __len__(self) -> int:
        return len(self._modules) + len(self._traits)
