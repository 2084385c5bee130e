"""Tests for effective stat computation."""

from module_planner.models.character import Character, ResourcePool
from module_planner.models.constants import ActionType
from module_planner.models.derived_stats import (
    DerivedStats,
    SkillRating,
    compute_stats,
    derive_actions,
    fold_effects,
    parse_action_name,
    resolve_pool,
)
from module_planner.models.effect import ActionUsage, EffectDelta
from module_planner.models.game_settings import GameSettings
from module_planner.models.module import ModuleDefinition, ModuleOption, ModuleType
from module_planner.parser.effect_parser import compile_effects


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _character(**attributes: int) -> Character:
    c = Character(name="Test")
    c.attributes.update(attributes)
    return c


def _module(*options: ModuleOption, name: str = "Acrobat") -> ModuleDefinition:
    return ModuleDefinition(id=name, name=name, type=ModuleType.SECONDARY, options=options)


# ===========================================================================
# Formulas
# ===========================================================================


class TestDerivedStats:
    def test_default_formulas(self):
        calc = DerivedStats(GameSettings.defaults())
        assert calc.health_max(1) == 10
        assert calc.health_max(3) == 14
        assert calc.stamina_max(2) == 7
        assert calc.resolve_max(3) == 8
        assert calc.initiative(2, 3) == 5

    def test_overridden_settings(self):
        calc = DerivedStats(GameSettings.defaults().with_overrides(health_base=10))
        assert calc.health_max(1) == 12

    def test_empty_settings_fall_back(self):
        calc = DerivedStats(GameSettings())
        assert calc.health_max(2) == 12


class TestBaseStats:
    def test_fresh_character(self):
        stats = compute_stats(_character())
        assert stats.resources["health"] == ResourcePool(current=10, max=10)
        assert stats.resources["stamina"] == ResourcePool(current=6, max=6)
        assert stats.resources["resolve"] == ResourcePool(current=6, max=6)
        assert stats.initiative == 2
        assert stats.movement == 5

    def test_talent_follows_governing_attribute(self):
        stats = compute_stats(_character(physique=3, knowledge=2))
        assert stats.skills["might"] == SkillRating(value=0, talent=3)
        assert stats.skills["technology"] == SkillRating(value=0, talent=2)
        assert stats.skills["evade"].talent == 1

    def test_weapon_skill_talents_fixed(self):
        stats = compute_stats(_character())
        assert stats.weapon_skills["rangedWeapons"].talent == 1
        assert stats.weapon_skills["weaponSystems"].talent == 0

    def test_base_skill_values_carried(self):
        c = _character()
        c.skills["stealth"] = 2
        stats = compute_stats(c)
        assert stats.skills["stealth"].value == 2

    def test_mitigation_has_every_type(self):
        stats = compute_stats(_character())
        assert len(stats.mitigation) == 8
        assert all(v == 0 for v in stats.mitigation.values())


class TestBonuses:
    def test_skill_and_initiative_bonus(self):
        stats = compute_stats(_character(), [compile_effects("AS3=1:ASH=1")])
        assert stats.skills["might"].value == 1
        assert stats.initiative == 3

    def test_health_bonus_tops_up_full_pool(self):
        c = _character()
        c.resources["health"] = ResourcePool(current=10, max=10)
        stats = compute_stats(c, [compile_effects("AH=5")])
        assert stats.resources["health"] == ResourcePool(current=15, max=15)

    def test_health_bonus_keeps_depleted_pool(self):
        c = _character()
        c.resources["health"] = ResourcePool(current=4, max=10)
        stats = compute_stats(c, [compile_effects("AH=5")])
        assert stats.resources["health"] == ResourcePool(current=4, max=15)

    def test_recompute_is_idempotent(self):
        c = _character()
        c.resources["health"] = ResourcePool(current=10, max=10)
        deltas = [compile_effects("AH=5")]
        first = compute_stats(c, deltas)
        c.resources = first.resources
        second = compute_stats(c, deltas)
        assert second.resources["health"] == ResourcePool(current=15, max=15)
        assert second == first

    def test_does_not_mutate_character(self):
        c = _character()
        c.resources["health"] = ResourcePool(current=3, max=10)
        compute_stats(c, [compile_effects("AH=5:AV=1")])
        assert c.resources["health"] == ResourcePool(current=3, max=10)
        assert c.movement == 5
        assert c.effective is None

    def test_movement_crafting_mitigation(self):
        stats = compute_stats(_character(), [compile_effects("AV=1:AC2=1:AD1=2")])
        assert stats.movement == 6
        assert stats.crafting_skills["fabrication"].value == 1
        assert stats.mitigation["kinetic"] == 2

    def test_weapon_bonuses_exposed(self):
        stats = compute_stats(_character(), [compile_effects("AZ3=1")])
        assert stats.weapon_bonuses == {"attackWithRangedWeapons": 1}

    def test_languages_append_new_sorted(self):
        c = _character()
        c.languages = ["Common"]
        deltas = [compile_effects('L="Void":L="Common"'), compile_effects('L="Aquan"')]
        stats = compute_stats(c, deltas)
        assert stats.languages == ["Common", "Aquan", "Void"]

    def test_sets_sorted(self):
        stats = compute_stats(_character(), [compile_effects("I14:I1:VD4:VD1")])
        assert stats.immunities == ["afraid", "stunned"]
        assert stats.vision == ["enhanced", "thermal"]


class TestFold:
    def test_sums_and_unions(self):
        folded = fold_effects([
            compile_effects("AS3=1:I1:TG"),
            compile_effects("AS3=2:I2:TG:TD"),
        ])
        assert folded.skills == {"might": 3}
        assert folded.immunities == {"afraid", "bleeding"}
        assert folded.trait_flags == ["TG", "TD"]

    def test_later_action_usage_wins(self):
        a = EffectDelta(action_usage={"ZX2": ActionUsage("reaction", uses=2)})
        b = EffectDelta(action_usage={"ZX2": ActionUsage("reaction", uses=3)})
        assert fold_effects([a, b]).action_usage["ZX2"].uses == 3

    def test_inputs_unchanged(self):
        a = compile_effects("AH=1")
        fold_effects([a, a])
        assert a.health == 1

    def test_empty(self):
        assert fold_effects([]).is_empty()


class TestResolvePool:
    def test_no_previous_fills(self):
        assert resolve_pool(None, 12) == ResourcePool(12, 12)

    def test_full_pool_follows_max(self):
        assert resolve_pool(ResourcePool(10, 10), 15) == ResourcePool(15, 15)
        assert resolve_pool(ResourcePool(10, 10), 8) == ResourcePool(8, 8)

    def test_depleted_pool_clamped(self):
        assert resolve_pool(ResourcePool(4, 10), 15) == ResourcePool(4, 15)
        assert resolve_pool(ResourcePool(9, 10), 6) == ResourcePool(6, 6)


# ===========================================================================
# Actions
# ===========================================================================


class TestActions:
    def test_parse_action_name(self):
        assert parse_action_name("Reaction : Rolling Dodge") == ("Reaction", "Rolling Dodge")
        assert parse_action_name("free action: Second Wind") == ("Free Action", "Second Wind")
        assert parse_action_name("ACTION:Parkour Strike") == ("Action", "Parkour Strike")

    def test_plain_names_are_not_actions(self):
        assert parse_action_name("Quick Dodge") is None
        assert parse_action_name("Action") is None

    def test_derive_actions(self):
        rolling = ModuleOption("3", "Reaction : Rolling Dodge", "dodge", "ZX2")
        parkour = ModuleOption("4a", "Action : Parkour Strike", "strike")
        plain = ModuleOption("4b", "Quick Dodge")
        module = _module(rolling, parkour, plain)
        actions = derive_actions([(module, rolling), (module, parkour), (module, plain)])
        assert [a.name for a in actions] == ["Rolling Dodge", "Parkour Strike"]
        assert actions[0].type == ActionType.REACTION.value
        assert actions[0].source_module == "Acrobat"
        assert actions[0].source_option == "3"
        assert actions[1].description == "strike"

    def test_duplicate_names_first_wins(self):
        a = ModuleOption("3", "Action : Strike", "first")
        b = ModuleOption("2", "action : strike", "second")
        module_a = _module(a, name="A")
        module_b = _module(b, name="B")
        actions = derive_actions([(module_a, a), (module_b, b)])
        assert len(actions) == 1
        assert actions[0].description == "first"

    def test_actions_on_stats(self):
        option = ModuleOption("3", "Reaction : Rolling Dodge")
        actions = derive_actions([(_module(option), option)])
        stats = compute_stats(_character(), actions=actions)
        assert stats.actions == actions
