"""Compile effect-code strings into EffectDelta models.

Effect codes are stored verbatim in catalog option/trait ``data`` and are
authored outside this project, so the grammar is fixed. Tokens are joined
by ``:``:

  L="name"        language grant (quotes stripped)
  T<code>         trait flag, kept verbatim
  I<code>         immunity (IMMUNITY_CODES)
  X… / Z… / Y…    action / reaction / free-action usage:
                  char 2 'D' = daily recharge, trailing digit = uses
  W…              conditional clause, stored unevaluated
  A<CAT><SUB>=±n  numeric bonus, CAT in S(skill) C(craft) Z(weapon)
                  D(mitigation); AH=±n health and AV=±n movement take no SUB
  VD<SUB>         vision grant (VISION_CODES)

Unknown tokens and unknown sub-codes are skipped so newer catalog content
still loads.
"""

import re

from module_planner.models.constants import (
    ACTION_USAGE_KINDS,
    CRAFT_CODES,
    IMMUNITY_CODES,
    INITIATIVE,
    MITIGATION_CODES,
    SKILL_CODES,
    VISION_CODES,
    WEAPON_CODES,
)
from module_planner.models.effect import ActionUsage, EffectDelta


TOKEN_SEPARATOR = ":"

_KEYED_BONUS_RE = re.compile(r"^A([SCZD])([0-9A-Z])=([+-]?\d+)$")
_FLAT_BONUS_RE = re.compile(r"^A([HV])=([+-]?\d+)$")
_IMMUNITY_RE = re.compile(r"^I(\d+)$")
_VISION_RE = re.compile(r"^VD(\d)(?:=.*)?$")
_TRAILING_DIGIT_RE = re.compile(r"(\d)$")


def _add(into: dict[str, int], key: str, value: int) -> None:
    into[key] = into.get(key, 0) + value


def _apply_keyed_bonus(delta: EffectDelta, category: str, sub: str, value: int) -> None:
    if category == "S":
        skill = SKILL_CODES.get(sub)
        if skill == INITIATIVE:
            delta.initiative += value
        elif skill is not None:
            _add(delta.skills, skill, value)
    elif category == "C":
        craft = CRAFT_CODES.get(sub)
        if craft is not None:
            _add(delta.crafting_skills, craft, value)
    elif category == "Z":
        weapon = WEAPON_CODES.get(sub)
        if weapon is not None:
            _add(delta.weapon_skills, weapon, value)
    elif category == "D":
        mitigation = MITIGATION_CODES.get(sub)
        if mitigation is not None:
            _add(delta.mitigation, mitigation, value)


def parse_action_usage(token: str) -> ActionUsage:
    """Parse an X/Z/Y usage token, e.g. 'ZD2' → daily reaction, 2 uses."""
    kind = ACTION_USAGE_KINDS[token[0]]
    daily = len(token) > 1 and token[1] == "D"
    uses = 1
    match = _TRAILING_DIGIT_RE.search(token[1:])
    if match:
        uses = int(match.group(1))
    return ActionUsage(kind=kind, daily=daily, uses=uses)


def compile_token(token: str, delta: EffectDelta) -> None:
    """Fold a single effect token into *delta*. Unknown tokens are ignored."""
    if not token:
        return
    head = token[0]

    if head == "T":
        if token not in delta.trait_flags:
            delta.trait_flags.append(token)
        return

    if head == "I":
        match = _IMMUNITY_RE.match(token)
        if match:
            immunity = IMMUNITY_CODES.get(match.group(1))
            if immunity is not None:
                delta.immunities.add(immunity)
        return

    if token.startswith("L="):
        language = token[2:].replace('"', "").strip()
        if language:
            delta.languages.add(language)
        return

    if head in ACTION_USAGE_KINDS:
        delta.action_usage[token] = parse_action_usage(token)
        return

    if head == "W":
        delta.conditional_effects.append(token)
        return

    if head == "A":
        match = _KEYED_BONUS_RE.match(token)
        if match:
            category, sub, value = match.groups()
            _apply_keyed_bonus(delta, category, sub, int(value))
            return
        match = _FLAT_BONUS_RE.match(token)
        if match:
            category, value = match.groups()
            if category == "H":
                delta.health += int(value)
            else:
                delta.movement += int(value)
        return

    match = _VISION_RE.match(token)
    if match:
        vision = VISION_CODES.get(match.group(1))
        if vision is not None:
            delta.vision.add(vision)


def compile_effects(data: str | None) -> EffectDelta:
    """Compile one effect-code string into a fresh EffectDelta."""
    delta = EffectDelta()
    if not data:
        return delta
    for raw in data.split(TOKEN_SEPARATOR):
        compile_token(raw.strip(), delta)
    return delta


class EffectCompiler:
    """Memoising front end for compile_effects().

    Catalog data strings repeat across every recompute; each distinct string
    is compiled once. Callers receive a copy, so the cached delta stays
    pristine.
    """

    __slots__ = ("_cache",)

    def __init__(self) -> None:
        self._cache: dict[str, EffectDelta] = {}

    def compile(self, data: str | None) -> EffectDelta:
        key = data or ""
        cached = self._cache.get(key)
        if cached is None:
            cached = compile_effects(key)
            self._cache[key] = cached
        return cached.copy()

    def cache_size(self) -> int:
        return len(self._cache)
