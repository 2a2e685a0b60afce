"""Tag canonicalization and synonym expansion for unit capability tags."""
from __future__ import annotations

import re
from typing import Dict, FrozenSet, Iterable, Optional

ELEMENT_TAG_PREFIX = "elem_"
ELEMENTS = ("fire", "water", "storm", "earth", "light", "dark")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


# ============================================================
# Synonyms
# ============================================================
# Many-to-one and single hop: alternate phrasings map onto the canonical
# mechanic tags the scorers understand. Keep entries explicit; no substring
# matching (burn_tier_healing must not turn into heal).
TAG_SYNONYMS: Dict[str, str] = {
    # sustain
    "healing": "heal",
    "heal_over_time": "heal",
    "regen": "heal",
    "regeneration": "heal",
    "lifesteal": "heal",
    "life_steal": "heal",
    "leech": "heal",
    "vampiric": "heal",
    "drain": "heal",

    # cleanse
    "cleanse": "purify",
    "cleansing": "purify",
    "purge": "purify",
    "purged": "purify",
    "remove_debuffs": "purify",
    "debuff_remove": "purify",
    "debuff_removal": "purify",
    "cleanse_team": "purify",
    "cleanse_self": "purify",

    # revive
    "resurrect": "revive",
    "resurrection": "revive",
    "reanimate": "revive",
    "bring_back": "revive",

    # mitigation
    "mitigate": "damage_reduction",
    "mitigation": "damage_reduction",
    "reduce_damage": "damage_reduction",
    "damage_mitigation": "damage_reduction",
    "toughness": "damage_reduction",
    "resilient": "damage_reduction",
    "resilience": "damage_reduction",
    "fortified": "damage_reduction",
    "hardened": "damage_reduction",

    # barrier
    "shield": "barrier",
    "shielding": "barrier",
    "ward": "barrier",
    "protect_shield": "barrier",

    # guard
    "taunt": "guard",
    "guarding": "guard",
    "bodyguard": "guard",
    "cover": "guard",
    "protect": "guard",

    # dispel
    "strip": "dispel",
    "strip_buffs": "dispel",
    "remove_buffs": "dispel",
    "buff_remove": "dispel",

    # stealth
    "hidden": "stealth",
    "hide": "stealth",
    "invis": "stealth",
    "invisible": "stealth",

    # evasion
    "dodge": "evasion",
    "dodging": "evasion",
    "avoid": "evasion",

    # tempo
    "haste": "tu_manip",
    "quicken": "tu_manip",
    "speed_up": "tu_manip",
    "speedup": "tu_manip",
    "reduce_tu": "tu_manip",
    "tu_reduce": "tu_manip",
    "tu_reduction": "tu_manip",
    "extra_turn": "tu_manip",
    "turn_gain": "tu_manip",

    # stat buffs (leader-skill keywords)
    "attack_up": "atk_buff",
    "atk_up": "atk_buff",
    "attack_increased": "atk_buff",
    "damage_up": "atk_buff",
    "max_hp": "hp_buff",
    "hp_up": "hp_buff",
    "hp_increased": "hp_buff",

    # status engines
    "ignite_apply": "burn_apply",
    "burning_apply": "burn_apply",
    "fire_dot_apply": "burn_apply",
    "burn_bonus": "burn_synergy",
    "vs_burning": "burn_synergy",

    "toxin_apply": "poison_apply",
    "venom_apply": "poison_apply",
    "poison_bonus": "poison_synergy",
    "vs_poisoned": "poison_synergy",

    "slumber_apply": "sleep_apply",
    "sleep_bonus": "sleep_synergy",
    "vs_sleeping": "sleep_synergy",

    "shock_apply": "stun_apply",
    "stun_bonus": "stun_synergy",
    "vs_stunned": "stun_synergy",
}


def canonicalize(raw_tag: object) -> str:
    """Lowercase, collapse every non-alphanumeric run to "_" and trim the edges."""
    if raw_tag is None:
        return ""
    txt = str(raw_tag).strip().lower()
    return _NON_ALNUM.sub("_", txt).strip("_")


def expand(tag_set: Optional[Iterable[object]]) -> FrozenSet[str]:
    """Canonical tags plus their (single) synonym target. Falsy tags are dropped."""
    out = set()
    if not tag_set or isinstance(tag_set, (str, bytes)):
        return frozenset()
    try:
        items = list(tag_set)
    except TypeError:
        return frozenset()
    for raw in items:
        if not raw:
            continue
        t = canonicalize(raw)
        if not t:
            continue
        out.add(t)
        syn = TAG_SYNONYMS.get(t)
        if syn:
            out.add(syn)
    return frozenset(out)


def has_any(tags: FrozenSet[str] | set, wanted: Iterable[str]) -> bool:
    for t in wanted:
        if t in tags:
            return True
    return False


def count_matching(tags: FrozenSet[str] | set, wanted: Iterable[str]) -> int:
    return sum(1 for t in wanted if t in tags)


def element_from_tags(tags: FrozenSet[str] | set, fallback: str = "") -> str:
    """First elem_<x> tag in sorted order, else the explicit element field."""
    elems = sorted(t[len(ELEMENT_TAG_PREFIX):] for t in tags if t.startswith(ELEMENT_TAG_PREFIX))
    for e in elems:
        if e:
            return e
    return canonicalize(fallback)
