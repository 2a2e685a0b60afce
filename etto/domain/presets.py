from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple


# ============================================================
# Strategic presets
# ============================================================
# Each preset is a plan built around canonical mechanic tags:
#   include -> strong match (+3 unit affinity)
#   soft    -> helpful (+1)
#   exclude -> works against the plan (-4)
INCLUDE_WEIGHT = 3
SOFT_WEIGHT = 1
EXCLUDE_WEIGHT = 4


@dataclass(frozen=True)
class PresetDef:
    include: Tuple[str, ...] = ()
    soft: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()

    @staticmethod
    def from_dict(raw: Any) -> Optional["PresetDef"]:
        if not isinstance(raw, dict):
            return None
        return PresetDef(
            include=_tag_tuple(raw.get("include")),
            soft=_tag_tuple(raw.get("soft")),
            exclude=_tag_tuple(raw.get("exclude")),
        )

    def to_dict(self) -> Dict[str, list]:
        return {"include": list(self.include), "soft": list(self.soft), "exclude": list(self.exclude)}


def _tag_tuple(raw: Any) -> Tuple[str, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    return tuple(str(t) for t in raw if t)


DEFAULT_PRESETS: Dict[str, PresetDef] = {
    "burn": PresetDef(
        include=("burn_apply", "burn_synergy", "frostburn_apply", "burn_tier_healing", "burn_tier_mega_healing"),
        soft=("status_spread", "infect", "tu_manip", "purify", "ward_burn"),
        exclude=("burn_anti",),
    ),
    "poison": PresetDef(
        include=("poison_apply", "poison_synergy", "poison_tier_lethal", "poison_tier_mega", "poison_tier_super"),
        soft=("status_spread", "infect", "tu_manip", "purify", "ward_poison"),
        exclude=("poison_anti",),
    ),
    "sleep": PresetDef(
        include=("sleep_apply", "sleep_synergy", "frostburn_apply"),
        soft=("tu_manip", "ward_sleep", "purify"),
        exclude=("sleep_anti",),
    ),
    "stun": PresetDef(
        include=("stun_apply", "stun_synergy"),
        soft=("tu_manip", "ward_stun", "purify"),
        exclude=("stun_anti",),
    ),
    "heal": PresetDef(include=("heal", "revive", "purify"), soft=("damage_reduction",)),
    "turn": PresetDef(include=("tu_manip",), soft=("sleep_apply", "stun_apply")),
    "cleanse": PresetDef(include=("purify",), soft=("ward_burn", "ward_poison", "ward_sleep", "ward_stun")),
    "hp_buff": PresetDef(include=("damage_reduction", "hp_buff"), soft=("heal", "purify")),
    "atk_buff": PresetDef(include=("atk_buff",), soft=("tu_manip",)),
}

# Legacy spellings (after tag canonicalization) -> preset key
PRESET_ALIASES: Dict[str, str] = {
    "hpbuff": "hp_buff",
    "atkbuff": "atk_buff",
}


def preset_affinity(tags: Iterable[str] | frozenset, preset: Optional[PresetDef]) -> int:
    """+3 per include tag, +1 per soft tag, -4 per exclude tag present in *tags*."""
    if preset is None:
        return 0
    tag_set = tags if isinstance(tags, (set, frozenset)) else set(tags)
    score = 0
    for t in preset.include:
        if t in tag_set:
            score += INCLUDE_WEIGHT
    for t in preset.soft:
        if t in tag_set:
            score += SOFT_WEIGHT
    for t in preset.exclude:
        if t in tag_set:
            score -= EXCLUDE_WEIGHT
    return score
