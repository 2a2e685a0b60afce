"""
Team-level scoring.

team_score() is called for every candidate inside the allocator's search
loop, so it only looks at the members of the team being scored
(O(team size * tracked tags)) and never at the whole pool.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from etto.domain.doctrine import Doctrine
from etto.domain.presets import EXCLUDE_WEIGHT, INCLUDE_WEIGHT, SOFT_WEIGHT, PresetDef
from etto.engine.scoring import TaggedUnit
from etto.engine.tags import count_matching, has_any

TEAM_STORY = "story"
TEAM_PLATOON = "platoon"


@dataclass(frozen=True)
class EngineFamily:
    name: str
    apply: Tuple[str, ...]
    payoff: Tuple[str, ...]
    anti: Tuple[str, ...]
    support: Tuple[str, ...]


ENGINE_FAMILIES: Tuple[EngineFamily, ...] = (
    EngineFamily(
        "burn",
        apply=("burn_apply", "frostburn_apply"),
        payoff=("burn_synergy", "burn_tier_healing", "burn_tier_mega_healing"),
        anti=("burn_anti",),
        support=("status_spread", "infect", "tu_manip", "ward_burn"),
    ),
    EngineFamily(
        "poison",
        apply=("poison_apply",),
        payoff=("poison_synergy", "poison_tier_lethal", "poison_tier_mega", "poison_tier_super"),
        anti=("poison_anti",),
        support=("status_spread", "infect", "tu_manip", "ward_poison"),
    ),
    EngineFamily(
        "sleep",
        apply=("sleep_apply",),
        payoff=("sleep_synergy",),
        anti=("sleep_anti",),
        support=("tu_manip", "ward_sleep"),
    ),
    EngineFamily(
        "stun",
        apply=("stun_apply",),
        payoff=("stun_synergy",),
        anti=("stun_anti",),
        support=("tu_manip", "ward_stun"),
    ),
)

CONTROL_TAGS = ("sleep_apply", "stun_apply")
TEMPO_TAGS = ("tu_manip",)
SUSTAIN_TAGS = ("heal", "revive")
MITIGATION_TAGS = ("damage_reduction",)


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


# ============================================================
# Engines
# ============================================================
def engine_score(apply: int, payoff: int, anti: int, support: int, doctrine: Doctrine) -> float:
    """Score one apply/payoff/anti triad (plus generic support) of a team."""
    syn = doctrine.synergy
    pair = min(apply, payoff)
    s = pair * syn.engine_pair
    s += (apply + payoff - 2 * pair) * syn.engine_partial
    support_mult = syn.engine_support_paired if pair > 0 else syn.engine_support_unpaired
    s += _clamp01(support / max(1e-9, syn.engine_support_divisor)) * support_mult
    s -= anti * syn.engine_anti

    # half-built engines: lots of one side, nothing of the other
    if apply >= syn.half_built_threshold and payoff == 0:
        s -= syn.half_built_penalty
    if payoff >= syn.half_built_threshold and apply == 0:
        s -= syn.half_built_penalty
    return s


def engines_total(team: Sequence[TaggedUnit], doctrine: Doctrine) -> float:
    total = 0.0
    for fam in ENGINE_FAMILIES:
        apply = payoff = anti = support = 0
        for u in team:
            # each unit counts once per side, however many matching tags it has
            if has_any(u.tags, fam.apply):
                apply += 1
            if has_any(u.tags, fam.payoff):
                payoff += 1
            if has_any(u.tags, fam.anti):
                anti += 1
            support += count_matching(u.tags, fam.support)
        total += engine_score(apply, payoff, anti, support, doctrine)
    return total


# ============================================================
# Coverage / redundancy
# ============================================================
def capability_counts(team: Sequence[TaggedUnit], doctrine: Doctrine) -> Dict[str, int]:
    syn = doctrine.synergy
    tracked = set(syn.coverage) | set(syn.redundancy) | set(CONTROL_TAGS)
    counts: Dict[str, int] = {}
    for u in team:
        for t in tracked:
            if t in u.tags:
                counts[t] = counts.get(t, 0) + 1
    return counts


def coverage_bonus(counts: Dict[str, int], doctrine: Doctrine) -> float:
    syn = doctrine.synergy
    s = 0.0
    for cap, bonus in syn.coverage.items():
        if counts.get(cap, 0) > 0:
            s += bonus

    mitigation = any(counts.get(t, 0) for t in MITIGATION_TAGS)
    sustain = any(counts.get(t, 0) for t in SUSTAIN_TAGS)
    guard = counts.get("guard", 0) > 0
    barrier = counts.get("barrier", 0) > 0
    control = any(counts.get(t, 0) for t in CONTROL_TAGS)
    tempo = any(counts.get(t, 0) for t in TEMPO_TAGS)

    if mitigation and sustain:
        s += syn.combo.get("mitigation_sustain", 0.0)
    if guard and (barrier or mitigation):
        s += syn.combo.get("guard_barrier", 0.0)
    if control and tempo:
        s += syn.combo.get("tempo_control", 0.0)
    return s


def redundancy_penalty(counts: Dict[str, int], doctrine: Doctrine) -> float:
    syn = doctrine.synergy
    s = 0.0
    for cap, scale in syn.redundancy.items():
        extra = counts.get(cap, 0) - syn.redundancy_threshold
        if extra > 0:
            s += extra * scale
    return s


# ============================================================
# Preset cohesion / elements
# ============================================================
def preset_cohesion(team: Sequence[TaggedUnit], preset: PresetDef | None, doctrine: Doctrine) -> float:
    """Per member: include hit, soft hit, exclude hit; same 3/1/4 ratio as the unit scorer."""
    if preset is None:
        return 0.0
    scale = doctrine.synergy.cohesion_scale
    s = 0.0
    for u in team:
        if has_any(u.tags, preset.include):
            s += INCLUDE_WEIGHT * scale
        if has_any(u.tags, preset.soft):
            s += SOFT_WEIGHT * scale
        if has_any(u.tags, preset.exclude):
            s -= EXCLUDE_WEIGHT * scale
    return s


def element_counts(team: Sequence[TaggedUnit]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for u in team:
        if u.element:
            counts[u.element] = counts.get(u.element, 0) + 1
    return counts


def element_term(team: Sequence[TaggedUnit], doctrine: Doctrine, team_kind: str = TEAM_STORY) -> float:
    mvr = doctrine.mono_vs_rainbow
    counts = element_counts(team)
    distinct = len(counts)
    mode = mvr.selection_mode

    if mode == "force_mono":
        return -mvr.mono_violation_penalty if distinct > 1 else 0.0
    if mode == "force_rainbow":
        missing = mvr.rainbow_min_distinct - distinct
        return -mvr.rainbow_shortfall_penalty * missing if missing > 0 else 0.0

    # auto: reward a committed mono core or a real rainbow spread, not the middle
    if not team:
        return 0.0
    threshold = float(mvr.mono_threshold.get(team_kind, mvr.mono_threshold.get(TEAM_STORY, 0.75)))
    dominant = max(counts.values()) if counts else 0
    if dominant / len(team) >= threshold:
        return mvr.auto_mono_bonus
    if distinct >= mvr.rainbow_min_distinct:
        return mvr.auto_rainbow_bonus
    return 0.0


# ============================================================
# Team score
# ============================================================
def synergy_total(team: Sequence[TaggedUnit], doctrine: Doctrine, preset_key: str = "") -> float:
    counts = capability_counts(team, doctrine)
    return (
        engines_total(team, doctrine)
        + preset_cohesion(team, doctrine.preset(preset_key), doctrine)
        + coverage_bonus(counts, doctrine)
        - redundancy_penalty(counts, doctrine)
    )


def team_score(
    team: Sequence[TaggedUnit],
    doctrine: Doctrine,
    preset_key: str = "",
    team_kind: str = TEAM_STORY,
) -> float:
    if not team:
        return 0.0
    sm = doctrine.scoring_model
    mean_base = sum(u.base for u in team) / len(team)
    return (
        mean_base / max(1e-9, sm.base_divisor)
        + sm.pair_synergy_weight * synergy_total(team, doctrine, preset_key)
        + sm.element_strategy_weight * element_term(team, doctrine, team_kind)
    )
