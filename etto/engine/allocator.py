"""
Team assembly: locks -> mono filter -> candidate pool -> preset ladder ->
greedy (or beam) fill -> slot placement.

Everything here is deterministic: pools are ordered by (base desc, id asc)
and every comparison between candidates ends in an id comparison.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from etto.domain.doctrine import Doctrine
from etto.domain.models import (
    PLATOON_COUNT,
    PLATOON_SIZE,
    STORY_BACK_SLOTS,
    STORY_MAIN_SLOTS,
    STORY_SIZE,
    SlotLayout,
    SlotLocks,
)
from etto.domain.presets import PresetDef
from etto.engine.scoring import TaggedUnit, candidate_order_key
from etto.engine.synergy import TEAM_PLATOON, TEAM_STORY, team_score
from etto.engine.tags import has_any

CONTROL_TAGS = ("sleep_apply", "stun_apply", "tu_manip")
SUSTAIN_TAGS = ("heal", "revive", "purify")


# ============================================================
# Forced units (locks)
# ============================================================
@dataclass
class ForcedSlots:
    """Locked + populated + owned slots, keyed by slot index per group."""
    story_main: Dict[int, TaggedUnit] = field(default_factory=dict)
    story_back: Dict[int, TaggedUnit] = field(default_factory=dict)
    platoons: List[Dict[int, TaggedUnit]] = field(default_factory=lambda: [{} for _ in range(PLATOON_COUNT)])

    def story_units(self) -> List[TaggedUnit]:
        return [self.story_main[i] for i in sorted(self.story_main)] + [
            self.story_back[i] for i in sorted(self.story_back)
        ]

    def platoon_units(self, p: int) -> List[TaggedUnit]:
        slots = self.platoons[p]
        return [slots[i] for i in sorted(slots)]

    def all_ids(self) -> Set[str]:
        ids = {u.id for u in self.story_units()}
        for p in range(PLATOON_COUNT):
            ids.update(u.id for u in self.platoon_units(p))
        return ids


def resolve_forced(
    units_by_id: Dict[str, TaggedUnit],
    layout: Optional[SlotLayout],
    locks: Optional[SlotLocks],
) -> ForcedSlots:
    """
    Collect forced units for every group up front.

    A slot is forced when it is locked, holds an id and that id is owned.
    The first occurrence (story main, story back, platoons in order) wins;
    later copies of the same id are treated as unlocked.
    """
    forced = ForcedSlots()
    if layout is None or locks is None:
        return forced

    reserved: Set[str] = set()

    def _take(locked: bool, uid: str) -> Optional[TaggedUnit]:
        if not locked or not uid or uid in reserved:
            return None
        unit = units_by_id.get(uid)
        if unit is None:
            return None
        reserved.add(uid)
        return unit

    for i in range(STORY_MAIN_SLOTS):
        u = _take(locks.story_main[i], layout.story_main[i])
        if u is not None:
            forced.story_main[i] = u
    for i in range(STORY_BACK_SLOTS):
        u = _take(locks.story_back[i], layout.story_back[i])
        if u is not None:
            forced.story_back[i] = u
    for p in range(PLATOON_COUNT):
        for i in range(PLATOON_SIZE):
            u = _take(locks.platoons[p][i], layout.platoons[p][i])
            if u is not None:
                forced.platoons[p][i] = u
    return forced


# ============================================================
# Candidate pool
# ============================================================
def top_candidates(units: Iterable[TaggedUnit], excluded: Set[str], limit: int) -> List[TaggedUnit]:
    remaining = [u for u in units if u.id not in excluded]
    remaining.sort(key=candidate_order_key)
    return remaining[: max(0, int(limit))]


def apply_preset_filter(pool: List[TaggedUnit], preset: Optional[PresetDef], needed: int) -> List[TaggedUnit]:
    """include-and-not-exclude if it can fill, else include-only if it can fill, else unfiltered."""
    if preset is None or needed <= 0:
        return pool
    positives = [u for u in pool if has_any(u.tags, preset.include)]
    safe = [u for u in positives if not has_any(u.tags, preset.exclude)]
    if len(safe) >= needed:
        return safe
    if len(positives) >= needed:
        return positives
    return pool


def pick_anchor_element(forced: Sequence[TaggedUnit], pool: Sequence[TaggedUnit]) -> str:
    for u in forced:
        if u.element:
            return u.element
    counts: Dict[str, int] = {}
    for u in pool:
        if u.element:
            counts[u.element] = counts.get(u.element, 0) + 1
    if not counts:
        return ""
    # most candidates, then alphabetical
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[0][0]


def apply_mono_filter(pool: List[TaggedUnit], forced: Sequence[TaggedUnit], doctrine: Doctrine) -> List[TaggedUnit]:
    if doctrine.selection_mode != "force_mono":
        return pool
    anchor = pick_anchor_element(forced, pool)
    if not anchor:
        return pool
    # best-effort: a short anchor pool still wins over mixing elements
    return [u for u in pool if u.element == anchor]


def prepare_pool(
    units: Sequence[TaggedUnit],
    excluded: Set[str],
    pool_size: int,
    forced: Sequence[TaggedUnit],
    size: int,
    doctrine: Doctrine,
    preset_key: str,
) -> List[TaggedUnit]:
    """
    Candidate pool for one team. Under force_mono the anchor element is
    picked over every free unit and the pool is cut to it before truncation,
    so the preset ladder only ever counts units that can actually be placed.
    """
    free = apply_mono_filter([u for u in units if u.id not in excluded], forced, doctrine)
    pool = top_candidates(free, excluded, pool_size)
    return apply_preset_filter(pool, doctrine.preset(preset_key), size - len(forced))


# ============================================================
# Fill
# ============================================================
def _better(score: float, unit: TaggedUnit, best_score: float, best: Optional[TaggedUnit]) -> bool:
    if best is None or score > best_score:
        return True
    if score < best_score:
        return False
    if unit.base != best.base:
        return unit.base > best.base
    return unit.id < best.id


def greedy_fill(
    pool: Sequence[TaggedUnit],
    forced: Sequence[TaggedUnit],
    size: int,
    doctrine: Doctrine,
    preset_key: str = "",
    team_kind: str = TEAM_STORY,
) -> List[TaggedUnit]:
    """Grow the forced prefix one unit at a time, taking the best team_score gain."""
    team = list(forced)[:size]
    chosen = {u.id for u in team}
    lookahead = max(1, int(doctrine.optimizer_search.greedy_lookahead))

    while len(team) < size:
        best: Optional[TaggedUnit] = None
        best_score = float("-inf")
        seen = 0
        for u in pool:
            if u.id in chosen:
                continue
            if seen >= lookahead:
                break
            seen += 1
            score = team_score(team + [u], doctrine, preset_key, team_kind)
            if _better(score, u, best_score, best):
                best, best_score = u, score
        if best is None:
            break
        team.append(best)
        chosen.add(best.id)
    return team


def beam_fill(
    pool: Sequence[TaggedUnit],
    forced: Sequence[TaggedUnit],
    size: int,
    doctrine: Doctrine,
    preset_key: str = "",
    team_kind: str = TEAM_STORY,
) -> List[TaggedUnit]:
    """Keep the best beam_width_story partial teams per step instead of one."""
    start = list(forced)[:size]
    width = max(1, int(doctrine.optimizer_search.beam_width_story))
    lookahead = max(1, int(doctrine.optimizer_search.greedy_lookahead))

    beam: List[Tuple[float, List[TaggedUnit]]] = [(team_score(start, doctrine, preset_key, team_kind), start)]
    while len(beam[0][1]) < size:
        expanded: Dict[Tuple[str, ...], Tuple[float, List[TaggedUnit]]] = {}
        for _, team in beam:
            chosen = {u.id for u in team}
            seen = 0
            for u in pool:
                if u.id in chosen:
                    continue
                if seen >= lookahead:
                    break
                seen += 1
                cand = team + [u]
                key = tuple(sorted(x.id for x in cand))
                if key in expanded:
                    continue
                expanded[key] = (team_score(cand, doctrine, preset_key, team_kind), cand)
        if not expanded:
            break
        ranked = sorted(expanded.items(), key=lambda kv: (-kv[1][0], kv[0]))
        beam = [v for _, v in ranked[:width]]
    return beam[0][1]


def fill_team(
    pool: Sequence[TaggedUnit],
    forced: Sequence[TaggedUnit],
    size: int,
    doctrine: Doctrine,
    preset_key: str = "",
    team_kind: str = TEAM_STORY,
    strategy: str = "greedy",
) -> List[TaggedUnit]:
    if strategy == "beam":
        return beam_fill(pool, forced, size, doctrine, preset_key, team_kind)
    return greedy_fill(pool, forced, size, doctrine, preset_key, team_kind)


# ============================================================
# Role split + slot placement
# ============================================================
def front_score(u: TaggedUnit, doctrine: Doctrine) -> float:
    fb = doctrine.front_vs_back
    st = u.record.stats
    control = 1.0 if has_any(u.tags, CONTROL_TAGS) else 0.0
    return st.spd * fb.front_spd_weight + control * fb.front_control_bonus + st.hp * fb.front_hp_weight


def back_score(u: TaggedUnit, doctrine: Doctrine) -> float:
    fb = doctrine.front_vs_back
    sustain = 1.0 if has_any(u.tags, SUSTAIN_TAGS) else 0.0
    return u.record.stats.atk * fb.back_atk_weight + sustain * fb.back_sustain_bonus


def split_story(
    team: Sequence[TaggedUnit],
    forced: ForcedSlots,
    doctrine: Doctrine,
) -> Tuple[List[str], List[str]]:
    """Forced units keep their slot; free main slots take the best by front, free back slots the best of the rest by back."""
    main = [""] * STORY_MAIN_SLOTS
    back = [""] * STORY_BACK_SLOTS
    for i, u in forced.story_main.items():
        main[i] = u.id
    for i, u in forced.story_back.items():
        back[i] = u.id

    forced_ids = {u.id for u in forced.story_units()}
    free = [u for u in team if u.id not in forced_ids]
    free_main = [i for i in range(STORY_MAIN_SLOTS) if not main[i]]
    free_back = [i for i in range(STORY_BACK_SLOTS) if not back[i]]

    by_front = sorted(free, key=lambda u: (-front_score(u, doctrine), u.id))
    to_main = by_front[: len(free_main)]
    rest = sorted(by_front[len(free_main):], key=lambda u: (-back_score(u, doctrine), u.id))
    for slot, u in zip(free_main, to_main):
        main[slot] = u.id
    for slot, u in zip(free_back, rest):
        back[slot] = u.id
    return main, back


def place_platoon(team: Sequence[TaggedUnit], forced_slots: Dict[int, TaggedUnit]) -> List[str]:
    out = [""] * PLATOON_SIZE
    for i, u in forced_slots.items():
        out[i] = u.id
    forced_ids = {u.id for u in forced_slots.values()}
    free = [i for i in range(PLATOON_SIZE) if not out[i]]
    for slot, u in zip(free, [u for u in team if u.id not in forced_ids]):
        out[slot] = u.id
    return out


# ============================================================
# Story / platoons
# ============================================================
def build_story(
    units: Sequence[TaggedUnit],
    forced: ForcedSlots,
    doctrine: Doctrine,
    preset_key: str = "",
) -> Tuple[List[str], List[str], Set[str]]:
    """Returns (main ids, back ids, consumed ids)."""
    story_forced = forced.story_units()
    # every forced id is off limits for free picks, including platoon locks
    excluded = forced.all_ids()
    search = doctrine.optimizer_search
    pool = prepare_pool(units, excluded, search.candidate_pool_size, story_forced, STORY_SIZE, doctrine, preset_key)
    team = fill_team(pool, story_forced, STORY_SIZE, doctrine, preset_key, TEAM_STORY, search.story_strategy)
    main, back = split_story(team, forced, doctrine)
    used = {uid for uid in main + back if uid}
    return main, back, used


def build_platoons(
    units: Sequence[TaggedUnit],
    forced: ForcedSlots,
    consumed: Set[str],
    doctrine: Doctrine,
    preset_key: str = "",
) -> List[List[str]]:
    consumed = set(consumed) | forced.all_ids()
    pool_size = doctrine.optimizer_search.platoon_candidate_pool_size
    platoons: List[List[str]] = []
    for p in range(PLATOON_COUNT):
        p_forced = forced.platoon_units(p)
        pool = prepare_pool(units, consumed, pool_size, p_forced, PLATOON_SIZE, doctrine, preset_key)
        team = greedy_fill(pool, p_forced, PLATOON_SIZE, doctrine, preset_key, TEAM_PLATOON)
        ids = place_platoon(team, forced.platoons[p])
        consumed.update(uid for uid in ids if uid)
        platoons.append(ids)
    return platoons
