from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from etto.domain.doctrine import Doctrine
from etto.domain.models import (
    PLATOON_COUNT,
    PLATOON_SIZE,
    STORY_BACK_SLOTS,
    STORY_MAIN_SLOTS,
    SlotLayout,
    SlotLocks,
    UnitRecord,
    normalize_units,
)
from etto.domain.presets import PRESET_ALIASES, preset_affinity
from etto.engine.allocator import build_platoons, build_story, resolve_forced
from etto.engine.scoring import TaggedUnit, tag_units
from etto.engine.tags import canonicalize, expand, has_any
from etto.i18n import tr

PRESET_MODES = ("off", "auto")

# forced-unit bias applied during auto preset selection
FORCED_STRONG_BONUS = 2
FORCED_TOTAL_BONUS = 20
FORCED_EXCLUDE_PENALTY = 20


@dataclass
class OptimizeRequest:
    preset_tag: str = ""
    preset_mode: str = "off"           # off | auto
    doctrine_overrides: Dict[str, Any] = field(default_factory=dict)
    current_layout: Optional[SlotLayout] = None
    slot_locks: Optional[SlotLocks] = None

    @staticmethod
    def from_dict(raw: Any) -> "OptimizeRequest":
        """Accepts the camelCase options object ({presetTag, presetMode, ...})."""
        if not isinstance(raw, dict):
            return OptimizeRequest()
        layout = raw.get("currentLayout", raw.get("current_layout"))
        locks = raw.get("slotLocks", raw.get("slot_locks"))
        overrides = raw.get("doctrineOverrides", raw.get("doctrine_overrides"))
        return OptimizeRequest(
            preset_tag=str(raw.get("presetTag", raw.get("preset_tag")) or ""),
            preset_mode=str(raw.get("presetMode", raw.get("preset_mode")) or "off"),
            doctrine_overrides=overrides if isinstance(overrides, dict) else {},
            current_layout=layout if isinstance(layout, SlotLayout) else (
                SlotLayout.from_dict(layout) if isinstance(layout, dict) else None
            ),
            slot_locks=locks if isinstance(locks, SlotLocks) else (
                SlotLocks.from_dict(locks) if isinstance(locks, dict) else None
            ),
        )


@dataclass
class OptimizeResult:
    ok: bool
    message: str
    story_main: List[str] = field(default_factory=lambda: [""] * STORY_MAIN_SLOTS)
    story_back: List[str] = field(default_factory=lambda: [""] * STORY_BACK_SLOTS)
    platoons: List[List[str]] = field(
        default_factory=lambda: [[""] * PLATOON_SIZE for _ in range(PLATOON_COUNT)]
    )
    preset_key: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "story": {"main": list(self.story_main), "back": list(self.story_back)},
            "platoons": [{"units": list(team)} for team in self.platoons],
            "presetKey": self.preset_key,
        }

    def to_layout(self) -> SlotLayout:
        return SlotLayout(
            story_main=list(self.story_main),
            story_back=list(self.story_back),
            platoons=[list(team) for team in self.platoons],
        )

    def placed_count(self) -> int:
        return len(self.to_layout().placed_ids())


# ============================================================
# Preset selection
# ============================================================
def normalize_preset_key(raw: Any, doctrine: Doctrine) -> str:
    """Canonical preset key, or "" if *raw* names no known preset."""
    key = canonicalize(raw)
    key = PRESET_ALIASES.get(key, key)
    return key if key in doctrine.presets else ""


def choose_auto_preset(
    units: Sequence[TaggedUnit],
    forced: Sequence[TaggedUnit],
    doctrine: Doctrine,
) -> str:
    """
    Pick the preset the pool supports best: most units with an include tag,
    ties by summed affinity, then key. Forced units pull towards presets they
    match and away from presets they are excluded by. Returns "" when no
    preset has a single strong match.
    """
    best_key = ""
    best: Tuple[int, int] = (0, 0)
    for key in sorted(doctrine.presets):
        pdef = doctrine.presets[key]
        if not pdef.include:
            continue
        strong = 0
        total = 0
        for u in units:
            total += preset_affinity(u.tags, pdef)
            if has_any(u.tags, pdef.include):
                strong += 1
        for u in forced:
            if has_any(u.tags, pdef.include):
                strong += FORCED_STRONG_BONUS
                total += FORCED_TOTAL_BONUS
            if has_any(u.tags, pdef.exclude):
                total -= FORCED_EXCLUDE_PENALTY
        if strong <= 0:
            continue
        if not best_key or (strong, total) > best:
            best_key, best = key, (strong, total)
    return best_key


def resolve_preset_key(
    records: Sequence[UnitRecord],
    request: OptimizeRequest,
    doctrine: Doctrine,
) -> str:
    """Explicit known key wins; otherwise auto selection in auto mode; otherwise off."""
    explicit = normalize_preset_key(request.preset_tag, doctrine)
    if explicit:
        return explicit
    if canonicalize(request.preset_mode) != "auto":
        return ""

    # preset-free tagging just for the selection pass
    tagged = tag_units(records, doctrine, "")
    by_id = {u.id: u for u in tagged}
    forced = resolve_forced(by_id, request.current_layout, request.slot_locks)
    return choose_auto_preset(tagged, forced.story_units(), doctrine)


# ============================================================
# Entry point
# ============================================================
def optimize_teams(
    units: Iterable[Any],
    request: Optional[OptimizeRequest] = None,
    doctrine: Optional[Doctrine] = None,
) -> OptimizeResult:
    """
    Build the story team (5 main + 3 back) and 20 platoons from *units*.

    *units* may be raw catalog dicts or UnitRecords; they are normalized
    once here. *doctrine* defaults to Doctrine.default(); request overrides
    are merged into a fresh copy, so nothing shared is modified.
    """
    req = request or OptimizeRequest()
    base = doctrine if doctrine is not None else Doctrine.default()
    doc = base.merged(req.doctrine_overrides)

    records = normalize_units(units)
    if not records:
        explicit = normalize_preset_key(req.preset_tag, doc)
        return OptimizeResult(True, tr("opt.no_units"), preset_key=explicit)

    preset_key = resolve_preset_key(records, req, doc)
    tagged = tag_units(records, doc, preset_key)
    by_id = {u.id: u for u in tagged}
    forced = resolve_forced(by_id, req.current_layout, req.slot_locks)

    main, back, used = build_story(tagged, forced, doc, preset_key)
    platoons = build_platoons(tagged, forced, used, doc, preset_key)

    result = OptimizeResult(
        ok=True,
        message="",
        story_main=main,
        story_back=back,
        platoons=platoons,
        preset_key=preset_key,
    )
    result.message = tr(
        "opt.done",
        placed=result.placed_count(),
        total=len(records),
        preset=preset_key or tr("preset.off"),
    )
    return result


def unit_tags(record: UnitRecord) -> List[str]:
    """Sorted expanded tags of one record (roster tooltip)."""
    return sorted(expand(record.raw_tags))
