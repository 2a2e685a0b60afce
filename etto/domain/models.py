from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

STORY_MAIN_SLOTS = 5
STORY_BACK_SLOTS = 3
STORY_SIZE = STORY_MAIN_SLOTS + STORY_BACK_SLOTS
PLATOON_COUNT = 20
PLATOON_SIZE = 5

NO_LEADER_NAME = "No Leader Skill"
NO_LEADER_DESCRIPTION = "This unit does not provide a leader skill."


@dataclass(frozen=True)
class UnitStats:
    atk: float = 0.0
    hp: float = 0.0
    spd: float = 0.0
    cost: float = 1.0


@dataclass(frozen=True)
class LeaderSkill:
    name: str
    description: str
    present: bool = True        # False -> fallback text, unit has no leader skill


@dataclass(frozen=True)
class UnitRecord:
    id: str
    stats: UnitStats = field(default_factory=UnitStats)
    element: str = ""                   # lowercased, may be empty
    raw_tags: Tuple[str, ...] = ()
    name: str = ""
    title: str = ""
    rarity: str = ""
    image: str = ""
    leader_skill: Optional[LeaderSkill] = None


def _safe_float(x: Any, default: float = 0.0) -> float:
    try:
        if x is None or isinstance(x, bool):
            return default
        if isinstance(x, str):
            txt = x.strip().replace(",", "")
            if not txt:
                return default
            return float(txt)
        return float(x)
    except Exception:
        return default


def _is_bad_text(s: str) -> bool:
    return not s or s.lower() in ("none", "null")


def normalize_leader_skill(raw: Any) -> LeaderSkill:
    """Leader skills are never null: missing parts get the fallback text."""
    if isinstance(raw, str):
        txt = raw.strip()
        if _is_bad_text(txt):
            return LeaderSkill(NO_LEADER_NAME, NO_LEADER_DESCRIPTION, present=False)
        return LeaderSkill("Leader Skill", txt)
    if not isinstance(raw, dict):
        return LeaderSkill(NO_LEADER_NAME, NO_LEADER_DESCRIPTION, present=False)
    name = str(raw.get("name") or "").strip()
    desc = str(raw.get("description") or "").strip()
    if _is_bad_text(name) and _is_bad_text(desc):
        return LeaderSkill(NO_LEADER_NAME, NO_LEADER_DESCRIPTION, present=False)
    return LeaderSkill(
        name="Leader Skill" if _is_bad_text(name) else name,
        description="" if _is_bad_text(desc) else desc,
    )


def _stat(raw: Dict[str, Any], nested: Dict[str, Any], key: str, default: float) -> float:
    value = nested.get(key)
    if value is None:
        value = raw.get(key)
    return _safe_float(value, default)


def _raw_tag_list(raw: Dict[str, Any]) -> List[Any]:
    derived = raw.get("derivedTags")
    if isinstance(derived, list) and derived:
        return derived
    tags = raw.get("tags")
    if isinstance(tags, list):
        return tags
    return []


def normalize_unit(raw: Any) -> Optional[UnitRecord]:
    """
    Turn one catalog object into the canonical UnitRecord.

    Stats may live at the top level or under "stats"; tags come from
    "derivedTags" (if non-empty) and fall back to "tags". Returns None for
    objects without an id.
    """
    if not isinstance(raw, dict):
        return None
    uid = raw.get("id")
    if uid is None or isinstance(uid, bool):
        return None
    uid = str(uid).strip()
    if not uid:
        return None

    nested = raw.get("stats") if isinstance(raw.get("stats"), dict) else {}
    cost = _stat(raw, nested, "cost", 1.0)
    stats = UnitStats(
        atk=max(0.0, _stat(raw, nested, "atk", 0.0)),
        hp=max(0.0, _stat(raw, nested, "hp", 0.0)),
        spd=max(0.0, _stat(raw, nested, "spd", 0.0)),
        cost=cost if cost > 0 else 1.0,
    )

    tags: List[str] = []
    for t in _raw_tag_list(raw):
        if not t:
            continue
        tags.append(str(t))

    return UnitRecord(
        id=uid,
        stats=stats,
        element=str(raw.get("element") or "").strip().lower(),
        raw_tags=tuple(tags),
        name=str(raw.get("name") or "").strip(),
        title=str(raw.get("title") or "").strip(),
        rarity=str(raw.get("rarity") or "").strip(),
        image=str(raw.get("image") or raw.get("icon") or raw.get("portrait") or "").strip(),
        leader_skill=normalize_leader_skill(raw.get("leaderSkill", raw.get("leader_skill"))),
    )


def normalize_units(raws: Iterable[Any]) -> List[UnitRecord]:
    """Normalize a catalog list, keeping the first record of every id."""
    seen = set()
    out: List[UnitRecord] = []
    for raw in raws or []:
        if isinstance(raw, UnitRecord):
            rec: Optional[UnitRecord] = raw
        else:
            rec = normalize_unit(raw)
        if rec is None or rec.id in seen:
            continue
        seen.add(rec.id)
        out.append(rec)
    return out


# ============================================================
# Slot layout (persisted output shape) and slot locks
# ============================================================
def _fixed(values: Any, size: int, cast) -> list:
    items = list(values) if isinstance(values, (list, tuple)) else []
    out = []
    for i in range(size):
        v = items[i] if i < len(items) else None
        out.append(cast(v))
    return out


def _slot_id(v: Any) -> str:
    if v is None or isinstance(v, bool):
        return ""
    return str(v).strip()


def _slot_lock(v: Any) -> bool:
    return bool(v)


@dataclass
class SlotLayout:
    story_main: List[str] = field(default_factory=lambda: [""] * STORY_MAIN_SLOTS)
    story_back: List[str] = field(default_factory=lambda: [""] * STORY_BACK_SLOTS)
    platoons: List[List[str]] = field(
        default_factory=lambda: [[""] * PLATOON_SIZE for _ in range(PLATOON_COUNT)]
    )

    @staticmethod
    def empty() -> "SlotLayout":
        return SlotLayout()

    @staticmethod
    def from_dict(raw: Any) -> "SlotLayout":
        """Accepts storyMain/storyBack/platoons (or snake_case); pads and truncates."""
        if not isinstance(raw, dict):
            return SlotLayout()
        main = raw.get("storyMain", raw.get("story_main"))
        back = raw.get("storyBack", raw.get("story_back"))
        platoons_raw = raw.get("platoons")
        platoons_list = list(platoons_raw) if isinstance(platoons_raw, (list, tuple)) else []
        platoons: List[List[str]] = []
        for p in range(PLATOON_COUNT):
            team = platoons_list[p] if p < len(platoons_list) else []
            if isinstance(team, dict):
                team = team.get("units") or []
            platoons.append(_fixed(team, PLATOON_SIZE, _slot_id))
        return SlotLayout(
            story_main=_fixed(main, STORY_MAIN_SLOTS, _slot_id),
            story_back=_fixed(back, STORY_BACK_SLOTS, _slot_id),
            platoons=platoons,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "storyMain": list(self.story_main),
            "storyBack": list(self.story_back),
            "platoons": [list(team) for team in self.platoons],
        }

    def placed_ids(self) -> List[str]:
        out = [uid for uid in self.story_main + self.story_back if uid]
        for team in self.platoons:
            out.extend(uid for uid in team if uid)
        return out


@dataclass
class SlotLocks:
    story_main: List[bool] = field(default_factory=lambda: [False] * STORY_MAIN_SLOTS)
    story_back: List[bool] = field(default_factory=lambda: [False] * STORY_BACK_SLOTS)
    platoons: List[List[bool]] = field(
        default_factory=lambda: [[False] * PLATOON_SIZE for _ in range(PLATOON_COUNT)]
    )

    @staticmethod
    def from_dict(raw: Any) -> "SlotLocks":
        if not isinstance(raw, dict):
            return SlotLocks()
        platoons_raw = raw.get("platoons")
        platoons_list = list(platoons_raw) if isinstance(platoons_raw, (list, tuple)) else []
        return SlotLocks(
            story_main=_fixed(raw.get("storyMain", raw.get("story_main")), STORY_MAIN_SLOTS, _slot_lock),
            story_back=_fixed(raw.get("storyBack", raw.get("story_back")), STORY_BACK_SLOTS, _slot_lock),
            platoons=[
                _fixed(platoons_list[p] if p < len(platoons_list) else [], PLATOON_SIZE, _slot_lock)
                for p in range(PLATOON_COUNT)
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "storyMain": list(self.story_main),
            "storyBack": list(self.story_back),
            "platoons": [list(team) for team in self.platoons],
        }
