from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List

from etto.domain.models import SlotLayout, SlotLocks

MODE_STORY = "story"
MODE_PLATOONS = "platoons"


@dataclass
class LayoutStore:
    """Persisted slot layout, slot locks and the team mode shown in the editor."""
    layout: SlotLayout = field(default_factory=SlotLayout)
    locks: SlotLocks = field(default_factory=SlotLocks)
    mode: str = MODE_STORY

    @staticmethod
    def load(path: str | Path) -> "LayoutStore":
        p = Path(path)
        if not p.exists():
            return LayoutStore()
        try:
            raw = json.loads(p.read_text(encoding="utf-8", errors="replace"))
        except Exception:
            return LayoutStore()
        if not isinstance(raw, dict):
            return LayoutStore()
        return LayoutStore(
            layout=SlotLayout.from_dict(raw),
            locks=SlotLocks.from_dict(raw.get("locks")),
            mode=MODE_PLATOONS if raw.get("mode") == MODE_PLATOONS else MODE_STORY,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = self.layout.to_dict()
        out["mode"] = self.mode
        out["locks"] = self.locks.to_dict()
        return out

    def save(self, path: str | Path) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")

    def set_mode(self, mode: str) -> None:
        self.mode = MODE_PLATOONS if mode == MODE_PLATOONS else MODE_STORY

    def clear(self, keep_locked: bool = True) -> None:
        """Empty every slot; locked slots survive when *keep_locked*."""
        lay, lk = self.layout, self.locks
        for i in range(len(lay.story_main)):
            if not (keep_locked and lk.story_main[i]):
                lay.story_main[i] = ""
        for i in range(len(lay.story_back)):
            if not (keep_locked and lk.story_back[i]):
                lay.story_back[i] = ""
        for p, team in enumerate(lay.platoons):
            for i in range(len(team)):
                if not (keep_locked and lk.platoons[p][i]):
                    team[i] = ""

    def drop_unowned(self, owned: Iterable[str]) -> int:
        """Clear slots holding ids that are no longer owned; returns how many."""
        owned_set = set(owned)
        cleared = 0
        lay = self.layout
        for slots in [lay.story_main, lay.story_back] + lay.platoons:
            for i, uid in enumerate(slots):
                if uid and uid not in owned_set:
                    slots[i] = ""
                    cleared += 1
        return cleared


def storage_ids(owned_ids: Iterable[str], layout: SlotLayout) -> List[str]:
    """Bench view: owned ids that are not placed anywhere, sorted."""
    placed = set(layout.placed_ids())
    return sorted(uid for uid in set(owned_ids) if uid not in placed)


def apply_result(store: LayoutStore, result) -> None:
    """Write an OptimizeResult (or any object with to_layout()) into the stored layout."""
    store.layout = result.to_layout()
