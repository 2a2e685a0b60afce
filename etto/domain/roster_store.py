from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Set


@dataclass
class OwnedStore:
    """Set of owned unit ids, persisted as a sorted JSON list."""
    owned: Set[str] = field(default_factory=set)

    @staticmethod
    def load(path: str | Path) -> "OwnedStore":
        p = Path(path)
        if not p.exists():
            return OwnedStore()
        try:
            raw = json.loads(p.read_text(encoding="utf-8", errors="replace"))
        except Exception:
            return OwnedStore()
        if isinstance(raw, dict):
            raw = raw.get("owned")
        if not isinstance(raw, list):
            return OwnedStore()

        store = OwnedStore()
        for uid in raw:
            if uid is None or isinstance(uid, (bool, dict, list)):
                continue
            txt = str(uid).strip()
            if txt:
                store.owned.add(txt)
        return store

    def save(self, path: str | Path) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(sorted(self.owned), ensure_ascii=False, indent=2), encoding="utf-8")

    def is_owned(self, unit_id: str) -> bool:
        return str(unit_id) in self.owned

    def set_owned(self, unit_id: str, owned: bool) -> None:
        uid = str(unit_id).strip()
        if not uid:
            return
        if owned:
            self.owned.add(uid)
        else:
            self.owned.discard(uid)

    def toggle(self, unit_id: str) -> bool:
        uid = str(unit_id)
        self.set_owned(uid, uid not in self.owned)
        return uid in self.owned
