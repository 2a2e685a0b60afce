from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from etto.domain.models import UnitRecord, normalize_units

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[1] / "assets" / "characters.json"
FILTER_ALL = "all"


class CatalogError(ValueError):
    """The catalog file exists but does not hold a unit list."""


def parse_catalog(raw: Any) -> List[UnitRecord]:
    """Accepts a JSON array or an object with a "characters" array."""
    if isinstance(raw, list):
        items = raw
    elif isinstance(raw, dict) and isinstance(raw.get("characters"), list):
        items = raw["characters"]
    else:
        raise CatalogError("characters.json must be an array or an object with { characters: [] }")
    return normalize_units(items)


class Catalog:
    """
    Offline unit catalog:
      etto/assets/characters.json

    Schema (array, or {"characters": [...]}):
    [
      {
        "id": "zeus_4", "name": "Zeus", "title": "Thunder God",
        "element": "storm", "rarity": "SSR",
        "stats": {"atk": 1520, "hp": 11800, "spd": 470, "cost": 32},
        "derivedTags": ["elem_storm", "stun_apply", "tu_manip"],
        "leaderSkill": {"name": "Storm Lord", "description": "Storm allies ATK +20%"},
        "image": "https://..."
      },
      ...
    ]
    """
    def __init__(self, db_path: str | Path = DEFAULT_CATALOG_PATH):
        self.db_path = Path(db_path)
        self._units: List[UnitRecord] = []
        self._by_id: Dict[str, UnitRecord] = {}

    def load(self) -> None:
        self._units = []
        self._by_id = {}
        if not self.db_path.exists():
            return
        try:
            raw = json.loads(self.db_path.read_text(encoding="utf-8", errors="replace"))
        except json.JSONDecodeError as exc:
            raise CatalogError(f"{self.db_path}: {exc}") from exc
        self._units = parse_catalog(raw)
        self._by_id = {u.id: u for u in self._units}

    def __len__(self) -> int:
        return len(self._units)

    @property
    def units(self) -> List[UnitRecord]:
        return list(self._units)

    def get(self, unit_id: str) -> Optional[UnitRecord]:
        return self._by_id.get(str(unit_id))

    def units_for(self, ids) -> List[UnitRecord]:
        """Records for *ids* in catalog order; unknown ids are skipped."""
        wanted = {str(i) for i in ids}
        return [u for u in self._units if u.id in wanted]

    def display_name(self, unit_id: str) -> str:
        u = self.get(unit_id)
        if u is None:
            return str(unit_id)
        return f"{u.name} - {u.title}" if u.title else (u.name or u.id)

    def elements(self) -> List[str]:
        return sorted({u.element for u in self._units if u.element})

    def rarities(self) -> List[str]:
        return sorted({u.rarity for u in self._units if u.rarity})

    def filter(self, query: str = "", element: str = FILTER_ALL, rarity: str = FILTER_ALL) -> List[UnitRecord]:
        """Roster filter: free text over name/title/element/rarity plus exact element/rarity."""
        return filter_units(self._units, query, element, rarity)


def filter_units(
    units: List[UnitRecord],
    query: str = "",
    element: str = FILTER_ALL,
    rarity: str = FILTER_ALL,
) -> List[UnitRecord]:
    q = (query or "").strip().lower()
    element = (element or FILTER_ALL).strip().lower()
    rarity = (rarity or FILTER_ALL).strip()
    out: List[UnitRecord] = []
    for u in units:
        hay = f"{u.name} {u.title} {u.element} {u.rarity}".lower()
        if q and q not in hay:
            continue
        if element != FILTER_ALL and u.element != element:
            continue
        if rarity.lower() != FILTER_ALL and u.rarity != rarity:
            continue
        out.append(u)
    return out
