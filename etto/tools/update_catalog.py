from __future__ import annotations

import argparse
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from tqdm import tqdm

from etto.domain.catalog import DEFAULT_CATALOG_PATH, CatalogError
from etto.domain.models import UnitRecord, normalize_unit


def _http_get_json(session: requests.Session, url: str, params: Optional[dict] = None, retries: int = 5) -> Any:
    last_err: Optional[Exception] = None
    for i in range(retries):
        try:
            r = session.get(url, params=params, timeout=30)
            r.raise_for_status()
            return r.json()
        except Exception as e:
            last_err = e
            time.sleep(0.6 * (i + 1))
    raise RuntimeError(f"GET json failed: {url} ({last_err})")


def fetch_all_characters(session: requests.Session, url: str, retries: int = 5) -> List[Any]:
    """
    Pulls the raw character list. Accepted payloads:
      [ ... ]
      {"characters": [ ... ]}
      {"results": [ ... ], "next": "<url or null>"}   (paginated)
    """
    out: List[Any] = []
    next_url: Optional[str] = url
    while next_url:
        payload = _http_get_json(session, next_url, retries=retries)
        if isinstance(payload, list):
            out.extend(payload)
            break
        if not isinstance(payload, dict):
            raise CatalogError("Unexpected catalog payload (neither list nor object).")
        items = payload.get("characters")
        if not isinstance(items, list):
            items = payload.get("results")
        if not isinstance(items, list):
            raise CatalogError("Unexpected catalog payload schema (no characters/results list).")
        out.extend(items)
        nxt = payload.get("next")
        next_url = nxt if isinstance(nxt, str) and nxt else None
    return out


def unit_to_dict(u: UnitRecord) -> Dict[str, Any]:
    """Canonical catalog row written to characters.json."""
    ls = u.leader_skill
    return {
        "id": u.id,
        "name": u.name,
        "title": u.title,
        "element": u.element,
        "rarity": u.rarity,
        "image": u.image,
        "stats": {"atk": u.stats.atk, "hp": u.stats.hp, "spd": u.stats.spd, "cost": u.stats.cost},
        "derivedTags": list(u.raw_tags),
        "leaderSkill": {"name": ls.name, "description": ls.description} if ls else None,
    }


def update_catalog(url: str, out_path: Path = DEFAULT_CATALOG_PATH, retries: int = 5) -> int:
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": "ETTO-Catalog-Updater/1.0",
            "Accept": "application/json,text/plain,*/*",
        }
    )

    print(f"Fetching characters from {url}")
    raw_items = fetch_all_characters(session, url, retries=retries)
    print(f"Got {len(raw_items)} raw rows")

    rows_out: List[Dict[str, Any]] = []
    seen = set()
    skipped = 0
    for raw in tqdm(raw_items, desc="Normalizing", unit="unit"):
        rec = normalize_unit(raw)
        if rec is None or rec.id in seen:
            skipped += 1
            continue
        seen.add(rec.id)
        rows_out.append(unit_to_dict(rec))

    payload = {
        "version": time.strftime("%Y-%m-%d"),
        "source": url,
        "characters": rows_out,
    }
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    print(f"Wrote catalog: {out_path} ({len(rows_out)} units)")
    if skipped:
        print(f"Skipped {skipped} rows without id or with a duplicate id.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Refresh the offline unit catalog (characters.json).")
    ap.add_argument("--url", required=True, help="URL of the character list JSON.")
    ap.add_argument("--out", default=str(DEFAULT_CATALOG_PATH), help="Output path.")
    ap.add_argument("--retries", type=int, default=5)
    args = ap.parse_args(argv)
    return update_catalog(args.url, Path(args.out), retries=max(1, int(args.retries)))


if __name__ == "__main__":
    raise SystemExit(main())
