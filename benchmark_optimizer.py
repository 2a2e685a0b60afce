from __future__ import annotations

import argparse
import json
import random
import statistics
import time
from pathlib import Path
from typing import Any, Dict, List

from etto.domain.catalog import DEFAULT_CATALOG_PATH, Catalog
from etto.domain.models import UnitRecord, UnitStats
from etto.engine.tags import ELEMENTS
from etto.services.app_persistence import AppPersistence

_SYNTHETIC_TAGS = [
    "burn_apply", "burn_synergy", "poison_apply", "poison_synergy", "sleep_apply", "sleep_synergy",
    "stun_apply", "stun_synergy", "heal", "purify", "revive", "damage_reduction", "tu_manip",
    "barrier", "guard", "dispel", "stealth", "evasion", "burn_anti", "status_spread",
]


def _synthetic_pool(count: int, seed: int) -> List[UnitRecord]:
    rng = random.Random(seed)
    out: List[UnitRecord] = []
    for i in range(count):
        elem = ELEMENTS[i % len(ELEMENTS)]
        tags = [f"elem_{elem}"] + rng.sample(_SYNTHETIC_TAGS, k=rng.randint(0, 3))
        out.append(UnitRecord(
            id=f"unit_{i:04d}",
            stats=UnitStats(
                atk=float(rng.randint(600, 1800)),
                hp=float(rng.randint(8000, 14000)),
                spd=float(rng.randint(360, 500)),
                cost=float(rng.randint(10, 34)),
            ),
            element=elem,
            raw_tags=tuple(tags),
            name=f"Unit {i}",
        ))
    return out


def _owned_pool(catalog_path: Path) -> List[UnitRecord]:
    catalog = Catalog(catalog_path)
    catalog.load()
    owned = AppPersistence().load_owned()
    return catalog.units_for(owned.owned)


def _run_once(units: List[UnitRecord], preset_tag: str, preset_mode: str, selection_mode: str, strategy: str) -> Dict[str, Any]:
    from etto.engine.team_optimizer import OptimizeRequest, optimize_teams

    req = OptimizeRequest(
        preset_tag=preset_tag,
        preset_mode=preset_mode,
        doctrine_overrides={
            "monoVsRainbow": {"selectionMode": selection_mode},
            "optimizerSearch": {"storyStrategy": strategy},
        },
    )
    started = time.perf_counter()
    res = optimize_teams(units, req)
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    return {
        "elapsed_ms": round(elapsed_ms, 2),
        "ok": bool(res.ok),
        "placed": int(res.placed_count()),
        "preset_key": res.preset_key,
        "message": str(res.message),
    }


def _summarize(runs: List[Dict[str, Any]]) -> Dict[str, float]:
    ms = sorted(float(r["elapsed_ms"]) for r in runs)
    return {
        "mean_ms": round(statistics.fmean(ms), 2),
        "median_ms": round(statistics.median(ms), 2),
        "min_ms": ms[0],
        "max_ms": ms[-1],
        "placed_mean": round(statistics.fmean(int(r["placed"]) for r in runs), 2),
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark team optimizer runtime and fill rate.")
    parser.add_argument("--catalog", type=str, default=str(DEFAULT_CATALOG_PATH), help="Path to characters.json.")
    parser.add_argument("--synthetic", type=int, default=0, help="Use a synthetic pool of N units instead of the owned set.")
    parser.add_argument("--seed", type=int, default=7, help="Seed for the synthetic pool.")
    parser.add_argument("--preset", type=str, default="", help="Explicit preset key (optional).")
    parser.add_argument("--preset-mode", type=str, default="auto", choices=["off", "auto"])
    parser.add_argument("--selection-mode", type=str, default="auto", choices=["auto", "force_mono", "force_rainbow"])
    parser.add_argument("--strategy", type=str, default="greedy", choices=["greedy", "beam"], help="Story search strategy.")
    parser.add_argument("--warmup", type=int, default=1, help="Warmup runs.")
    parser.add_argument("--runs", type=int, default=3, help="Measured runs.")
    parser.add_argument("--out-json", type=str, default="", help="Optional output path for JSON summary.")
    args = parser.parse_args()

    if int(args.synthetic) > 0:
        units = _synthetic_pool(int(args.synthetic), int(args.seed))
        source = f"synthetic:{int(args.synthetic)}"
    else:
        units = _owned_pool(Path(args.catalog))
        source = str(args.catalog)
    if not units:
        print("No units to optimize. Mark units as owned or use --synthetic N.")
        return 3

    print(
        f"Benchmark source={source} units={len(units)} preset={args.preset or '-'} "
        f"preset_mode={args.preset_mode} selection={args.selection_mode} strategy={args.strategy}"
    )

    run_args = (units, args.preset, args.preset_mode, args.selection_mode, args.strategy)
    for _ in range(max(0, int(args.warmup))):
        _run_once(*run_args)

    runs: List[Dict[str, Any]] = []
    for i in range(max(1, int(args.runs))):
        row = _run_once(*run_args)
        runs.append(row)
        print(f"Run {i + 1}/{int(args.runs)}: {row['elapsed_ms']} ms | placed={row['placed']} | preset={row['preset_key'] or '-'}")

    stats = _summarize(runs)
    summary = {
        "source": source,
        "units": len(units),
        "preset": str(args.preset),
        "preset_mode": str(args.preset_mode),
        "selection_mode": str(args.selection_mode),
        "strategy": str(args.strategy),
        "runs": runs,
        "stats": stats,
    }
    print(
        f"ms mean={stats['mean_ms']} median={stats['median_ms']} "
        f"range={stats['min_ms']}..{stats['max_ms']} | placed mean={stats['placed_mean']}"
    )

    if args.out_json:
        target = Path(args.out_json)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        print(f"Summary written to {target}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
