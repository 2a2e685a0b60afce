"""Optimizer doctrine: every tunable weight, threshold and policy for one run."""
from __future__ import annotations

import copy
import json
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping

from etto.domain.presets import DEFAULT_PRESETS, PresetDef

SELECTION_MODES = ("auto", "force_mono", "force_rainbow")
STORY_STRATEGIES = ("greedy", "beam")


def _ro(d: Dict[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(d))


# ============================================================
# Sections
# ============================================================
@dataclass(frozen=True)
class ScoringModel:
    atk_weight: float = 0.42
    spd_weight: float = 0.28
    hp_weight: float = 0.20
    efficiency_atk_per_cost_weight: float = 0.10
    # must dominate stat variance so preset units beat raw stat leaders
    preset_affinity_multiplier: float = 1500.0
    base_divisor: float = 5000.0
    pair_synergy_weight: float = 0.35
    element_strategy_weight: float = 0.4


@dataclass(frozen=True)
class SynergyModel:
    engine_pair: float = 3.0
    engine_partial: float = 0.75
    engine_support_divisor: float = 4.0
    engine_support_paired: float = 2.0
    engine_support_unpaired: float = 1.0
    engine_anti: float = 3.5
    half_built_threshold: int = 3
    half_built_penalty: float = 2.0
    coverage: Mapping[str, float] = field(default_factory=lambda: _ro({
        "heal": 1.0,
        "purify": 1.2,
        "revive": 0.8,
        "damage_reduction": 0.9,
        "tu_manip": 0.7,
        "barrier": 0.6,
        "guard": 0.6,
        "dispel": 0.5,
        "stealth": 0.35,
        "evasion": 0.35,
    }))
    combo: Mapping[str, float] = field(default_factory=lambda: _ro({
        "mitigation_sustain": 0.8,
        "guard_barrier": 0.4,
        "tempo_control": 0.6,
    }))
    redundancy_threshold: int = 2
    redundancy: Mapping[str, float] = field(default_factory=lambda: _ro({
        "heal": 0.9,
        "purify": 1.1,
        "damage_reduction": 0.7,
        "barrier": 0.5,
        "guard": 0.6,
    }))
    # team cohesion = unit affinity weights (3/1/4) * scale -> 2.0 / 0.67 / 2.67 per member
    cohesion_scale: float = 2.0 / 3.0


@dataclass(frozen=True)
class MonoVsRainbow:
    selection_mode: str = "auto"
    mono_threshold: Mapping[str, float] = field(default_factory=lambda: _ro({"story": 0.75, "platoon": 0.8}))
    rainbow_min_distinct: int = 4
    mono_violation_penalty: float = 1000.0
    rainbow_shortfall_penalty: float = 5.0
    auto_mono_bonus: float = 1.0
    auto_rainbow_bonus: float = 1.0


@dataclass(frozen=True)
class OptimizerSearch:
    candidate_pool_size: int = 80
    # platoons draw from this cut instead of candidate_pool_size
    platoon_candidate_pool_size: int = 200
    greedy_lookahead: int = 80
    story_strategy: str = "greedy"
    beam_width_story: int = 120


@dataclass(frozen=True)
class FrontVsBack:
    front_spd_weight: float = 0.6
    front_control_bonus: float = 2000.0
    front_hp_weight: float = 0.1
    back_atk_weight: float = 0.6
    back_sustain_bonus: float = 2000.0


_SECTIONS = {
    "scoring_model": ScoringModel,
    "synergy": SynergyModel,
    "mono_vs_rainbow": MonoVsRainbow,
    "optimizer_search": OptimizerSearch,
    "front_vs_back": FrontVsBack,
}


# ============================================================
# Doctrine
# ============================================================
@dataclass(frozen=True)
class Doctrine:
    """
    Immutable configuration snapshot for one optimizer run.

    Build it with Doctrine.default(), Doctrine.merged(overrides) or
    Doctrine.load(path); it is passed explicitly to every scoring and
    search function and never changed while a run is in progress.
    """
    scoring_model: ScoringModel = field(default_factory=ScoringModel)
    synergy: SynergyModel = field(default_factory=SynergyModel)
    mono_vs_rainbow: MonoVsRainbow = field(default_factory=MonoVsRainbow)
    optimizer_search: OptimizerSearch = field(default_factory=OptimizerSearch)
    front_vs_back: FrontVsBack = field(default_factory=FrontVsBack)
    presets: Mapping[str, PresetDef] = field(default_factory=lambda: _ro(DEFAULT_PRESETS))

    @staticmethod
    def default() -> "Doctrine":
        return Doctrine()

    # -----------------------------
    # dict round trip
    # -----------------------------
    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key in _SECTIONS:
            section = getattr(self, key)
            sec_out: Dict[str, Any] = {}
            for f in fields(section):
                value = getattr(section, f.name)
                sec_out[f.name] = dict(value) if isinstance(value, Mapping) else value
            out[key] = sec_out
        out["presets"] = {k: p.to_dict() for k, p in self.presets.items()}
        return out

    @staticmethod
    def from_dict(raw: Any) -> "Doctrine":
        raw = _snake_keys(raw) if isinstance(raw, dict) else {}
        kwargs: Dict[str, Any] = {}
        for key, cls in _SECTIONS.items():
            kwargs[key] = _section_from_dict(cls, raw.get(key))

        presets_raw = raw.get("presets")
        if isinstance(presets_raw, dict):
            presets: Dict[str, PresetDef] = {}
            for k, v in presets_raw.items():
                pdef = PresetDef.from_dict(v)
                if pdef is not None:
                    presets[str(k)] = pdef
            kwargs["presets"] = _ro(presets)
        return Doctrine(**kwargs)

    # -----------------------------
    # overrides
    # -----------------------------
    def merged(self, overrides: Any) -> "Doctrine":
        """New doctrine: this one deep-merged with *overrides* (camelCase keys allowed)."""
        if not isinstance(overrides, dict) or not overrides:
            return self
        return Doctrine.from_dict(deep_merge(self.to_dict(), _snake_keys(overrides)))

    @staticmethod
    def load(path: str | Path) -> "Doctrine":
        """Defaults merged with a JSON override file; missing/broken file -> defaults."""
        p = Path(path)
        if not p.exists():
            return Doctrine()
        try:
            raw = json.loads(p.read_text(encoding="utf-8", errors="replace"))
        except Exception:
            return Doctrine()
        return Doctrine().merged(raw if isinstance(raw, dict) else {})

    def save(self, path: str | Path) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")

    # -----------------------------
    # convenience
    # -----------------------------
    @property
    def selection_mode(self) -> str:
        return self.mono_vs_rainbow.selection_mode

    def preset(self, key: str) -> PresetDef | None:
        if not key:
            return None
        return self.presets.get(key)


# ============================================================
# Helpers
# ============================================================
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", str(key)).lower()


def _snake_keys(raw: Any) -> Any:
    """Recursively convert dict keys from camelCase to snake_case."""
    if isinstance(raw, dict):
        return {_snake(k): _snake_keys(v) for k, v in raw.items()}
    return raw


def deep_merge(base: Dict[str, Any], overrides: Any) -> Dict[str, Any]:
    """
    Merge *overrides* into a copy of *base*. Nested dicts merge recursively;
    every other value (lists included) replaces the base value.
    """
    out = copy.deepcopy(base) if isinstance(base, dict) else {}
    if not isinstance(overrides, dict):
        return out
    for k, v in overrides.items():
        if isinstance(v, dict):
            current = out.get(k)
            out[k] = deep_merge(current if isinstance(current, dict) else {}, v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def _coerce(value: Any, default: Any) -> Any:
    try:
        if isinstance(default, bool):
            return bool(value)
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
        if isinstance(default, str):
            return str(value).strip().lower() or default
    except Exception:
        return default
    return default


def _section_from_dict(cls, raw: Any):
    base = cls()
    if not isinstance(raw, dict):
        return base
    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in raw:
            continue
        default = getattr(base, f.name)
        value = raw[f.name]
        if isinstance(default, Mapping):
            table = dict(default)
            if isinstance(value, dict):
                for k, v in value.items():
                    try:
                        table[str(k)] = float(v)
                    except Exception:
                        continue
            kwargs[f.name] = _ro(table)
        else:
            kwargs[f.name] = _coerce(value, default)

    section = cls(**kwargs)
    if cls is MonoVsRainbow and section.selection_mode not in SELECTION_MODES:
        section = replace(section, selection_mode="auto")
    if cls is OptimizerSearch and section.story_strategy not in STORY_STRATEGIES:
        section = replace(section, story_strategy="greedy")
    return section
