from __future__ import annotations

import pytest

from etto.domain.doctrine import Doctrine
from etto.domain.models import UnitRecord, UnitStats, normalize_unit
from etto.domain.presets import DEFAULT_PRESETS, preset_affinity
from etto.engine.scoring import candidate_order_key, tag_units, unit_base_score
from etto.engine.tags import expand


def _rec(uid: str, atk: float = 1000, hp: float = 10000, spd: float = 400, cost: float = 20, tags=()) -> UnitRecord:
    return UnitRecord(id=uid, stats=UnitStats(atk=atk, hp=hp, spd=spd, cost=cost), raw_tags=tuple(tags))


def test_base_score_is_weighted_stat_line() -> None:
    doc = Doctrine.default()
    rec = _rec("a", atk=1000, hp=10000, spd=400, cost=20)
    expected = 1000 * 0.42 + 400 * 0.28 + 10000 * 0.20 + (1000 / 20) * 0.10
    assert unit_base_score(rec, frozenset(), doc) == pytest.approx(expected)


def test_base_score_cost_below_one_does_not_divide_by_zero() -> None:
    doc = Doctrine.default()
    rec = normalize_unit({"id": "x", "atk": 500, "cost": 0})
    assert rec is not None
    assert rec.stats.cost == 1.0
    assert unit_base_score(rec, frozenset(), doc) == pytest.approx(500 * 0.42 + 500 * 0.10)


def test_missing_stats_default_to_zero() -> None:
    rec = normalize_unit({"id": "empty", "stats": {"atk": "n/a"}})
    assert rec is not None
    assert unit_base_score(rec, frozenset(), Doctrine.default()) == 0.0


def test_preset_affinity_weights() -> None:
    burn = DEFAULT_PRESETS["burn"]
    assert preset_affinity({"burn_apply"}, burn) == 3
    assert preset_affinity({"burn_apply", "burn_synergy", "tu_manip"}, burn) == 7
    assert preset_affinity({"burn_anti"}, burn) == -4
    assert preset_affinity({"burn_apply"}, None) == 0


def test_preset_affinity_dominates_stats() -> None:
    doc = Doctrine.default()
    weak_burner = _rec("burner", atk=300, hp=3000, spd=300, tags=["burn_apply"])
    strong_plain = _rec("plain", atk=1900, hp=15000, spd=520)

    s_burner = unit_base_score(weak_burner, expand(weak_burner.raw_tags), doc, "burn")
    s_plain = unit_base_score(strong_plain, expand(strong_plain.raw_tags), doc, "burn")
    assert s_burner > s_plain


def test_unknown_preset_key_scores_like_no_preset() -> None:
    doc = Doctrine.default()
    rec = _rec("a", tags=["burn_apply"])
    tags = expand(rec.raw_tags)
    assert unit_base_score(rec, tags, doc, "nonsense") == unit_base_score(rec, tags, doc, "")


def test_tag_units_resolves_element_and_order_key() -> None:
    doc = Doctrine.default()
    units = tag_units(
        [
            _rec("b", atk=1000, tags=["elem_fire", "regen"]),
            _rec("a", atk=1000, tags=["elem_fire"]),
            _rec("c", atk=2000),
        ],
        doc,
    )
    assert units[0].element == "fire"
    assert "heal" in units[0].tags

    ordered = sorted(units, key=candidate_order_key)
    assert [u.id for u in ordered] == ["c", "a", "b"]
