from __future__ import annotations

import json

import pytest

from etto import i18n
from etto.domain.catalog import Catalog, CatalogError, filter_units, parse_catalog
from etto.domain.layout_store import MODE_PLATOONS, LayoutStore, apply_result, storage_ids
from etto.domain.models import (
    NO_LEADER_DESCRIPTION,
    NO_LEADER_NAME,
    SlotLayout,
    normalize_leader_skill,
    normalize_unit,
    normalize_units,
)
from etto.domain.roster_store import OwnedStore
from etto.engine.team_optimizer import OptimizeResult
from etto.services.app_persistence import AppPersistence


def test_normalize_unit_prefers_nested_stats_and_derived_tags() -> None:
    rec = normalize_unit({
        "id": 7,
        "atk": 1,
        "stats": {"atk": "1,200", "hp": 9000},
        "spd": 410,
        "element": "Fire",
        "derivedTags": ["burn_apply"],
        "tags": ["ignored"],
    })
    assert rec is not None
    assert rec.id == "7"
    assert rec.stats.atk == pytest.approx(1200.0)
    assert rec.stats.hp == pytest.approx(9000.0)
    assert rec.stats.spd == pytest.approx(410.0)
    assert rec.stats.cost == 1.0
    assert rec.element == "fire"
    assert rec.raw_tags == ("burn_apply",)


def test_normalize_unit_falls_back_to_tags_and_drops_idless() -> None:
    rec = normalize_unit({"id": "a", "derivedTags": [], "tags": ["heal", "", None]})
    assert rec is not None and rec.raw_tags == ("heal",)
    assert normalize_unit({"name": "no id"}) is None
    assert normalize_unit("junk") is None


def test_normalize_units_dedupes_keeping_first() -> None:
    recs = normalize_units([{"id": "a", "name": "first"}, {"id": "a", "name": "second"}, {"id": "b"}])
    assert [(r.id, r.name) for r in recs] == [("a", "first"), ("b", "")]


def test_leader_skill_is_never_null() -> None:
    missing = normalize_leader_skill(None)
    assert (missing.name, missing.description, missing.present) == (NO_LEADER_NAME, NO_LEADER_DESCRIPTION, False)
    assert normalize_leader_skill("None").present is False
    assert normalize_leader_skill({"name": "null", "description": ""}).present is False

    partial = normalize_leader_skill({"name": "", "description": "Fire allies ATK +20%"})
    assert partial.name == "Leader Skill"
    assert partial.description == "Fire allies ATK +20%"
    assert normalize_leader_skill("Water allies HP +10%").description == "Water allies HP +10%"


def test_parse_catalog_shapes() -> None:
    assert [u.id for u in parse_catalog([{"id": "a"}])] == ["a"]
    assert [u.id for u in parse_catalog({"characters": [{"id": "b"}, {"id": "b"}]})] == ["b"]
    with pytest.raises(CatalogError):
        parse_catalog({"units": []})
    with pytest.raises(ValueError):
        parse_catalog("nope")


def test_catalog_load_and_filter(tmp_path) -> None:
    path = tmp_path / "characters.json"
    path.write_text(json.dumps({"characters": [
        {"id": "zeus", "name": "Zeus", "title": "Thunder God", "element": "storm", "rarity": "SSR"},
        {"id": "golem", "name": "Golem", "element": "earth", "rarity": "R"},
        {"id": "sylph", "name": "Sylph", "title": "Wind Sprite", "element": "storm", "rarity": "R"},
    ]}), encoding="utf-8")

    cat = Catalog(path)
    cat.load()
    assert len(cat) == 3
    assert cat.elements() == ["earth", "storm"]
    assert cat.rarities() == ["R", "SSR"]
    assert [u.id for u in cat.filter(query="thunder")] == ["zeus"]
    assert [u.id for u in cat.filter(element="storm", rarity="R")] == ["sylph"]
    assert [u.id for u in cat.filter(element="all", rarity="all")] == ["zeus", "golem", "sylph"]
    assert cat.display_name("zeus") == "Zeus - Thunder God"
    assert cat.display_name("golem") == "Golem"
    assert [u.id for u in cat.units_for({"sylph", "zeus", "ghost"})] == ["zeus", "sylph"]


def test_catalog_missing_file_is_empty_and_broken_file_raises(tmp_path) -> None:
    cat = Catalog(tmp_path / "missing.json")
    cat.load()
    assert len(cat) == 0

    broken = tmp_path / "broken.json"
    broken.write_text("[{", encoding="utf-8")
    with pytest.raises(CatalogError):
        Catalog(broken).load()


def test_bundled_catalog_loads() -> None:
    cat = Catalog()
    cat.load()
    assert len(cat) > 0
    assert all(u.leader_skill is not None for u in cat.units)
    assert filter_units(cat.units, query="zzz-no-match") == []


def test_owned_store_roundtrip_and_corrupt_file(tmp_path) -> None:
    path = tmp_path / "owned_units.json"
    store = OwnedStore()
    store.set_owned("b", True)
    store.set_owned("a", True)
    assert store.toggle("b") is False
    store.save(path)

    assert json.loads(path.read_text(encoding="utf-8")) == ["a"]
    assert OwnedStore.load(path).owned == {"a"}

    path.write_text("{{{", encoding="utf-8")
    assert OwnedStore.load(path).owned == set()


def test_layout_store_pads_and_keeps_mode(tmp_path) -> None:
    path = tmp_path / "team_layout.json"
    path.write_text(json.dumps({
        "storyMain": ["a", "b"],
        "storyBack": ["c", "d", "e", "extra"],
        "platoons": [{"units": ["p1"]}],
        "mode": "platoons",
        "locks": {"storyMain": [True]},
    }), encoding="utf-8")

    store = LayoutStore.load(path)
    assert store.layout.story_main == ["a", "b", "", "", ""]
    assert store.layout.story_back == ["c", "d", "e"]
    assert len(store.layout.platoons) == 20
    assert store.layout.platoons[0] == ["p1", "", "", "", ""]
    assert store.mode == MODE_PLATOONS
    assert store.locks.story_main[0] is True

    store.save(path)
    again = LayoutStore.load(path)
    assert again.layout == store.layout
    assert again.locks == store.locks


def test_layout_store_clear_and_drop_unowned() -> None:
    store = LayoutStore()
    store.layout.story_main[0] = "a"
    store.layout.story_main[1] = "b"
    store.locks.story_main[0] = True
    store.layout.platoons[2][0] = "gone"

    assert store.drop_unowned({"a", "b"}) == 1
    assert store.layout.platoons[2][0] == ""
    store.clear(keep_locked=True)
    assert store.layout.story_main[:2] == ["a", ""]


def test_storage_ids_and_apply_result() -> None:
    layout = SlotLayout.from_dict({"storyMain": ["a"], "platoons": [["b"]]})
    assert storage_ids({"a", "b", "c", "d"}, layout) == ["c", "d"]

    store = LayoutStore()
    result = OptimizeResult(ok=True, message="", story_main=["x", "", "", "", ""])
    apply_result(store, result)
    assert store.layout.story_main[0] == "x"


def test_app_persistence_respects_env_override(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("ETTO_DATA_DIR", str(tmp_path))
    p = AppPersistence()
    assert p.data_dir == tmp_path
    assert p.layout_path == tmp_path / "team_layout.json"
    assert p.load_owned().owned == set()


def test_i18n_falls_back_to_english_and_key(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(i18n, "_current_lang", "en")
    monkeypatch.setattr(i18n, "_settings_path", None)
    assert i18n.tr("opt.platoon", n=3) == "Platoon 3"
    assert i18n.tr("no.such.key") == "no.such.key"

    i18n.init(tmp_path)
    i18n.set_language("de")
    assert i18n.tr("opt.platoon", n=3) == "Zug 3"
    saved = json.loads((tmp_path / "app_settings.json").read_text(encoding="utf-8"))
    assert saved["language"] == "de"


def test_german_table_covers_every_english_key() -> None:
    assert i18n.missing_keys("de") == []
    assert set(i18n.available_languages()) == {"en", "de"}
