from __future__ import annotations

from etto.engine.tags import TAG_SYNONYMS, canonicalize, element_from_tags, expand, has_any


def test_canonicalize_collapses_separators_and_trims() -> None:
    assert canonicalize("  Life-Steal ") == "life_steal"
    assert canonicalize("__Burn  Apply!!") == "burn_apply"
    assert canonicalize("TU/Reduce") == "tu_reduce"
    assert canonicalize("") == ""
    assert canonicalize(None) == ""


def test_expand_adds_single_synonym_target() -> None:
    tags = expand(["Lifesteal", "shield", "unknown_thing"])

    assert "lifesteal" in tags
    assert "heal" in tags
    assert "shield" in tags
    assert "barrier" in tags
    assert "unknown_thing" in tags


def test_expand_is_single_hop_and_not_substring_based() -> None:
    tags = expand(["burn_tier_healing"])
    assert tags == frozenset({"burn_tier_healing"})

    # every synonym target is itself a terminal tag
    for target in TAG_SYNONYMS.values():
        assert TAG_SYNONYMS.get(target, target) == target


def test_expand_drops_falsy_and_survives_malformed_input() -> None:
    assert expand(["", None, 0, "heal"]) == frozenset({"heal"})
    assert expand(None) == frozenset()
    assert expand("heal") == frozenset()
    assert expand(42) == frozenset()


def test_stat_buff_keywords_map_to_buff_tags() -> None:
    assert "atk_buff" in expand(["Attack Up"])
    assert "hp_buff" in expand(["max-hp"])


def test_element_from_tags_prefers_sorted_elem_tag() -> None:
    assert element_from_tags(frozenset({"elem_water", "elem_fire"}), "dark") == "fire"
    assert element_from_tags(frozenset({"heal"}), "Storm") == "storm"
    assert element_from_tags(frozenset(), "") == ""


def test_has_any() -> None:
    tags = frozenset({"heal", "guard"})
    assert has_any(tags, ("barrier", "guard"))
    assert not has_any(tags, ("barrier",))
    assert not has_any(tags, ())
