from __future__ import annotations

from etto.domain.doctrine import Doctrine
from etto.domain.models import SlotLayout, SlotLocks, UnitRecord, UnitStats
from etto.engine.allocator import (
    ForcedSlots,
    apply_mono_filter,
    apply_preset_filter,
    beam_fill,
    greedy_fill,
    pick_anchor_element,
    prepare_pool,
    resolve_forced,
    split_story,
    top_candidates,
)
from etto.engine.scoring import TaggedUnit
from etto.engine.tags import expand


def _tu(uid: str, tags=(), element: str = "", base: float = 1000.0, atk: float = 1000, hp: float = 10000, spd: float = 400) -> TaggedUnit:
    return TaggedUnit(
        record=UnitRecord(id=uid, stats=UnitStats(atk=atk, hp=hp, spd=spd)),
        tags=expand(tags),
        element=element,
        base=base,
    )


def test_top_candidates_orders_by_base_then_id_and_truncates() -> None:
    units = [_tu("b", base=10), _tu("a", base=10), _tu("c", base=20), _tu("d", base=5)]
    pool = top_candidates(units, excluded={"d"}, limit=2)
    assert [u.id for u in pool] == ["c", "a"]


def test_preset_filter_ladder() -> None:
    doc = Doctrine.default()
    burn = doc.preset("burn")
    safe = [_tu(f"s{i}", ["burn_apply"]) for i in range(2)]
    risky = [_tu("r", ["burn_apply", "burn_anti"])]
    plain = [_tu(f"p{i}") for i in range(3)]
    pool = safe + risky + plain

    assert [u.id for u in apply_preset_filter(pool, burn, 2)] == ["s0", "s1"]
    assert [u.id for u in apply_preset_filter(pool, burn, 3)] == ["s0", "s1", "r"]
    assert apply_preset_filter(pool, burn, 4) == pool
    assert apply_preset_filter(pool, None, 2) == pool


def test_anchor_prefers_forced_element_then_majority() -> None:
    pool = [_tu("a", element="water"), _tu("b", element="water"), _tu("c", element="fire")]
    assert pick_anchor_element([_tu("x", element="fire")], pool) == "fire"
    assert pick_anchor_element([_tu("x")], pool) == "water"
    # ties broken alphabetically
    assert pick_anchor_element([], [_tu("a", element="water"), _tu("b", element="dark")]) == "dark"
    assert pick_anchor_element([], [_tu("a")]) == ""


def test_mono_filter_keeps_short_anchor_pool() -> None:
    doc = Doctrine.default().merged({"monoVsRainbow": {"selectionMode": "force_mono"}})
    pool = [_tu("a", element="fire"), _tu("b", element="water"), _tu("c", element="water"), _tu("d")]
    out = apply_mono_filter(pool, [_tu("x", element="fire")], doc)
    assert [u.id for u in out] == ["a"]
    assert apply_mono_filter(pool, [], Doctrine.default()) == pool


def test_greedy_fill_keeps_forced_prefix_and_stops_when_pool_runs_out() -> None:
    doc = Doctrine.default()
    forced = [_tu("lead", base=1)]
    pool = [_tu("a", base=3000), _tu("b", base=2000)]
    team = greedy_fill(pool, forced, 5, doc)
    assert [u.id for u in team] == ["lead", "a", "b"]


def test_greedy_fill_breaks_ties_by_base_then_id() -> None:
    doc = Doctrine.default()
    pool = [_tu("b", base=100.0), _tu("a", base=100.0)]
    assert [u.id for u in greedy_fill(pool, [], 1, doc)] == ["a"]


def test_greedy_fill_respects_lookahead() -> None:
    doc = Doctrine.default().merged({"optimizerSearch": {"greedyLookahead": 1}})
    # second entry would win on synergy but is outside the window
    pool = [_tu("first", base=1000), _tu("payoff", ["burn_synergy"], base=1000)]
    forced = [_tu("lead", ["burn_apply"])]
    team = greedy_fill(pool, forced, 2, doc)
    assert [u.id for u in team] == ["lead", "first"]


def test_beam_fill_returns_full_team_without_duplicates() -> None:
    doc = Doctrine.default().merged({"optimizerSearch": {"beamWidthStory": 4}})
    pool = [_tu(f"u{i}", base=1000 + i) for i in range(6)]
    team = beam_fill(pool, [], 4, doc)
    ids = [u.id for u in team]
    assert len(ids) == 4
    assert len(set(ids)) == 4


def test_resolve_forced_first_occurrence_wins_and_unowned_is_ignored() -> None:
    units = {"a": _tu("a"), "b": _tu("b")}
    layout = SlotLayout.from_dict({
        "storyMain": ["a", "ghost", "", "", ""],
        "platoons": [["a", "b", "", "", ""]],
    })
    locks = SlotLocks.from_dict({
        "storyMain": [True, True, False, False, False],
        "platoons": [[True, True, False, False, False]],
    })
    forced = resolve_forced(units, layout, locks)

    assert {i: u.id for i, u in forced.story_main.items()} == {0: "a"}
    assert {i: u.id for i, u in forced.platoons[0].items()} == {1: "b"}
    assert forced.all_ids() == {"a", "b"}


def test_resolve_forced_without_locks_is_empty() -> None:
    forced = resolve_forced({"a": _tu("a")}, SlotLayout.from_dict({"storyMain": ["a"]}), None)
    assert forced.all_ids() == set()


def test_split_story_front_and_back() -> None:
    doc = Doctrine.default()
    fast = [_tu(f"f{i}", spd=500 + i) for i in range(4)]
    controller = _tu("ctrl", ["stun_apply"], spd=100)
    healer = _tu("heal", ["regen"], atk=100, spd=50)
    hitters = [_tu("h1", atk=3000, spd=60), _tu("h2", atk=2000, spd=55)]
    team = fast + [controller, healer] + hitters

    main, back = split_story(team, ForcedSlots(), doc)
    assert set(main) == {"f0", "f1", "f2", "f3", "ctrl"}
    assert main[0] == "ctrl"
    assert back == ["heal", "h1", "h2"]


def test_split_story_keeps_locked_slots() -> None:
    doc = Doctrine.default()
    slow = _tu("slow", spd=1)
    others = [_tu(f"u{i}", spd=400 + i) for i in range(7)]
    forced = ForcedSlots()
    forced.story_back[2] = slow

    main, back = split_story([slow] + others, forced, doc)
    assert back[2] == "slow"
    assert "slow" not in main
    assert len([x for x in main + back if x]) == 8


def test_prepare_pool_filters_mono_before_truncating() -> None:
    doc = Doctrine.default().merged({"monoVsRainbow": {"selectionMode": "force_mono"}})
    strong = [_tu(f"w{i}", element="water", base=5000) for i in range(3)]
    weak = [_tu(f"f{i}", element="fire", base=100 + i) for i in range(3)]
    lead = _tu("lead", element="fire")

    pool = prepare_pool(strong + weak, {"f0"}, 2, [lead], 5, doc, "")
    assert [u.id for u in pool] == ["f2", "f1"]


def test_prepare_pool_preset_ladder_counts_only_anchor_units() -> None:
    doc = Doctrine.default().merged({"monoVsRainbow": {"selectionMode": "force_mono"}})
    burners = [_tu(f"b{i}", ["burn_apply"], element=e, base=9000) for i, e in enumerate(["water", "storm", "fire"])]
    plain = [_tu(f"p{i}", element="fire", base=1000) for i in range(4)]

    pool = prepare_pool(burners + plain, set(), 80, [], 3, doc, "burn")
    # one fire burner cannot fill three slots, so the ladder falls back to all fire units
    assert [u.id for u in pool] == ["b2", "p0", "p1", "p2", "p3"]
