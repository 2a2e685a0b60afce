from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

import etto.tools.update_catalog as uc
from etto.domain.catalog import Catalog, CatalogError


class _FakeResponse:
    def __init__(self, payload: Any, status: int = 200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")

    def json(self) -> Any:
        return self._payload


class _FakeSession:
    def __init__(self, pages: Dict[str, List[Any]]):
        # url -> list of responses served in order (last one repeats)
        self.pages = pages
        self.headers: Dict[str, str] = {}
        self.calls: List[str] = []

    def get(self, url: str, params=None, timeout=None) -> _FakeResponse:
        self.calls.append(url)
        queue = self.pages[url]
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch) -> None:
    monkeypatch.setattr(uc.time, "sleep", lambda _s: None)


def test_http_get_json_retries_then_succeeds() -> None:
    session = _FakeSession({"u": [ConnectionError("boom"), _FakeResponse([{"id": "a"}])]})
    assert uc._http_get_json(session, "u", retries=3) == [{"id": "a"}]
    assert len(session.calls) == 2


def test_http_get_json_raises_after_last_retry() -> None:
    session = _FakeSession({"u": [_FakeResponse({}, status=500)]})
    with pytest.raises(RuntimeError):
        uc._http_get_json(session, "u", retries=2)
    assert len(session.calls) == 2


def test_fetch_all_characters_follows_pagination() -> None:
    session = _FakeSession({
        "p1": [_FakeResponse({"results": [{"id": "a"}], "next": "p2"})],
        "p2": [_FakeResponse({"results": [{"id": "b"}], "next": None})],
    })
    rows = uc.fetch_all_characters(session, "p1")
    assert [r["id"] for r in rows] == ["a", "b"]


def test_fetch_all_characters_rejects_unknown_schema() -> None:
    session = _FakeSession({"u": [_FakeResponse({"monsters": []})]})
    with pytest.raises(CatalogError):
        uc.fetch_all_characters(session, "u")


def test_update_catalog_writes_normalized_file(tmp_path, monkeypatch) -> None:
    payload = {"characters": [
        {"id": "a", "name": "Alpha", "atk": 900, "tags": ["regen"], "leaderSkill": "None"},
        {"id": "a", "name": "Alpha again"},
        {"name": "no id"},
        {"id": "b", "name": "Beta", "stats": {"atk": 1000, "cost": 0}, "derivedTags": ["burn_apply"]},
    ]}
    session = _FakeSession({"https://example.test/chars.json": [_FakeResponse(payload)]})
    monkeypatch.setattr(uc.requests, "Session", lambda: session)

    out = tmp_path / "characters.json"
    assert uc.update_catalog("https://example.test/chars.json", out) == 0

    raw = json.loads(out.read_text(encoding="utf-8"))
    assert [c["id"] for c in raw["characters"]] == ["a", "b"]
    assert raw["characters"][0]["leaderSkill"]["name"] == "No Leader Skill"
    assert raw["characters"][1]["stats"]["cost"] == 1.0

    cat = Catalog(out)
    cat.load()
    assert cat.get("a").raw_tags == ("regen",)
    assert session.headers["User-Agent"].startswith("ETTO")
