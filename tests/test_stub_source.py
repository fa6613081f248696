import json

import pytest

from flatwatch.adapters.sources.stub_json import StubJsonSource, canonicalize
from flatwatch.domain.errors import SourceError
from flatwatch.domain.types import SearchProfile


def test_canonicalize_loose_keys():
    c = canonicalize(
        {
            "id": 42,
            "coldRent": "1.250,50",
            "livingSpace": "64",
            "balcony": "ja",
            "lift": "no",
            "postalCode": "10437",
        }
    )
    assert c is not None
    assert c.external_id == "42"
    assert c.price == 1250.5
    assert c.area == 64.0
    assert c.has_balcony is True
    assert c.has_elevator is False
    assert c.has_ebk is None
    assert c.postal_code == "10437"


def test_canonicalize_without_id_is_dropped():
    assert canonicalize({"title": "no id"}) is None


@pytest.mark.asyncio
async def test_search_reads_city_file(tmp_path):
    (tmp_path / "hamburg.json").write_text(
        json.dumps([{"id": "h1", "city": "Hamburg"}, {"title": "junk"}, "not a dict"]),
        encoding="utf-8",
    )
    src = StubJsonSource(fixtures_dir=tmp_path)

    out = await src.search(SearchProfile(name="p", city="Hamburg"))
    assert [c.external_id for c in out] == ["h1"]

    assert await src.search(SearchProfile(name="p", city="Köln")) == []
    assert await src.search(SearchProfile(name="p")) == []


@pytest.mark.asyncio
async def test_fetch_detail(tmp_path):
    (tmp_path / "details").mkdir()
    (tmp_path / "details" / "h1.json").write_text(json.dumps({"id": "h1", "rooms": 2}), encoding="utf-8")
    src = StubJsonSource(fixtures_dir=tmp_path)

    d = await src.fetch_detail("h1")
    assert d.rooms == 2.0

    with pytest.raises(SourceError):
        await src.fetch_detail("missing")


@pytest.mark.asyncio
async def test_broken_fixture_raises_source_error(tmp_path):
    (tmp_path / "berlin.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(SourceError):
        await StubJsonSource(fixtures_dir=tmp_path).search(SearchProfile(name="p", city="Berlin"))
