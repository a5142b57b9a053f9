from __future__ import annotations

import pytest

from esdocs.errors import ErrorTag, StoreError
from esdocs.search import SearchService, suggest_body


def test_suggest_body_one_fuzzy_suggester_per_field():
    body = suggest_body("iro", 3, ("title", "phase"))

    assert body == {
        "suggest": {
            "titleSuggester": {
                "prefix": "iro",
                "completion": {"field": "title", "size": 3, "fuzzy": {"fuzziness": "auto"}},
            },
            "phaseSuggester": {
                "prefix": "iro",
                "completion": {"field": "phase", "size": 3, "fuzzy": {"fuzziness": "auto"}},
            },
        }
    }


@pytest.fixture
def movies(es):
    es.store["movies"] = {
        "1": {"id": 1, "title": "Iron Man", "phase": "Phase One"},
        "3": {"id": 3, "title": "Iron Man 2", "phase": "Phase One"},
        "4": {"id": 4, "title": "Thor", "phase": "Phase One"},
    }
    es.mappings["movies"] = {}
    return "movies"


@pytest.mark.asyncio
async def test_autocomplete_returns_raw_suggest_structure(engine, movies):
    suggest = await SearchService(engine).autocomplete(movies, "iron", size=5)

    assert set(suggest) == {"titleSuggester", "phaseSuggester"}
    titles = [opt["text"] for opt in suggest["titleSuggester"][0]["options"]]
    assert titles == ["Iron Man", "Iron Man 2"]
    assert suggest["phaseSuggester"][0]["options"] == []


@pytest.mark.asyncio
async def test_autocomplete_respects_size(engine, movies):
    suggest = await SearchService(engine).autocomplete(movies, "iron", size=1, fields=("title",))

    assert len(suggest["titleSuggester"][0]["options"]) == 1


@pytest.mark.asyncio
async def test_autocomplete_missing_index(engine):
    with pytest.raises(StoreError) as info:
        await SearchService(engine).autocomplete("nowhere", "iron")

    assert info.value.tag is ErrorTag.INDEX_NOT_FOUND


@pytest.mark.asyncio
async def test_search_by_id(engine, movies):
    hits = await SearchService(engine).search_by_id(movies, 4)

    assert hits["total"]["value"] == 1
    assert hits["hits"][0]["_source"]["title"] == "Thor"
