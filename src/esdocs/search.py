"""
esdocs Search — Autocomplete Read Path
======================================

Search-as-you-type over ``completion`` fields. One request carries a
suggester per field, each with automatic fuzziness, and the raw
``suggest`` structure comes back unmodified.

The suggested fields must be mapped as ``completion``; see
``esdocs.fixtures.MOVIES_MAPPING``.
"""

from typing import Any, Sequence

from .engine import EngineClient
from .errors import engine_errors

DEFAULT_SUGGEST_FIELDS = ("title", "phase")


def suggest_body(prefix: str, size: int, fields: Sequence[str]) -> dict:
    """Build one fuzzy completion suggester per field."""
    return {
        "suggest": {
            f"{field}Suggester": {
                "prefix": prefix,
                "completion": {
                    "field": field,
                    "size": size,
                    "fuzzy": {"fuzziness": "auto"}
                }
            }
            for field in fields
        }
    }


class SearchService:
    """
    Read-side queries.

    Example:
        search = SearchService(engine)
        suggest = await search.autocomplete("movies", "iron")
        suggest["titleSuggester"][0]["options"]
    """

    def __init__(self, engine: EngineClient):
        self.engine = engine

    async def autocomplete(
        self,
        index: str,
        prefix: str,
        size: int = 5,
        fields: Sequence[str] = DEFAULT_SUGGEST_FIELDS
    ) -> dict:
        """
        Suggest completions for a prefix.

        Args:
            index: Index name
            prefix: Text typed so far
            size: Maximum suggestions per field
            fields: Completion fields to query

        Returns:
            Raw ``suggest`` section of the response, keyed ``<field>Suggester``
        """
        with engine_errors("autocomplete"):
            response = await self.engine.search(index, suggest_body(prefix, size, fields))
        return response.get("suggest", {})

    async def search_by_id(self, index: str, doc_id: Any) -> dict:
        """Return the raw ``hits`` section of a term query on ``_id``."""
        body = {"query": {"term": {"_id": str(doc_id)}}}
        with engine_errors("searchById"):
            response = await self.engine.search(index, body)
        return response.get("hits", {})
