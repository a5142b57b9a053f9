"""
esdocs Indices — Index Lifecycle
================================

Create and delete indices, and apply field mappings.

``delete_index`` checks existence before deleting so a missing index is
reported as IndexNotFound rather than a generic engine error. The check
and the delete are two separate requests: a concurrent deleter can slip
in between, in which case the engine's own delete failure is reported.
Treat deletes as best-effort, not transactional.
"""

import logging
from typing import Any, Dict, Optional

from .engine import EngineClient
from .errors import ErrorTag, StoreError, engine_errors

logger = logging.getLogger(__name__)

# put-mapping reports incompatible field changes as illegal_argument_exception
MAPPING_ERROR_TYPES = {
    "illegal_argument_exception": ErrorTag.INVALID_MAPPING,
}


def mapping_body(mapping: Dict[str, Any]) -> Dict[str, Any]:
    """
    Accept a full mapping or a bare field map.

    ``{"title": {"type": "text"}}`` becomes
    ``{"properties": {"title": {"type": "text"}}}``.
    """
    if "properties" in mapping or "dynamic" in mapping:
        return dict(mapping)
    return {"properties": dict(mapping)}


class IndexService:
    """
    Index management on top of an ``EngineClient``.

    Example:
        indices = IndexService(engine)
        await indices.create_index("films")
        await indices.apply_mapping("films", {"title": {"type": "text"}})
    """

    def __init__(self, engine: EngineClient):
        self.engine = engine

    async def exists(self, name: str) -> bool:
        with engine_errors("indexExists"):
            return await self.engine.index_exists(name)

    async def create_index(
        self,
        name: str,
        mapping: Optional[dict] = None,
        settings: Optional[dict] = None
    ) -> dict:
        """
        Create a new index.

        Args:
            name: Index name
            mapping: Optional mapping applied at creation
            settings: Optional index settings (shards, replicas, analysis)

        Raises:
            StoreError: InvalidIndexName or AlreadyExists
        """
        mappings = mapping_body(mapping) if mapping else None
        with engine_errors("createIndex", MAPPING_ERROR_TYPES if mapping else None):
            response = await self.engine.create_index(name, mappings, settings)

        logger.info("Created index %s", name)
        return response

    async def delete_index(self, name: str) -> dict:
        """
        Delete an index after checking that it exists.

        Raises:
            StoreError: IndexNotFound if the index does not exist
        """
        with engine_errors("deleteIndex"):
            if not await self.engine.index_exists(name):
                raise StoreError(ErrorTag.INDEX_NOT_FOUND, f"no such index [{name}]")
            response = await self.engine.delete_index(name)

        logger.info("Deleted index %s", name)
        return response

    async def delete_all_indices(self) -> dict:
        """Delete every index with a single wildcard request."""
        with engine_errors("deleteAllIndices"):
            response = await self.engine.delete_index("_all")

        logger.info("Deleted all indices")
        return response

    async def apply_mapping(self, name: str, mapping: Dict[str, Any]) -> dict:
        """
        Apply a mapping to an existing index.

        Reapplying an identical mapping is a no-op for the engine.

        Raises:
            StoreError: InvalidMapping if the mapping conflicts with the index,
                IndexNotFound if the index does not exist
        """
        with engine_errors("applyMapping", MAPPING_ERROR_TYPES):
            return await self.engine.put_mapping(name, mapping_body(mapping))

    async def refresh(self, name: str) -> dict:
        """Make recent writes visible to reads and search."""
        with engine_errors("refresh"):
            return await self.engine.refresh(name)
