"""
esdocs — Elasticsearch Document Lifecycle Service
=================================================

A thin service layer over Elasticsearch for managing indices and the
documents in them:

- Create and delete indices, apply field mappings
- Create, replace and delete documents, one at a time or in bulk
- Strict or lenient handling of partial bulk failures
- Fuzzy prefix autocomplete over completion fields

Every failure is reported as a ``StoreError`` with a tag from a small closed
taxonomy (IndexNotFound, DocumentNotFound, MissingIdentifier, ...), whatever
shape the engine produced.

Usage:
    import asyncio
    from esdocs import EngineClient, DocumentService, IndexService, load_config

    async def main():
        async with EngineClient(load_config()) as engine:
            await IndexService(engine).create_index("films")
            docs = DocumentService(engine)
            saved = await docs.upsert("films", {"id": 1, "title": "A"})
            print(saved.result)   # created

    asyncio.run(main())

License: MIT
"""

__version__ = "0.1.0"

from .config import StoreConfig, load_config
from .documents import DocumentService
from .engine import EngineClient
from .errors import ErrorTag, StoreError, normalize
from .indices import IndexService
from .models import BulkItem, BulkResult, DeletedDocument, PersistedDocument
from .search import SearchService

__all__ = [
    "StoreConfig",
    "load_config",
    "EngineClient",
    "DocumentService",
    "IndexService",
    "SearchService",
    "ErrorTag",
    "StoreError",
    "normalize",
    "PersistedDocument",
    "DeletedDocument",
    "BulkItem",
    "BulkResult",
]
