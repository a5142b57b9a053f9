"""
esdocs Documents — Document Lifecycle and Bulk Operations
=========================================================

Single and bulk writes/deletes against one index.

Partial-failure policy for bulk calls:
    strict=False  the full per-item result is returned; the caller inspects
                  ``had_errors`` / ``failed``
    strict=True   any failing item raises PartialBulkFailure. Items the
                  engine already applied stay applied (no rollback).

Every failure is raised as ``StoreError``; raw engine payloads only go to
the log.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from .bulk import check_id, document_id, encode_deletes, encode_writes, helper_actions
from .config import StoreConfig
from .engine import EngineClient
from .errors import ErrorTag, StoreError, engine_errors
from .models import BulkItem, BulkResult, DeletedDocument, PersistedDocument

logger = logging.getLogger(__name__)


def _log_item_errors(operation: str, items: Iterable[dict]):
    for item in items:
        for action, meta in item.items():
            if meta.get("error"):
                logger.warning(
                    "%s %s error: _id=%s status=%s %s",
                    operation, action, meta.get("_id"), meta.get("status"), meta["error"]
                )


class DocumentService:
    """
    Create, replace and delete documents.

    Example:
        docs = DocumentService(engine)
        saved = await docs.upsert("films", {"id": 1, "title": "A"})
        saved.result   # "created"
    """

    def __init__(self, engine: EngineClient, config: Optional[StoreConfig] = None):
        self.engine = engine
        self.config = config or engine.config

    async def upsert(self, index: str, document: Mapping[str, Any]) -> PersistedDocument:
        """
        Write a document, replacing any existing one with the same id.

        Returns:
            PersistedDocument whose ``result`` is "created" or "updated"
        """
        doc_id = document_id(document, self.config.id_field)

        with engine_errors("upsert"):
            response = await self.engine.index_document(index, doc_id, dict(document))

        return PersistedDocument.from_response(response)

    async def bulk_upsert(
        self,
        index: str,
        documents: Iterable[Mapping[str, Any]],
        strict: bool = False
    ) -> BulkResult:
        """
        Write many documents in one bulk request.

        Args:
            index: Target index
            documents: Documents, each carrying the configured id field
            strict: Raise PartialBulkFailure if any item fails

        Returns:
            BulkResult with one item per document, in input order
        """
        operations = encode_writes(
            index,
            documents,
            action="index",
            id_field=self.config.id_field,
            doc_type=self.config.doc_type
        )
        return await self._submit("bulkUpsert", operations, per_item=2, strict=strict)

    async def remove(self, index: str, doc_id: Any) -> DeletedDocument:
        """
        Delete one document.

        Raises:
            StoreError: IndexNotFound if the index is missing,
                DocumentNotFound if the index exists but the id does not
        """
        doc_id = check_id(doc_id)

        with engine_errors("remove"):
            response = await self.engine.delete_document(index, doc_id)

        return DeletedDocument.from_response(response)

    async def bulk_remove(
        self,
        index: str,
        ids: Iterable[Any],
        strict: bool = False
    ) -> BulkResult:
        """Delete many documents in one bulk request. See ``bulk_upsert``."""
        operations = encode_deletes(index, ids, doc_type=self.config.doc_type)
        return await self._submit("bulkRemove", operations, per_item=1, strict=strict)

    async def get(self, index: str, doc_id: Any) -> dict:
        """Return the stored source of one document."""
        doc_id = check_id(doc_id)

        with engine_errors("get"):
            response = await self.engine.get_document(index, doc_id)
        return response.get("_source", {})

    async def _submit(
        self,
        operation: str,
        operations: List[Any],
        per_item: int,
        strict: bool
    ) -> BulkResult:
        if not operations:
            return BulkResult()

        chunk_size = self.config.bulk_chunk_size
        if chunk_size and chunk_size > 0:
            result = await self._stream(operation, operations, per_item, chunk_size)
        else:
            with engine_errors(operation):
                response = await self.engine.bulk(operations)
            _log_item_errors(operation, response.get("items", []))
            result = BulkResult.from_response(response)

        logger.debug(
            "%s: %d items in %dms, errors=%s",
            operation, len(result), result.took, result.had_errors
        )

        if strict and result.had_errors:
            # the engine may flag errors without attaching one to any item
            reason = None
            if result.failed:
                reason = f"{len(result.failed)} of {len(result)} documents failed"
            raise StoreError(ErrorTag.PARTIAL_BULK_FAILURE, reason)

        return result

    async def _stream(
        self,
        operation: str,
        operations: List[Any],
        per_item: int,
        chunk_size: int
    ) -> BulkResult:
        """Send ``operations`` in chunks of ``chunk_size`` items."""
        raw_items = []
        with engine_errors(operation):
            async for _ok, item in self.engine.stream_bulk(
                helper_actions(operations, per_item), chunk_size
            ):
                raw_items.append(item)

        _log_item_errors(operation, raw_items)
        items = [BulkItem.from_response_item(item) for item in raw_items]
        return BulkResult(items=items, had_errors=any(it.failed for it in items))
