"""
esdocs Engine — Elasticsearch Client Adapter
============================================

The only module that talks to Elasticsearch. It owns connection
configuration and request/response shapes; it does not interpret failures.
Raw ``elasticsearch`` exceptions propagate to the services, which normalize
them through ``esdocs.errors``.

The underlying ``AsyncElasticsearch`` client pools connections and is safe
for concurrent outstanding requests, so one adapter is shared by every
service built on it.

Example:
    async with EngineClient(load_config()) as engine:
        documents = DocumentService(engine)
        await documents.upsert("films", {"id": 1, "title": "A"})
"""

import logging
from typing import Any, AsyncIterator, Dict, Iterable, Optional, Sequence, Tuple

from elasticsearch import AsyncElasticsearch
from elasticsearch.helpers import async_streaming_bulk

from .config import StoreConfig

logger = logging.getLogger(__name__)


def _body(response: Any) -> Any:
    """Unwrap an ``ObjectApiResponse`` into its plain body."""
    return getattr(response, "body", response)


class EngineClient:
    """
    Thin async wrapper over ``AsyncElasticsearch``.

    Args:
        config: Connection settings (default: ``StoreConfig()``)
        client: Prebuilt client to use instead of building one from config
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        client: Optional[Any] = None
    ):
        self.config = config or StoreConfig()
        if client is None:
            logger.debug("Connecting to Elasticsearch at %s", self.config.hosts)
            client = AsyncElasticsearch(**self.config.client_kwargs())
        self._client = client

    def _refresh_kwargs(self) -> Dict[str, Any]:
        if self.config.refresh:
            return {"refresh": self.config.refresh}
        return {}

    # Index operations

    async def index_exists(self, name: str) -> bool:
        return bool(await self._client.indices.exists(index=name))

    async def create_index(
        self,
        name: str,
        mappings: Optional[dict] = None,
        settings: Optional[dict] = None
    ) -> dict:
        kwargs: Dict[str, Any] = {"index": name}
        if mappings:
            kwargs["mappings"] = mappings
        if settings:
            kwargs["settings"] = settings
        return _body(await self._client.indices.create(**kwargs))

    async def delete_index(self, name: str) -> dict:
        return _body(await self._client.indices.delete(index=name))

    async def put_mapping(self, name: str, mapping: dict) -> dict:
        """
        Apply a mapping to an existing index.

        Args:
            name: Index name
            mapping: Mapping body, e.g. ``{"properties": {...}}``
        """
        return _body(await self._client.indices.put_mapping(index=name, **mapping))

    async def refresh(self, name: str) -> dict:
        return _body(await self._client.indices.refresh(index=name))

    # Document operations

    async def index_document(self, index: str, doc_id: str, document: dict) -> dict:
        return _body(await self._client.index(
            index=index,
            id=doc_id,
            document=document,
            **self._refresh_kwargs()
        ))

    async def delete_document(self, index: str, doc_id: str) -> dict:
        return _body(await self._client.delete(
            index=index,
            id=doc_id,
            **self._refresh_kwargs()
        ))

    async def get_document(self, index: str, doc_id: str) -> dict:
        return _body(await self._client.get(index=index, id=doc_id))

    async def bulk(self, operations: Sequence[Any]) -> dict:
        """
        Submit one bulk request.

        Args:
            operations: Flat header/body list from ``esdocs.bulk``

        Returns:
            Raw bulk response (``took``, ``errors``, ``items``)
        """
        return _body(await self._client.bulk(
            operations=list(operations),
            **self._refresh_kwargs()
        ))

    async def stream_bulk(
        self,
        actions: Iterable[dict],
        chunk_size: int
    ) -> AsyncIterator[Tuple[bool, dict]]:
        """
        Submit actions in chunks through ``async_streaming_bulk``.

        Item failures are yielded, not raised; request-level failures
        propagate. Chunks already sent stay applied.

        Args:
            actions: ``elasticsearch.helpers`` action dicts
            chunk_size: Items per bulk request

        Yields:
            ``(ok, {action: item})`` per action, in input order
        """
        async for ok, item in async_streaming_bulk(
            self._client,
            actions,
            chunk_size=chunk_size,
            raise_on_error=False,
            **self._refresh_kwargs()
        ):
            yield ok, item

    async def search(self, index: str, body: dict) -> dict:
        """
        Run a search request.

        Args:
            index: Index name
            body: Request body (``query``, ``suggest``, ``size``, ...)
        """
        return _body(await self._client.search(index=index, **body))

    async def close(self):
        """Close the Elasticsearch client connection."""
        await self._client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
