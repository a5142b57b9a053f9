from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from elastic_transport import JsonSerializer
from elasticsearch import BadRequestError, NotFoundError

# Make package importable when running tests from the repo root.
SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from esdocs.config import StoreConfig  # noqa: E402
from esdocs.engine import EngineClient  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: tests that require a running Elasticsearch cluster",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.getenv("ESDOCS_RUN_INTEGRATION") == "1":
        return

    skip_integration = pytest.mark.skip(
        reason="Set ESDOCS_RUN_INTEGRATION=1 to run integration tests"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def api_error(cls, status: int, body: Any):
    """Build a real elasticsearch ApiError subclass the way the transport does."""
    return cls(message=str(status), meta=SimpleNamespace(status=status), body=body)


def error_body(status: int, err_type: str, reason: str) -> dict:
    return {
        "error": {
            "root_cause": [{"type": err_type, "reason": reason}],
            "type": err_type,
            "reason": reason,
        },
        "status": status,
    }


def index_not_found(name: str):
    return api_error(
        NotFoundError, 404, error_body(404, "index_not_found_exception", f"no such index [{name}]")
    )


class FakeIndices:
    def __init__(self, es: "FakeElasticsearch"):
        self._es = es

    async def exists(self, index):
        self._es.calls.append(("indices.exists", index))
        return index in self._es.store

    async def create(self, index, mappings=None, settings=None):
        self._es.calls.append(("indices.create", index))
        if index.startswith(("-", "_", "+")) or index != index.lower():
            raise api_error(
                BadRequestError,
                400,
                error_body(400, "invalid_index_name_exception", f"Invalid index name [{index}]"),
            )
        if index in self._es.store:
            raise api_error(
                BadRequestError,
                400,
                error_body(
                    400,
                    "resource_already_exists_exception",
                    f"index [{index}/abc] already exists",
                ),
            )
        self._es.store[index] = {}
        self._es.mappings[index] = dict((mappings or {}).get("properties", {}))
        return {"acknowledged": True, "shards_acknowledged": True, "index": index}

    async def delete(self, index):
        self._es.calls.append(("indices.delete", index))
        if index == "_all":
            self._es.store.clear()
            self._es.mappings.clear()
            return {"acknowledged": True}
        if index not in self._es.store:
            raise index_not_found(index)
        del self._es.store[index]
        del self._es.mappings[index]
        return {"acknowledged": True}

    async def put_mapping(self, index, properties=None, **kwargs):
        self._es.calls.append(("indices.put_mapping", index))
        if index not in self._es.store:
            raise index_not_found(index)
        current = self._es.mappings[index]
        for field, definition in (properties or {}).items():
            existing = current.get(field)
            if existing and existing.get("type") != definition.get("type"):
                raise api_error(
                    BadRequestError,
                    400,
                    error_body(
                        400,
                        "illegal_argument_exception",
                        f"mapper [{field}] cannot be changed from type "
                        f"[{existing.get('type')}] to [{definition.get('type')}]",
                    ),
                )
        current.update(properties or {})
        return {"acknowledged": True}

    async def refresh(self, index):
        self._es.calls.append(("indices.refresh", index))
        if index not in self._es.store:
            raise index_not_found(index)
        return {"_shards": {"total": 1, "successful": 1, "failed": 0}}


class FakeElasticsearch:
    """
    In-memory stand-in for the AsyncElasticsearch surface esdocs uses.

    Documents whose id is in ``reject_ids`` fail inside bulk requests with a
    mapper_parsing_exception, the way a badly typed field would.
    """

    def __init__(self):
        self.indices = FakeIndices(self)
        self.store: dict[str, dict[str, dict]] = {}
        self.mappings: dict[str, dict] = {}
        self.versions: dict[tuple, int] = {}
        self.reject_ids: set[str] = set()
        self.calls: list[tuple] = []
        self.closed = False
        self.transport = SimpleNamespace(
            serializers=SimpleNamespace(get_serializer=lambda mimetype: JsonSerializer())
        )

    def options(self, **kwargs):
        return self

    def _write(self, index, doc_id, document):
        store = self.store[index]
        result = "updated" if doc_id in store else "created"
        store[doc_id] = dict(document)
        version = self.versions.get((index, doc_id), 0) + 1
        self.versions[(index, doc_id)] = version
        return {
            "_index": index,
            "_id": doc_id,
            "_version": version,
            "result": result,
            "_shards": {"total": 1, "successful": 1, "failed": 0},
        }

    async def index(self, index, id, document, refresh=None):
        self.calls.append(("index", index, id))
        if index not in self.store:
            raise index_not_found(index)
        return self._write(index, id, document)

    async def delete(self, index, id, refresh=None):
        self.calls.append(("delete", index, id))
        if index not in self.store:
            raise index_not_found(index)
        store = self.store[index]
        if id not in store:
            raise api_error(
                NotFoundError,
                404,
                {"_index": index, "_id": id, "_version": 1, "result": "not_found"},
            )
        del store[id]
        return {"_index": index, "_id": id, "_version": 2, "result": "deleted"}

    async def get(self, index, id):
        self.calls.append(("get", index, id))
        if index not in self.store:
            raise index_not_found(index)
        store = self.store[index]
        if id not in store:
            raise api_error(NotFoundError, 404, {"_index": index, "_id": id, "found": False})
        return {"_index": index, "_id": id, "found": True, "_source": store[id]}

    async def bulk(self, operations, refresh=None):
        self.calls.append(("bulk", len(operations)))
        items = []
        # async_streaming_bulk sends each line pre-serialized
        ops = [json.loads(op) if isinstance(op, (bytes, str)) else op for op in operations]
        pos = 0
        while pos < len(ops):
            header = ops[pos]
            action, meta = next(iter(header.items()))
            index, doc_id = meta["_index"], meta["_id"]
            if action == "delete":
                pos += 1
                items.append({"delete": self._bulk_delete(index, doc_id)})
                continue
            document = ops[pos + 1]
            pos += 2
            items.append({action: self._bulk_write(index, doc_id, document)})
        errors = any("error" in next(iter(it.values())) for it in items)
        return SimpleNamespace(body={"took": 3, "errors": errors, "items": items})

    def _bulk_write(self, index, doc_id, document):
        if index not in self.store:
            body = error_body(404, "index_not_found_exception", f"no such index [{index}]")
            return {"_index": index, "_id": doc_id, "status": 404, "error": body["error"]}
        if doc_id in self.reject_ids:
            return {
                "_index": index,
                "_id": doc_id,
                "status": 400,
                "error": {
                    "type": "mapper_parsing_exception",
                    "reason": "failed to parse field [year] of type [integer]",
                },
            }
        response = self._write(index, doc_id, document)
        response["status"] = 201 if response["result"] == "created" else 200
        return response

    def _bulk_delete(self, index, doc_id):
        store = self.store.get(index, {})
        if doc_id not in store:
            return {"_index": index, "_id": doc_id, "status": 404, "result": "not_found"}
        del store[doc_id]
        return {"_index": index, "_id": doc_id, "status": 200, "result": "deleted"}

    async def search(self, index, suggest=None, query=None, size=None):
        self.calls.append(("search", index))
        if index not in self.store:
            raise index_not_found(index)
        store = self.store[index]
        response: dict[str, Any] = {"took": 1, "timed_out": False}
        if suggest:
            response["suggest"] = {}
            for name, spec in suggest.items():
                field = spec["completion"]["field"]
                prefix = spec["prefix"].lower()
                options = [
                    {"text": doc[field], "_id": doc_id, "_source": doc}
                    for doc_id, doc in store.items()
                    if str(doc.get(field, "")).lower().startswith(prefix)
                ][: spec["completion"]["size"]]
                response["suggest"][name] = [
                    {"text": spec["prefix"], "offset": 0, "length": len(prefix), "options": options}
                ]
        if query:
            doc_id = query["term"]["_id"]
            hits = [{"_id": doc_id, "_source": store[doc_id]}] if doc_id in store else []
            response["hits"] = {"total": {"value": len(hits), "relation": "eq"}, "hits": hits}
        return response

    async def close(self):
        self.closed = True


@pytest.fixture
def es() -> FakeElasticsearch:
    return FakeElasticsearch()


@pytest.fixture
def config() -> StoreConfig:
    return StoreConfig()


@pytest.fixture
def engine(es, config) -> EngineClient:
    return EngineClient(config, client=es)
