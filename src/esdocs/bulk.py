"""
esdocs Bulk — Batch Encoding
============================

Turns documents or identifiers into the flat operation list the
Elasticsearch bulk API expects:

    writes:   [header, body, header, body, ...]     (2N entries)
    deletes:  [header, header, ...]                 (N entries)

Input order is preserved exactly so callers can correlate response items
by position. Every entry is validated before anything is returned, so an
invalid document means no partial batch is ever dispatched.
"""

from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence

from .errors import ErrorTag, StoreError

WRITE_ACTIONS = ("index", "create")


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _header(action: str, index: str, doc_id: Any, doc_type: Optional[str]) -> dict:
    meta = {"_index": index, "_id": str(doc_id)}
    if doc_type:
        meta["_type"] = doc_type
    return {action: meta}


def check_id(doc_id: Any) -> str:
    """Return ``doc_id`` as a string, rejecting empty identifiers."""
    if _is_empty(doc_id):
        raise StoreError(
            ErrorTag.MISSING_IDENTIFIER,
            "Operation requires a non-empty document id"
        )
    return str(doc_id)


def document_id(document: Any, id_field: str = "id") -> str:
    """
    Return the engine identifier of a document.

    Raises:
        StoreError: MissingIdentifier if the document has no usable id
    """
    if not isinstance(document, Mapping) or _is_empty(document.get(id_field)):
        raise StoreError(
            ErrorTag.MISSING_IDENTIFIER,
            f"Document requires {id_field!r} attribute for indexing"
        )
    return str(document[id_field])


def encode_writes(
    index: str,
    documents: Iterable[Mapping[str, Any]],
    action: str = "index",
    id_field: str = "id",
    doc_type: Optional[str] = None
) -> List[Any]:
    """
    Encode documents as header/body pairs.

    Args:
        index: Target index name
        documents: Documents, each carrying ``id_field``
        action: Bulk write action ("index" replaces, "create" refuses existing)
        id_field: Field holding the caller-supplied identifier
        doc_type: Optional document kind tag for legacy clusters

    Returns:
        Flat list of 2N operations
    """
    if action not in WRITE_ACTIONS:
        raise ValueError(f"Unsupported bulk write action: {action!r}")

    operations: List[Any] = []
    for doc in documents:
        doc_id = document_id(doc, id_field)
        operations.append(_header(action, index, doc_id, doc_type))
        operations.append(doc)
    return operations


def encode_deletes(
    index: str,
    ids: Iterable[Any],
    doc_type: Optional[str] = None
) -> List[dict]:
    """Encode identifiers as header-only delete operations."""
    operations = []
    for doc_id in ids:
        check_id(doc_id)
        operations.append(_header("delete", index, doc_id, doc_type))
    return operations


def helper_actions(operations: Sequence[Any], per_item: int) -> Iterator[dict]:
    """
    Re-express an encoded request as ``elasticsearch.helpers`` actions.

    Args:
        operations: Encoded operations from ``encode_writes``/``encode_deletes``
        per_item: Entries per item (2 for writes, 1 for deletes)

    Yields:
        ``{"_op_type": ..., "_index": ..., "_id": ..., "_source": ...}`` dicts,
        in input order
    """
    for pos in range(0, len(operations), per_item):
        action, meta = next(iter(operations[pos].items()))
        entry = {"_op_type": action, **meta}
        if per_item == 2:
            entry["_source"] = operations[pos + 1]
        yield entry
