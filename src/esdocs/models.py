"""
esdocs Models — Operation Outcomes
==================================

Value types returned by the services on success. Failures are raised as
``esdocs.errors.StoreError`` instead.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .errors import normalize


@dataclass(frozen=True)
class PersistedDocument:
    """Result of a single write. ``result`` is ``created`` or ``updated``."""

    index: str
    id: str
    result: str
    version: Optional[int] = None

    @classmethod
    def from_response(cls, response: dict) -> "PersistedDocument":
        return cls(
            index=response.get("_index", ""),
            id=str(response.get("_id", "")),
            result=response.get("result", ""),
            version=response.get("_version")
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DeletedDocument:
    """Result of a single delete."""

    index: str
    id: str
    result: str = "deleted"
    version: Optional[int] = None

    @classmethod
    def from_response(cls, response: dict) -> "DeletedDocument":
        return cls(
            index=response.get("_index", ""),
            id=str(response.get("_id", "")),
            result=response.get("result", "deleted"),
            version=response.get("_version")
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BulkItem:
    """
    Outcome of one entry in a bulk request.

    An item failed when the engine attached an error object to it. The
    error is reported as a taxonomy tag and reason, never the raw object.
    """

    action: str
    index: str
    id: str
    status: int
    result: Optional[str] = None
    error: Optional[str] = None
    reason: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def from_response_item(cls, item: Dict[str, Any]) -> "BulkItem":
        """
        Build from one element of a bulk response ``items`` list.

        Args:
            item: Mapping of a single action name to its metadata,
                e.g. ``{"index": {"_id": "1", "status": 201, ...}}``
        """
        action, meta = next(iter(item.items()))
        error = reason = None
        if meta.get("error"):
            normalized = normalize(meta)
            error = normalized.tag.value
            reason = normalized.reason
        return cls(
            action=action,
            index=meta.get("_index", ""),
            id=str(meta.get("_id", "")),
            status=int(meta.get("status", 0)),
            result=meta.get("result"),
            error=error,
            reason=reason
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BulkResult:
    """Ordered per-item outcomes of a bulk operation."""

    items: List[BulkItem] = field(default_factory=list)
    had_errors: bool = False
    took: int = 0

    @classmethod
    def from_response(cls, response: dict) -> "BulkResult":
        items = [BulkItem.from_response_item(it) for it in response.get("items", [])]
        had_errors = bool(response.get("errors")) or any(it.failed for it in items)
        return cls(items=items, had_errors=had_errors, took=int(response.get("took", 0)))

    @property
    def failed(self) -> List[BulkItem]:
        return [it for it in self.items if it.failed]

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        return {
            "took": self.took,
            "had_errors": self.had_errors,
            "items": [it.to_dict() for it in self.items]
        }
