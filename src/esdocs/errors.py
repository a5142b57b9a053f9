"""
esdocs Errors — Engine Failure Normalization
============================================

Every failure that leaves a service is a ``StoreError`` carrying one tag
from a small closed taxonomy:

    Tag                   Meaning                                   Status
    InvalidIndexName      engine rejected the index name            400
    AlreadyExists         index name collision                      409
    IndexNotFound         target index does not exist               404
    DocumentNotFound      index exists, document does not           404
    MissingIdentifier     document has no id (nothing was sent)     400
    InvalidMapping        mapping incompatible with the index       400
    PartialBulkFailure    strict bulk call had a failing item       500
    UnknownEngineError    anything else, connectivity included      500

Engine failures come in several shapes depending on client version and
call site (``ApiError`` with a structured body, transport errors with only
a message, bulk item metadata dicts). ``normalize`` folds all of them into
a ``StoreError`` and never raises itself.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class ErrorTag(str, Enum):
    INVALID_INDEX_NAME = "InvalidIndexName"
    ALREADY_EXISTS = "AlreadyExists"
    INDEX_NOT_FOUND = "IndexNotFound"
    DOCUMENT_NOT_FOUND = "DocumentNotFound"
    MISSING_IDENTIFIER = "MissingIdentifier"
    INVALID_MAPPING = "InvalidMapping"
    PARTIAL_BULK_FAILURE = "PartialBulkFailure"
    UNKNOWN_ENGINE_ERROR = "UnknownEngineError"

    @property
    def status(self) -> int:
        return _STATUS[self]

    @property
    def default_reason(self) -> str:
        return _DEFAULT_REASON[self]


_STATUS = {
    ErrorTag.INVALID_INDEX_NAME: 400,
    ErrorTag.ALREADY_EXISTS: 409,
    ErrorTag.INDEX_NOT_FOUND: 404,
    ErrorTag.DOCUMENT_NOT_FOUND: 404,
    ErrorTag.MISSING_IDENTIFIER: 400,
    ErrorTag.INVALID_MAPPING: 400,
    ErrorTag.PARTIAL_BULK_FAILURE: 500,
    ErrorTag.UNKNOWN_ENGINE_ERROR: 500,
}

_DEFAULT_REASON = {
    ErrorTag.INVALID_INDEX_NAME: "Index name was invalid",
    ErrorTag.ALREADY_EXISTS: "Index already exists",
    ErrorTag.INDEX_NOT_FOUND: "Index not found",
    ErrorTag.DOCUMENT_NOT_FOUND: "Document not found",
    ErrorTag.MISSING_IDENTIFIER: "Document requires an id attribute for indexing",
    ErrorTag.INVALID_MAPPING: "Invalid mapping",
    ErrorTag.PARTIAL_BULK_FAILURE: "Bulk operation failed for one or more documents",
    ErrorTag.UNKNOWN_ENGINE_ERROR: "Unknown engine error",
}

# Engine error-type strings -> taxonomy
ENGINE_ERROR_TYPES: Dict[str, ErrorTag] = {
    "invalid_index_name_exception": ErrorTag.INVALID_INDEX_NAME,
    "resource_already_exists_exception": ErrorTag.ALREADY_EXISTS,
    "index_already_exists_exception": ErrorTag.ALREADY_EXISTS,
    "index_not_found_exception": ErrorTag.INDEX_NOT_FOUND,
    "document_missing_exception": ErrorTag.DOCUMENT_NOT_FOUND,
    "mapper_parsing_exception": ErrorTag.INVALID_MAPPING,
    "mapper_exception": ErrorTag.INVALID_MAPPING,
    "strict_dynamic_mapping_exception": ErrorTag.INVALID_MAPPING,
}


class StoreError(Exception):
    """
    Normalized service failure.

    Attributes:
        tag: One of ``ErrorTag``
        reason: Human-readable reason (engine reason when one was available)
        status: HTTP-style status code
    """

    def __init__(
        self,
        tag: ErrorTag,
        reason: Optional[str] = None,
        status: Optional[int] = None
    ):
        self.tag = ErrorTag(tag)
        self.reason = reason or self.tag.default_reason
        self.status = status or self.tag.status
        super().__init__(f"{self.tag.value}: {self.reason}")

    def to_dict(self) -> dict:
        return {
            "error": self.tag.value,
            "reason": self.reason,
            "status": self.status
        }


def _body_of(failure: Any) -> Any:
    """Pull the response body out of an exception or raw mapping."""
    if isinstance(failure, Mapping):
        return failure.get("body", failure)
    body = getattr(failure, "body", None)
    if body is None:
        body = getattr(failure, "info", None)
    return body


def _error_fields(body: Any) -> Tuple[Optional[str], Optional[str]]:
    """Return (type, reason) from a body shaped like ``{"error": {...}}``."""
    if not isinstance(body, Mapping):
        return None, None
    error = body.get("error", body)
    if isinstance(error, str):
        return None, error
    if not isinstance(error, Mapping):
        return None, None
    err_type = error.get("type")
    reason = error.get("reason")
    # root_cause carries the specific type when the top level is generic
    if err_type is None:
        for cause in error.get("root_cause") or []:
            if isinstance(cause, Mapping) and cause.get("type"):
                err_type = cause["type"]
                reason = reason or cause.get("reason")
                break
    return err_type, reason


def _classify(
    failure: Any,
    type_overrides: Optional[Mapping[str, ErrorTag]]
) -> StoreError:
    body = _body_of(failure)
    err_type, reason = _error_fields(body)

    table = dict(ENGINE_ERROR_TYPES)
    if type_overrides:
        table.update(type_overrides)

    if err_type in table:
        return StoreError(table[err_type], reason)

    # Missing documents answer 404 without an error object:
    # delete -> result=not_found, get -> found=false
    if isinstance(body, Mapping) and (
        body.get("result") == "not_found" or body.get("found") is False
    ):
        return StoreError(ErrorTag.DOCUMENT_NOT_FOUND)

    if reason is None and isinstance(failure, BaseException):
        reason = str(failure) or None
    return StoreError(ErrorTag.UNKNOWN_ENGINE_ERROR, reason)


def normalize(
    failure: Any,
    type_overrides: Optional[Mapping[str, ErrorTag]] = None
) -> StoreError:
    """
    Map any engine failure onto the closed taxonomy.

    Args:
        failure: Exception, response body, or bulk item metadata
        type_overrides: Extra engine type -> tag entries for this call only

    Returns:
        A StoreError. Unrecognized shapes become UnknownEngineError.
    """
    if isinstance(failure, StoreError):
        return failure
    try:
        return _classify(failure, type_overrides)
    except Exception:
        logger.debug("Unclassifiable engine failure: %r", failure)
        return StoreError(ErrorTag.UNKNOWN_ENGINE_ERROR)


def raw_payload(failure: Any) -> Any:
    """Best-effort raw payload of a failure, for logging only."""
    body = _body_of(failure)
    if body is not None:
        return body
    return repr(failure)


@contextmanager
def engine_errors(
    operation: str,
    type_overrides: Optional[Mapping[str, ErrorTag]] = None
) -> Iterator[None]:
    """
    Log and normalize anything raised inside the block.

    Example:
        with engine_errors("deleteIndex"):
            await engine.delete_index(name)
    """
    try:
        yield
    except StoreError:
        raise
    except Exception as exc:
        logger.warning("%s error: %s", operation, raw_payload(exc))
        raise normalize(exc, type_overrides) from None
