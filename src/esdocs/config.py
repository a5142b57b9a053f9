"""
esdocs Config — Connection and Behavior Settings
================================================

All settings can be overridden via environment variables or by passing
values directly to ``load_config``.

Resolution order (later wins):
    1. Dataclass defaults
    2. Environment variables (``ES_URL``, ``ES_API_KEY``, ...)
    3. Explicit keyword arguments
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class StoreConfig:
    """Connection settings plus the knobs the services read."""

    url: str = "http://localhost:9200"
    api_key: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    verify_certs: bool = True
    request_timeout: float = 10.0

    # Document identity and bulk behavior
    id_field: str = "id"
    doc_type: Optional[str] = None
    bulk_chunk_size: Optional[int] = None
    refresh: Optional[str] = None

    @property
    def hosts(self) -> List[str]:
        """Return the node URLs as a list."""
        return [h.strip() for h in self.url.split(",") if h.strip()]

    @property
    def basic_auth(self) -> Optional[tuple]:
        if self.username and self.password:
            return (self.username, self.password)
        return None

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for the Elasticsearch client constructor."""
        kwargs: Dict[str, Any] = {
            "hosts": self.hosts,
            "verify_certs": self.verify_certs,
            "request_timeout": self.request_timeout,
        }

        if self.api_key:
            kwargs["api_key"] = self.api_key
        elif self.basic_auth:
            kwargs["basic_auth"] = self.basic_auth

        return kwargs


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(**overrides) -> StoreConfig:
    """
    Build a StoreConfig with env-var and keyword overrides.

    Supported env vars:
        ES_URL, ES_API_KEY, ES_USERNAME, ES_PASSWORD, ES_VERIFY_CERTS,
        ES_REQUEST_TIMEOUT, ES_ID_FIELD, ES_DOC_TYPE, ES_BULK_CHUNK_SIZE,
        ES_REFRESH

    Raises:
        TypeError: If an override names an unknown setting
    """
    cfg = StoreConfig()

    url = os.getenv("ES_URL")
    if url:
        cfg.url = url

    api_key = os.getenv("ES_API_KEY")
    if api_key:
        cfg.api_key = api_key

    username = os.getenv("ES_USERNAME")
    if username:
        cfg.username = username

    password = os.getenv("ES_PASSWORD")
    if password:
        cfg.password = password

    verify = os.getenv("ES_VERIFY_CERTS")
    if verify is not None:
        cfg.verify_certs = _env_bool(verify)

    timeout = os.getenv("ES_REQUEST_TIMEOUT")
    if timeout:
        cfg.request_timeout = float(timeout)

    id_field = os.getenv("ES_ID_FIELD")
    if id_field:
        cfg.id_field = id_field

    doc_type = os.getenv("ES_DOC_TYPE")
    if doc_type:
        cfg.doc_type = doc_type

    chunk = os.getenv("ES_BULK_CHUNK_SIZE")
    if chunk:
        cfg.bulk_chunk_size = int(chunk)

    refresh = os.getenv("ES_REFRESH")
    if refresh:
        cfg.refresh = refresh

    # Explicit overrides
    for key, value in overrides.items():
        if not hasattr(cfg, key) or isinstance(getattr(type(cfg), key, None), property):
            raise TypeError(f"Unknown config key: {key!r}")
        setattr(cfg, key, value)

    return cfg
