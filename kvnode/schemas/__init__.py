"""Pydantic schemas for API requests and responses."""

from kvnode.schemas.store import (
    KeyValueRequest,
    StoreResponse,
    MessageResponse,
    HashResponse,
    ValueResponse,
    StoreDumpResponse,
    PingResponse,
    PeerStatusResponse,
    PeersResponse
)
from kvnode.schemas.common import ErrorResponse

__all__ = [
    "KeyValueRequest",
    "StoreResponse",
    "MessageResponse",
    "HashResponse",
    "ValueResponse",
    "StoreDumpResponse",
    "PingResponse",
    "PeerStatusResponse",
    "PeersResponse",
    "ErrorResponse"
]
