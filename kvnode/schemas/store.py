"""Pydantic schemas for the store and replication endpoints."""

from typing import Dict, List, Optional

from pydantic import BaseModel, StrictStr, field_validator

from common.types import Record


class KeyValueRequest(BaseModel):
    """Request model for a write or a single-record replication."""
    key: StrictStr
    value: StrictStr

    @field_validator("key", "value")
    @classmethod
    def encodable_as_utf8(cls, v: str) -> str:
        try:
            v.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("Must be encodable as UTF-8")
        return v

    def to_record(self) -> Record:
        return Record(key=self.key, value=self.value)


class StoreResponse(BaseModel):
    """Response model for a local write."""
    status: str
    key: str


class MessageResponse(BaseModel):
    """Response model for inbound replication."""
    message: str
    count: int


class HashResponse(BaseModel):
    """Response model for the store digest."""
    hash: str


class ValueResponse(BaseModel):
    """Response model for a key lookup."""
    value: str


class StoreDumpResponse(BaseModel):
    """Response model for the full store listing."""
    records: List[Dict[str, str]]
    count: int
    hash: str


class PingResponse(BaseModel):
    """Response model for the liveness probe."""
    status: str
    message: str


class PeerStatusResponse(BaseModel):
    """Liveness view of one peer."""
    address: str
    alive: bool
    transition_logged: bool
    last_probe_at: Optional[float] = None
    last_inbound_ping_at: Optional[float] = None


class PeersResponse(BaseModel):
    """Response model for the peer status listing."""
    peers: List[PeerStatusResponse]
    all_up: bool
