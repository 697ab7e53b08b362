"""Peer-facing routes: liveness, digests and inbound replication."""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from common.constants import (
    PING_OK_STATUS,
    PING_PATH,
    REPLICATE_ALL_PATH,
    REPLICATE_PATH,
    STORE_HASH_PATH
)
from common.logging_config import get_logger
from kvnode.peer_state import PeerState
from kvnode.replication_gateway import ReplicationGateway
from kvnode.routes.dependencies import get_gateway, get_peer_state
from kvnode.schemas.store import (
    HashResponse,
    KeyValueRequest,
    MessageResponse,
    PeerStatusResponse,
    PeersResponse,
    PingResponse
)

logger = get_logger(__name__)

router = APIRouter(tags=["Peers"])


@router.get(PING_PATH, response_model=PingResponse)
async def ping(
    sender: Optional[str] = Query(None, alias="from"),
    peer_state: PeerState = Depends(get_peer_state)
):
    """
    Liveness probe.

    When the caller identifies itself with ?from=<base url> and is a
    configured peer, the time of its ping is recorded.
    """
    if sender:
        known = await peer_state.record_inbound_ping(sender.rstrip("/"))
        if known:
            logger.debug(f"Received ping from {sender}")
        else:
            logger.debug(f"Received ping from unknown node {sender}")
    return PingResponse(status=PING_OK_STATUS, message="pong")


@router.post(REPLICATE_PATH, response_model=MessageResponse)
async def replicate_key_value(
    request: KeyValueRequest,
    gateway: ReplicationGateway = Depends(get_gateway)
):
    """Accept a single replicated record from a peer."""
    count = await gateway.replicate_key_value(request.to_record())
    return MessageResponse(message="Key-value pair replicated successfully", count=count)


@router.get(STORE_HASH_PATH, response_model=HashResponse)
async def store_hash(gateway: ReplicationGateway = Depends(get_gateway)):
    """Return the SHA-256 digest of the local store."""
    digest = await gateway.store.compute_hash()
    return HashResponse(hash=digest)


@router.post(REPLICATE_ALL_PATH, response_model=MessageResponse)
async def accept_replicate_all(
    records: List[KeyValueRequest] = Body(...),
    gateway: ReplicationGateway = Depends(get_gateway)
):
    """
    Replace the local store with a peer's full contents.

    The body is the ordered list of records; the previous contents are
    discarded.
    """
    count = await gateway.accept_replicate_all(item.to_record() for item in records)
    return MessageResponse(message="All key-value pairs replicated successfully", count=count)


@router.get("/peers", response_model=PeersResponse)
async def list_peers(peer_state: PeerState = Depends(get_peer_state)):
    """Return the liveness view of every configured peer."""
    snapshot = await peer_state.snapshot()
    peers = [PeerStatusResponse(**status.to_dict()) for status in snapshot.values()]
    return PeersResponse(peers=peers, all_up=all(p.alive for p in peers))
