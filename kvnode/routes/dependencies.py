"""FastAPI dependencies resolving the node attached to the running app."""

from fastapi import HTTPException, Request, status

from kvnode.node import Node
from kvnode.peer_state import PeerState
from kvnode.replication_gateway import ReplicationGateway


def get_node(request: Request) -> Node:
    """Dependency to get the node served by this app"""
    node = getattr(request.app.state, "node", None)
    if node is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Node not initialized"
        )
    return node


def get_gateway(request: Request) -> ReplicationGateway:
    """Dependency to get the node's replication gateway"""
    return get_node(request).gateway


def get_peer_state(request: Request) -> PeerState:
    """Dependency to get the node's peer state"""
    return get_node(request).peer_state
