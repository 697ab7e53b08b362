"""Shared pytest fixtures for all tests."""

from typing import Dict, List, Optional, Sequence, Set

import pytest

from common.types import Record
from kvnode.config import NodeConfig
from kvnode.exceptions import PeerUnavailableError
from kvnode.node import Node


def build_config(
    peers: Sequence[str],
    port: int = 8000,
    ping_frequency: float = 15,
    ping_timeout: float = 20,
    advertise_addr: Optional[str] = None
) -> NodeConfig:
    return NodeConfig(
        host="127.0.0.1",
        port=port,
        peers=tuple(peers),
        ping_frequency=ping_frequency,
        ping_timeout=ping_timeout,
        advertise_addr=advertise_addr or f"http://localhost:{port}"
    )


class InProcessPeerClient:
    """
    Stand-in for PeerClient that delivers calls straight to other nodes of an
    InProcessCluster.

    Addresses that are not in the cluster, or are marked unreachable, raise
    PeerUnavailableError like a refused connection would.
    """

    def __init__(self, cluster: "InProcessCluster"):
        self.cluster = cluster
        self.calls: List[tuple] = []
        self.closed = False

    def _target(self, peer: str) -> Node:
        if peer in self.cluster.unreachable or peer not in self.cluster.nodes:
            raise PeerUnavailableError(peer, "connection refused")
        return self.cluster.nodes[peer]

    async def ping(self, peer: str) -> dict:
        self.calls.append(("ping", peer))
        self._target(peer)
        return {"status": "ok", "message": "pong"}

    async def get_store_hash(self, peer: str) -> str:
        self.calls.append(("get_store_hash", peer))
        return await self._target(peer).store.compute_hash()

    async def replicate_record(self, peer: str, record: Record) -> None:
        self.calls.append(("replicate_record", peer, record))
        await self._target(peer).gateway.replicate_key_value(record)

    async def replicate_all(self, peer: str, records: Sequence[Record]) -> None:
        self.calls.append(("replicate_all", peer, tuple(records)))
        await self._target(peer).gateway.accept_replicate_all(records)

    async def close(self) -> None:
        self.closed = True

    def calls_named(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


class InProcessCluster:
    """A set of nodes in one event loop, wired through InProcessPeerClient."""

    def __init__(self):
        self.nodes: Dict[str, Node] = {}
        self.unreachable: Set[str] = set()

    def add_node(self, address: str, peers: Sequence[str], **config_kwargs) -> Node:
        config = build_config(peers=peers, advertise_addr=address, **config_kwargs)
        node = Node(config, client=InProcessPeerClient(self))
        self.nodes[address] = node
        return node


@pytest.fixture
def make_config():
    """
    Factory for NodeConfig instances.

    Returns:
        build_config function
    """
    return build_config


@pytest.fixture
def cluster():
    """
    Create an empty in-process cluster.

    Returns:
        InProcessCluster instance
    """
    return InProcessCluster()
