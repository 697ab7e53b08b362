"""Node aggregate: wires the store, peer state and background services together."""

from typing import Optional

from common.logging_config import get_logger
from kvnode.anti_entropy import AntiEntropySynchronizer
from kvnode.config import NodeConfig
from kvnode.liveness_prober import LivenessProber
from kvnode.local_store import LocalStore
from kvnode.peer_client import PeerClient
from kvnode.peer_state import PeerState
from kvnode.replication_gateway import ReplicationGateway

logger = get_logger(__name__)


class Node:
    """
    One store node and everything it owns.

    Created once at startup. start() launches the probe loop; stop() halts
    it, waits for in-flight replication and closes the peer client.
    """

    def __init__(self, config: NodeConfig, client: Optional[PeerClient] = None):
        """
        Args:
            config: Validated startup configuration
            client: Peer client to use instead of the default aiohttp one
        """
        self.config = config
        self.store = LocalStore()
        self.peer_state = PeerState(config.peers)
        self.client = client or PeerClient(
            timeout=config.ping_timeout,
            advertise_addr=config.advertise_addr
        )
        self.gateway = ReplicationGateway(self.store, self.client, config.peers)
        self.synchronizer = AntiEntropySynchronizer(self.store, self.client)
        self.prober = LivenessProber(
            peer_state=self.peer_state,
            client=self.client,
            synchronizer=self.synchronizer,
            interval=config.ping_frequency
        )

    async def start(self):
        """Start background liveness probing."""
        logger.info(
            f"Starting node on port {self.config.port} with peers: {list(self.config.peers)} "
            f"[pingfreq={self.config.ping_frequency}s, timeout={self.config.ping_timeout}s]"
        )
        await self.prober.start()

    async def stop(self):
        """Stop probing, wait for anti-entropy and fan-out, release the client."""
        await self.prober.stop()
        await self.gateway.drain()
        await self.client.close()
        logger.info("Node stopped")
