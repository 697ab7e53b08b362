"""
Anti-entropy synchronizer.

Runs when a peer comes back up: compares whole-store digests and, if they
differ, overwrites the peer's store with ours.
"""

import asyncio
from enum import Enum
from typing import Dict

from common import metrics
from common.logging_config import get_logger
from kvnode.exceptions import PeerRequestError, StoreSerializationError
from kvnode.local_store import LocalStore
from kvnode.peer_client import PeerClient

logger = get_logger(__name__)


class SyncOutcome(str, Enum):
    """Result of one synchronization attempt."""
    IN_SYNC = "in_sync"
    PUSHED = "pushed"
    FAILED = "failed"


class AntiEntropySynchronizer:
    """
    Hash-compare-then-push reconciliation with a single peer.

    The push is a destructive overwrite of the peer's store, not a merge.
    Failed attempts are abandoned; the next attempt for that peer happens
    on its next Down->Up transition.
    """

    def __init__(self, store: LocalStore, client: PeerClient):
        """
        Args:
            store: The node's local store
            client: Client used to reach peers
        """
        self.store = store
        self.client = client
        self._peer_locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, peer: str) -> asyncio.Lock:
        lock = self._peer_locks.get(peer)
        if lock is None:
            lock = asyncio.Lock()
            self._peer_locks[peer] = lock
        return lock

    async def sync_if_divergent(self, peer: str) -> SyncOutcome:
        """
        Reconcile a peer with the local store.

        Steps:
        1. Snapshot the local store and hash it
        2. Fetch the peer's hash
        3. On mismatch, push the same snapshot to the peer

        Args:
            peer: Peer base URL

        Returns:
            SyncOutcome describing what happened
        """
        async with self._lock_for(peer):
            try:
                records, local_hash = await self.store.snapshot_with_hash()
            except StoreSerializationError as e:
                logger.error(f"Failed to compute local store hash: {e}")
                metrics.record_sync(failed=True)
                return SyncOutcome.FAILED

            try:
                peer_hash = await self.client.get_store_hash(peer)
            except PeerRequestError as e:
                logger.warning(f"Failed to get store hash from peer {peer}: {e}")
                metrics.record_sync(failed=True)
                return SyncOutcome.FAILED

            if peer_hash == local_hash:
                logger.info(f"Local store hash matches peer {peer}, no replication needed")
                return SyncOutcome.IN_SYNC

            logger.info(
                f"Local store hash {local_hash[:12]} does not match peer {peer} "
                f"hash {peer_hash[:12]}, replicating {len(records)} record(s)"
            )

            try:
                await self.client.replicate_all(peer, records)
            except PeerRequestError as e:
                logger.warning(f"Failed to replicate store to peer {peer}: {e}")
                metrics.record_sync(failed=True)
                return SyncOutcome.FAILED

            metrics.record_sync(pushed=True)
            logger.info(f"Successfully replicated store to peer {peer}")
            return SyncOutcome.PUSHED
