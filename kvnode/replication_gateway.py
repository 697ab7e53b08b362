"""
Write path of the node.

Local writes are appended and then pushed to every peer in the background;
inbound replication from peers lands here too.
"""

import asyncio
from typing import Iterable, List, Set

from common import metrics
from common.logging_config import get_logger
from common.types import Record
from kvnode.exceptions import PeerRequestError
from kvnode.local_store import LocalStore
from kvnode.peer_client import PeerClient

logger = get_logger(__name__)


class ReplicationGateway:
    """
    Handles local writes, their fan-out and inbound replication.

    Fan-out is fire-and-forget: each peer gets its own task, outcomes are
    only logged and counted, and the caller never waits for them.
    """

    def __init__(self, store: LocalStore, client: PeerClient, peers: Iterable[str]):
        """
        Args:
            store: The node's local store
            client: Client used to reach peers
            peers: Configured peer addresses
        """
        self.store = store
        self.client = client
        self.peers: List[str] = list(peers)
        self._pending: Set[asyncio.Task] = set()

    async def store_key_value(self, key: str, value: str) -> Record:
        """
        Append a record locally and schedule its replication to every peer.

        Returns once the local append is done, regardless of peers.

        Args:
            key: Record key
            value: Record value

        Returns:
            The appended record
        """
        record = Record(key=key, value=value)
        count = await self.store.append(record)
        logger.info(f"Stored key {key!r} locally (count={count})")

        for peer in self.peers:
            task = asyncio.create_task(self._replicate_to_peer(peer, record))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        return record

    async def _replicate_to_peer(self, peer: str, record: Record) -> bool:
        try:
            await self.client.replicate_record(peer, record)
        except PeerRequestError as e:
            logger.warning(f"Failed to replicate key {record.key!r} to peer {peer}: {e}")
            metrics.record_replication(False)
            return False
        except Exception as e:
            logger.error(f"Unexpected error replicating to peer {peer}: {e}", exc_info=True)
            metrics.record_replication(False)
            return False

        logger.debug(f"Replicated key {record.key!r} to peer {peer}")
        metrics.record_replication(True)
        return True

    async def drain(self) -> None:
        """Wait for all outstanding fan-out tasks to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        """Number of fan-out tasks still running."""
        return len(self._pending)

    async def replicate_key_value(self, record: Record) -> int:
        """
        Accept a single record from a peer. No deduplication or versioning.

        Returns:
            Number of records after the append
        """
        count = await self.store.append(record)
        logger.info(f"Received and stored replicated key {record.key!r}")
        return count

    async def accept_replicate_all(self, records: Iterable[Record]) -> int:
        """
        Replace the local store with a peer's full ordered contents.

        Returns:
            Number of records after the replacement
        """
        count = await self.store.replace_all(records)
        logger.info(f"Received full store from peer, now holding {count} record(s)")
        return count

    async def get_value(self, key: str) -> str:
        """
        Value of the first record with the key.

        Raises:
            KeyNotFoundError: If the key is absent
        """
        return await self.store.get_value(key)
