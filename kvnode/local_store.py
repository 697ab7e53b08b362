"""In-memory, append-ordered record store owned by a single node."""

import asyncio
from typing import Iterable, List, Optional, Tuple

from common.logging_config import get_logger
from common.types import Record
from kvnode.exceptions import KeyNotFoundError
from kvnode.store_digest import compute_store_hash

logger = get_logger(__name__)


class LocalStore:
    """
    Ordered sequence of records guarded by an asyncio lock.

    Append order is significant: it drives serialization and therefore the
    store hash. Every read and write goes through the lock, and reads hand
    out immutable snapshots rather than the live list.
    """

    def __init__(self, records: Optional[Iterable[Record]] = None):
        """
        Initialize the store.

        Args:
            records: Optional initial records, in append order
        """
        self._records: List[Record] = list(records or [])
        self.lock = asyncio.Lock()

    async def append(self, record: Record) -> int:
        """
        Append a record. Duplicate keys are kept.

        Args:
            record: Record to append

        Returns:
            Number of records after the append
        """
        async with self.lock:
            self._records.append(record)
            count = len(self._records)
        logger.debug(f"Appended record key={record.key!r} (count={count})")
        return count

    async def replace_all(self, records: Iterable[Record]) -> int:
        """
        Replace the whole store with the given sequence.

        Applying the same sequence twice leaves the same store.

        Args:
            records: New contents, in order

        Returns:
            Number of records after the replacement
        """
        new_records = list(records)
        async with self.lock:
            self._records = new_records
        return len(new_records)

    async def snapshot(self) -> Tuple[Record, ...]:
        """Return the current contents in append order."""
        async with self.lock:
            return tuple(self._records)

    async def snapshot_with_hash(self) -> Tuple[Tuple[Record, ...], str]:
        """
        Return a snapshot together with its digest.

        The hash is computed over the same immutable tuple that is
        returned, so it describes exactly that sequence.

        Raises:
            StoreSerializationError: If the snapshot cannot be serialized
        """
        async with self.lock:
            records = tuple(self._records)
        return records, compute_store_hash(records)

    async def compute_hash(self) -> str:
        """Digest of the current contents."""
        _, digest = await self.snapshot_with_hash()
        return digest

    async def get_value(self, key: str) -> str:
        """
        Look up the value of the first record, in append order, with the key.

        Args:
            key: Key to look up

        Returns:
            Value of the first matching record

        Raises:
            KeyNotFoundError: If no record has the key
        """
        async with self.lock:
            for record in self._records:
                if record.key == key:
                    return record.value
        raise KeyNotFoundError(f"Key not found: {key}")

    async def count(self) -> int:
        """Number of records currently held."""
        async with self.lock:
            return len(self._records)
