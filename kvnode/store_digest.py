"""Canonical store serialization and SHA-256 digest helpers."""

import hashlib
import json
from typing import Sequence

from common.types import Record, records_to_wire
from kvnode.exceptions import StoreSerializationError


def serialize_records(records: Sequence[Record]) -> bytes:
    """
    Serialize records to their canonical byte form.

    Compact JSON array in append order, UTF-8 encoded. An empty store
    serializes to b"[]".

    Args:
        records: Records in append order

    Returns:
        Canonical bytes

    Raises:
        StoreSerializationError: If a record cannot be encoded
    """
    try:
        text = json.dumps(
            records_to_wire(records),
            separators=(",", ":"),
            ensure_ascii=False
        )
        return text.encode("utf-8")
    except (TypeError, ValueError, AttributeError, UnicodeEncodeError) as e:
        raise StoreSerializationError(f"Failed to serialize store: {e}") from e


def compute_store_hash(records: Sequence[Record]) -> str:
    """
    Compute the SHA-256 digest of a record sequence.

    Args:
        records: Records in append order

    Returns:
        Lowercase hexadecimal digest
    """
    return hashlib.sha256(serialize_records(records)).hexdigest()

