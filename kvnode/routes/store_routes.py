"""Client-facing store routes: writes, lookups and the store listing."""

from fastapi import APIRouter, Depends, Query

from common.constants import STORE_KEY_PATH, STORE_PATH
from common.types import records_to_wire
from kvnode.replication_gateway import ReplicationGateway
from kvnode.routes.dependencies import get_gateway
from kvnode.schemas.common import ErrorResponse
from kvnode.schemas.store import (
    KeyValueRequest,
    StoreDumpResponse,
    StoreResponse,
    ValueResponse
)

router = APIRouter(tags=["Store"])


@router.post(STORE_PATH, response_model=StoreResponse)
async def store_key_value(
    request: KeyValueRequest,
    gateway: ReplicationGateway = Depends(get_gateway)
):
    """
    Store a key/value pair and replicate it to all peers.

    Parameters:
        - key: Record key
        - value: Record value

    Returns:
        - status: "stored" once the local append is done
        - key: The stored key

    Replication to peers happens in the background; its outcome does not
    affect the response.
    """
    record = await gateway.store_key_value(request.key, request.value)
    return StoreResponse(status="stored", key=record.key)


@router.get(
    STORE_KEY_PATH,
    response_model=ValueResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_value(
    key: str = Query(..., description="Key to look up"),
    gateway: ReplicationGateway = Depends(get_gateway)
):
    """
    Return the value of the first record stored under the key.

    Raises:
        - 404: Key not found
    """
    value = await gateway.get_value(key)
    return ValueResponse(value=value)


@router.get(STORE_PATH, response_model=StoreDumpResponse)
async def list_records(gateway: ReplicationGateway = Depends(get_gateway)):
    """Return every record in append order, with the store hash."""
    records, digest = await gateway.store.snapshot_with_hash()
    return StoreDumpResponse(
        records=records_to_wire(records),
        count=len(records),
        hash=digest
    )
