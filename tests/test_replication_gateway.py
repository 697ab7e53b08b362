"""Unit tests for the write path and inbound replication."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from prometheus_client import REGISTRY

from common.types import Record
from kvnode.exceptions import KeyNotFoundError, PeerUnavailableError
from kvnode.local_store import LocalStore
from kvnode.replication_gateway import ReplicationGateway

PEER_A = "http://localhost:8001"
PEER_B = "http://localhost:8002"


@pytest.fixture
def client():
    client = Mock()
    client.replicate_record = AsyncMock()
    return client


class TestStoreKeyValue:
    """Test local writes and their fan-out."""

    @pytest.mark.asyncio
    async def test_appends_locally_and_fans_out_to_every_peer(self, client):
        store = LocalStore()
        gateway = ReplicationGateway(store, client, [PEER_A, PEER_B])

        record = await gateway.store_key_value("k", "v")
        await gateway.drain()

        assert record == Record("k", "v")
        assert await store.snapshot() == (Record("k", "v"),)
        called_peers = {call.args[0] for call in client.replicate_record.await_args_list}
        assert called_peers == {PEER_A, PEER_B}
        assert all(call.args[1] == record for call in client.replicate_record.await_args_list)

    @pytest.mark.asyncio
    async def test_returns_before_fan_out_completes(self, client):
        release = asyncio.Event()

        async def slow_replicate(peer, record):
            await release.wait()

        client.replicate_record.side_effect = slow_replicate
        gateway = ReplicationGateway(LocalStore(), client, [PEER_A, PEER_B])

        await asyncio.wait_for(gateway.store_key_value("k", "v"), timeout=1)

        assert gateway.pending_count == 2
        assert await gateway.get_value("k") == "v"

        release.set()
        await gateway.drain()
        assert gateway.pending_count == 0

    @pytest.mark.asyncio
    async def test_peer_failure_is_swallowed(self, client):
        before = REGISTRY.get_sample_value("kvnode_replication_failed_total") or 0

        async def replicate(peer, record):
            if peer == PEER_A:
                raise PeerUnavailableError(peer, "connection refused")

        client.replicate_record.side_effect = replicate
        store = LocalStore()
        gateway = ReplicationGateway(store, client, [PEER_A, PEER_B])

        await gateway.store_key_value("k", "v")
        await gateway.drain()

        assert await store.count() == 1
        assert client.replicate_record.await_count == 2
        assert REGISTRY.get_sample_value("kvnode_replication_failed_total") == before + 1

    @pytest.mark.asyncio
    async def test_unexpected_error_is_swallowed(self, client):
        client.replicate_record.side_effect = RuntimeError("unexpected")
        gateway = ReplicationGateway(LocalStore(), client, [PEER_A])

        await gateway.store_key_value("k", "v")
        await gateway.drain()

        assert gateway.pending_count == 0

    @pytest.mark.asyncio
    async def test_failed_replication_is_not_retried(self, client):
        client.replicate_record.side_effect = PeerUnavailableError(PEER_A, "refused")
        gateway = ReplicationGateway(LocalStore(), client, [PEER_A])

        await gateway.store_key_value("k", "v")
        await gateway.drain()
        await asyncio.sleep(0.01)

        client.replicate_record.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_peers_means_no_fan_out(self, client):
        gateway = ReplicationGateway(LocalStore(), client, [])

        await gateway.store_key_value("k", "v")

        assert gateway.pending_count == 0
        client.replicate_record.assert_not_awaited()


class TestInboundReplication:
    """Test records arriving from peers."""

    @pytest.mark.asyncio
    async def test_single_record_is_appended_without_fan_out(self, client):
        store = LocalStore([Record("k", "v")])
        gateway = ReplicationGateway(store, client, [PEER_A])

        count = await gateway.replicate_key_value(Record("k", "v"))

        assert count == 2
        assert gateway.pending_count == 0
        client.replicate_record.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_replicate_all_replaces_store(self, client):
        store = LocalStore([Record("old", "x")])
        gateway = ReplicationGateway(store, client, [PEER_A])

        count = await gateway.accept_replicate_all([Record("a", "1"), Record("b", "2")])

        assert count == 2
        assert await store.snapshot() == (Record("a", "1"), Record("b", "2"))
        client.replicate_record.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_replicate_all_accepts_a_generator(self, client):
        store = LocalStore()
        gateway = ReplicationGateway(store, client, [])

        await gateway.accept_replicate_all(Record(f"k{i}", "v") for i in range(3))

        assert await store.count() == 3


class TestGetValue:
    """Test lookups through the gateway."""

    @pytest.mark.asyncio
    async def test_first_match(self, client):
        gateway = ReplicationGateway(
            LocalStore([Record("k", "first"), Record("k", "second")]), client, []
        )

        assert await gateway.get_value("k") == "first"

    @pytest.mark.asyncio
    async def test_missing_key(self, client):
        gateway = ReplicationGateway(LocalStore(), client, [])

        with pytest.raises(KeyNotFoundError):
            await gateway.get_value("missing")
