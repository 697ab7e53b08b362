"""Unit tests for the per-peer liveness state machine."""

import pytest

from kvnode.peer_state import PeerState, ProbeOutcome

PEER_A = "http://localhost:8001"
PEER_B = "http://localhost:8002"


class TestInitialState:
    """Test the state of a freshly built map."""

    @pytest.mark.asyncio
    async def test_all_peers_start_down(self):
        state = PeerState([PEER_A, PEER_B])

        snapshot = await state.snapshot()

        assert set(snapshot) == {PEER_A, PEER_B}
        assert all(not s.alive and not s.transition_logged for s in snapshot.values())
        assert not await state.all_up()

    def test_addresses_keep_configured_order(self):
        state = PeerState([PEER_B, PEER_A])

        assert state.addresses == [PEER_B, PEER_A]


class TestTransitions:
    """Test Down/Up transitions and the one-shot flag."""

    @pytest.mark.asyncio
    async def test_first_ok_is_a_transition(self):
        state = PeerState([PEER_A])

        triggered = await state.apply_probe(PEER_A, ProbeOutcome.OK)

        status = await state.get(PEER_A)
        assert triggered is True
        assert status.alive and status.transition_logged
        assert status.last_probe_at is not None

    @pytest.mark.asyncio
    async def test_steady_up_does_not_retrigger(self):
        state = PeerState([PEER_A])
        await state.apply_probe(PEER_A, ProbeOutcome.OK)

        assert await state.apply_probe(PEER_A, ProbeOutcome.OK) is False
        assert await state.apply_probe(PEER_A, ProbeOutcome.OK) is False

    @pytest.mark.asyncio
    async def test_unreachable_resets_flag(self):
        state = PeerState([PEER_A])
        await state.apply_probe(PEER_A, ProbeOutcome.OK)

        triggered = await state.apply_probe(PEER_A, ProbeOutcome.UNREACHABLE)

        status = await state.get(PEER_A)
        assert triggered is False
        assert not status.alive
        assert not status.transition_logged

    @pytest.mark.asyncio
    async def test_up_down_up_triggers_twice(self):
        state = PeerState([PEER_A])

        results = [
            await state.apply_probe(PEER_A, outcome)
            for outcome in (
                ProbeOutcome.OK,
                ProbeOutcome.OK,
                ProbeOutcome.UNREACHABLE,
                ProbeOutcome.UNREACHABLE,
                ProbeOutcome.OK,
                ProbeOutcome.OK,
            )
        ]

        assert results == [True, False, False, False, True, False]

    @pytest.mark.asyncio
    async def test_not_ok_marks_down_but_keeps_flag(self):
        state = PeerState([PEER_A])
        await state.apply_probe(PEER_A, ProbeOutcome.OK)

        triggered = await state.apply_probe(PEER_A, ProbeOutcome.NOT_OK)

        status = await state.get(PEER_A)
        assert triggered is False
        assert not status.alive
        assert status.transition_logged

        assert await state.apply_probe(PEER_A, ProbeOutcome.OK) is False

    @pytest.mark.asyncio
    async def test_not_ok_from_initial_state_still_allows_first_sync(self):
        state = PeerState([PEER_A])

        await state.apply_probe(PEER_A, ProbeOutcome.NOT_OK)

        assert await state.apply_probe(PEER_A, ProbeOutcome.OK) is True

    @pytest.mark.asyncio
    async def test_unknown_peer_is_rejected(self):
        state = PeerState([PEER_A])

        with pytest.raises(KeyError):
            await state.apply_probe("http://stranger:9000", ProbeOutcome.OK)

        assert state.addresses == [PEER_A]

    @pytest.mark.asyncio
    async def test_all_up(self):
        state = PeerState([PEER_A, PEER_B])

        await state.apply_probe(PEER_A, ProbeOutcome.OK)
        assert not await state.all_up()

        await state.apply_probe(PEER_B, ProbeOutcome.OK)
        assert await state.all_up()


class TestInboundPings:
    """Test recording of pings received from peers."""

    @pytest.mark.asyncio
    async def test_known_peer_is_recorded(self):
        state = PeerState([PEER_A])

        assert await state.record_inbound_ping(PEER_A) is True
        assert (await state.get(PEER_A)).last_inbound_ping_at is not None

    @pytest.mark.asyncio
    async def test_unknown_peer_is_ignored(self):
        state = PeerState([PEER_A])

        assert await state.record_inbound_ping("http://stranger:9000") is False
        assert set(await state.snapshot()) == {PEER_A}

    @pytest.mark.asyncio
    async def test_inbound_ping_does_not_change_liveness(self):
        state = PeerState([PEER_A])

        await state.record_inbound_ping(PEER_A)

        status = await state.get(PEER_A)
        assert not status.alive
        assert not status.transition_logged
