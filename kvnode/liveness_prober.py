"""Periodic liveness probing of the configured peers."""

import asyncio
import time
from typing import Dict, Optional, Set

from common import metrics
from common.constants import PING_OK_STATUS
from common.logging_config import get_logger
from kvnode.anti_entropy import AntiEntropySynchronizer
from kvnode.exceptions import PeerResponseError, PeerUnavailableError
from kvnode.peer_client import PeerClient
from kvnode.peer_state import PeerState, ProbeOutcome

logger = get_logger(__name__)


class LivenessProber:
    """
    Probes every peer once per interval, concurrently.

    Feeds each result into PeerState and starts anti-entropy for peers that
    just came up. Logs a one-shot event when every peer is up at once.
    """

    def __init__(
        self,
        peer_state: PeerState,
        client: PeerClient,
        synchronizer: AntiEntropySynchronizer,
        interval: float
    ):
        """
        Args:
            peer_state: Shared peer liveness map
            client: Client used for probes
            synchronizer: Anti-entropy run on Down->Up transitions
            interval: Seconds between the starts of consecutive cycles
        """
        self.peer_state = peer_state
        self.client = client
        self.synchronizer = synchronizer
        self.interval = interval
        self.all_up_logged = False
        self.running = False
        self.task: Optional[asyncio.Task] = None
        self._sync_tasks: Set[asyncio.Task] = set()

    async def start(self):
        """Start the probe loop."""
        if self.running:
            logger.warning("Liveness prober already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._probe_loop())
        logger.info(
            f"Liveness prober started [interval={self.interval}s, "
            f"peers={len(self.peer_state.addresses)}]"
        )

    async def stop(self):
        """Stop the probe loop and wait for in-flight anti-entropy."""
        if self.running:
            self.running = False

            if self.task:
                self.task.cancel()
                try:
                    await self.task
                except asyncio.CancelledError:
                    pass
                self.task = None

            logger.info("Liveness prober stopped")

        await self.drain()

    async def drain(self) -> None:
        """Wait for all anti-entropy tasks started by probes to finish."""
        while self._sync_tasks:
            await asyncio.gather(*list(self._sync_tasks), return_exceptions=True)

    @property
    def pending_syncs(self) -> int:
        """Number of anti-entropy tasks still running."""
        return len(self._sync_tasks)

    async def _probe_loop(self):
        """Run a cycle every interval seconds, measured start to start."""
        while self.running:
            start_time = time.monotonic()

            try:
                await self.probe_cycle()
            except Exception as e:
                logger.error(f"Error in probe cycle: {e}", exc_info=True)

            elapsed = time.monotonic() - start_time
            await asyncio.sleep(max(0.0, self.interval - elapsed))

    async def probe_cycle(self) -> Dict[str, ProbeOutcome]:
        """
        Probe all peers concurrently and update the all-up flag.

        Returns:
            Mapping of peer address -> probe outcome
        """
        peers = self.peer_state.addresses

        results = await asyncio.gather(
            *(self._probe_peer(peer) for peer in peers),
            return_exceptions=True
        )

        outcomes: Dict[str, ProbeOutcome] = {}
        for peer, result in zip(peers, results):
            if isinstance(result, BaseException):
                logger.error(f"Probe task for {peer} crashed: {result!r}")
                continue
            outcomes[peer] = result

        await self._update_all_up()
        return outcomes

    async def _probe_peer(self, peer: str) -> ProbeOutcome:
        """
        Probe one peer and act on the result.

        A Down->Up transition starts anti-entropy as a background task, so
        a slow hash fetch or push never holds up the next cycle.
        """
        outcome = await self._classify(peer)
        metrics.record_probe(outcome is ProbeOutcome.OK)

        triggered = await self.peer_state.apply_probe(peer, outcome)

        if triggered:
            self._start_sync(peer)

        return outcome

    def _start_sync(self, peer: str) -> None:
        task = asyncio.create_task(self._run_sync(peer))
        self._sync_tasks.add(task)
        task.add_done_callback(self._sync_tasks.discard)

    async def _run_sync(self, peer: str) -> None:
        try:
            await self.synchronizer.sync_if_divergent(peer)
        except Exception as e:
            logger.error(f"Anti-entropy with peer {peer} crashed: {e}", exc_info=True)

    async def _classify(self, peer: str) -> ProbeOutcome:
        try:
            body = await self.client.ping(peer)
        except PeerUnavailableError as e:
            logger.warning(f"Peer {peer} is unreachable: {e}")
            return ProbeOutcome.UNREACHABLE
        except PeerResponseError as e:
            logger.warning(f"Peer {peer} responded with status: {e.status}")
            return ProbeOutcome.NOT_OK

        if body.get("status") != PING_OK_STATUS:
            logger.warning(f"Peer {peer} answered ping without ok status: {body!r}")
            return ProbeOutcome.NOT_OK

        logger.debug(f"Peer {peer} answered ping")
        return ProbeOutcome.OK

    async def _update_all_up(self):
        if await self.peer_state.all_up():
            if not self.all_up_logged:
                logger.info("All peers are up")
                self.all_up_logged = True
        else:
            self.all_up_logged = False
