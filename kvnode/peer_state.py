"""Per-peer liveness bookkeeping for the fixed, startup-configured peer set."""

import asyncio
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional

from common.logging_config import get_logger

logger = get_logger(__name__)


class ProbeOutcome(str, Enum):
    """Classification of a single liveness probe."""
    OK = "ok"
    NOT_OK = "not_ok"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class PeerStatus:
    """
    Liveness view of one peer.

    Attributes:
        address: Peer base URL
        alive: Whether the last probe found the peer up
        transition_logged: Set on a Down->Up transition, cleared when the peer goes down
        last_probe_at: Epoch seconds of the last completed probe
        last_inbound_ping_at: Epoch seconds of the last ping received from this peer
    """
    address: str
    alive: bool = False
    transition_logged: bool = False
    last_probe_at: Optional[float] = None
    last_inbound_ping_at: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "alive": self.alive,
            "transition_logged": self.transition_logged,
            "last_probe_at": self.last_probe_at,
            "last_inbound_ping_at": self.last_inbound_ping_at,
        }


class PeerState:
    """
    Lock-guarded map of peer address -> PeerStatus.

    The key set is fixed at construction and never changes. All peers start
    Down.
    """

    def __init__(self, peers: Iterable[str]):
        """
        Args:
            peers: Configured peer addresses
        """
        self._peers: Dict[str, PeerStatus] = {
            address: PeerStatus(address=address) for address in peers
        }
        self.lock = asyncio.Lock()

    @property
    def addresses(self) -> List[str]:
        """Configured peer addresses in configuration order."""
        return list(self._peers.keys())

    async def apply_probe(self, peer: str, outcome: ProbeOutcome) -> bool:
        """
        Apply a probe result to a peer's state.

        Args:
            peer: Peer address
            outcome: Classified probe result

        Returns:
            True if this probe is a Down->Up transition that should trigger
            anti-entropy, False otherwise

        Raises:
            KeyError: If the peer is not configured
        """
        now = time.time()

        async with self.lock:
            current = self._peers[peer]

            if outcome is ProbeOutcome.UNREACHABLE:
                self._peers[peer] = replace(
                    current, alive=False, transition_logged=False, last_probe_at=now
                )
                if current.alive:
                    logger.info(f"Peer {peer} is down")
                return False

            if outcome is ProbeOutcome.NOT_OK:
                # Not fully up: the one-shot flag is left as is.
                self._peers[peer] = replace(current, alive=False, last_probe_at=now)
                return False

            triggered = not current.transition_logged
            self._peers[peer] = replace(
                current, alive=True, transition_logged=True, last_probe_at=now
            )

        if triggered:
            logger.info(f"Peer {peer} is up")
        return triggered

    async def record_inbound_ping(self, peer: str) -> bool:
        """
        Note that a configured peer pinged us.

        Unknown senders are ignored so the key set never grows.

        Returns:
            True if the sender is a configured peer
        """
        async with self.lock:
            current = self._peers.get(peer)
            if current is None:
                return False
            self._peers[peer] = replace(current, last_inbound_ping_at=time.time())
            return True

    async def get(self, peer: str) -> PeerStatus:
        async with self.lock:
            return self._peers[peer]

    async def snapshot(self) -> Dict[str, PeerStatus]:
        """Copy of the whole map."""
        async with self.lock:
            return dict(self._peers)

    async def all_up(self) -> bool:
        async with self.lock:
            return all(status.alive for status in self._peers.values())
