"""HTTP client for the peer-facing endpoints of other store nodes."""

import asyncio
from typing import Any, Dict, Optional, Sequence

import aiohttp

from common.constants import (
    PING_PATH,
    REPLICATE_PATH,
    REPLICATE_ALL_PATH,
    STORE_HASH_PATH
)
from common.logging_config import get_logger
from common.types import Record, records_to_wire
from kvnode.exceptions import PeerResponseError, PeerUnavailableError

logger = get_logger(__name__)


class PeerClient:
    """
    aiohttp client for node-to-node calls.

    Every request is bounded by the configured timeout. Transport failures
    and timeouts surface as PeerUnavailableError; non-200 answers and
    malformed bodies surface as PeerResponseError.
    """

    def __init__(self, timeout: float, advertise_addr: Optional[str] = None):
        """
        Initialize client with lazy session creation.

        Args:
            timeout: Per-request deadline in seconds
            advertise_addr: Our own base URL, sent as ?from= on pings
        """
        self.timeout = timeout
        self.advertise_addr = advertise_addr
        self._session: Optional[aiohttp.ClientSession] = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure the shared client session is open."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        peer: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        Send one request to a peer and decode its JSON body.

        Args:
            method: HTTP method
            peer: Peer base URL (e.g., 'http://localhost:8001')
            path: Endpoint path
            json: Optional JSON payload
            params: Optional query parameters

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            PeerUnavailableError: If the peer cannot be reached in time
            PeerResponseError: If the peer answers non-200 or with invalid JSON
        """
        session = self._ensure_session()
        url = f"{peer}{path}"

        try:
            async with session.request(method, url, json=json, params=params) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    raise PeerResponseError(
                        peer,
                        f"{method} {path} returned {resp.status}: {body[:200]}",
                        status=resp.status
                    )
                try:
                    return await resp.json(content_type=None)
                except ValueError as e:
                    raise PeerResponseError(
                        peer, f"{method} {path} returned invalid JSON: {e}", status=resp.status
                    ) from e
        except asyncio.TimeoutError as e:
            raise PeerUnavailableError(
                peer, f"{method} {path} timed out after {self.timeout}s"
            ) from e
        except aiohttp.ClientError as e:
            raise PeerUnavailableError(peer, f"{method} {path} failed: {e}") from e

    async def ping(self, peer: str) -> Dict[str, Any]:
        """
        Send a liveness probe.

        Returns:
            Decoded probe body (expected {"status": "ok"})
        """
        params = {"from": self.advertise_addr} if self.advertise_addr else None
        body = await self._request("GET", peer, PING_PATH, params=params)
        return body if isinstance(body, dict) else {}

    async def get_store_hash(self, peer: str) -> str:
        """
        Fetch a peer's store digest.

        Raises:
            PeerResponseError: If the body carries no string hash
        """
        body = await self._request("GET", peer, STORE_HASH_PATH)
        if not isinstance(body, dict) or not isinstance(body.get("hash"), str):
            raise PeerResponseError(peer, f"Malformed hash response: {body!r}")
        return body["hash"]

    async def replicate_record(self, peer: str, record: Record) -> None:
        """Send one record to a peer's single-record replication endpoint."""
        await self._request("POST", peer, REPLICATE_PATH, json=record.to_dict())

    async def replicate_all(self, peer: str, records: Sequence[Record]) -> None:
        """Overwrite a peer's store with the given ordered records."""
        await self._request("POST", peer, REPLICATE_ALL_PATH, json=records_to_wire(records))
