"""Configuration settings for a store node: env vars, overridable by CLI flags."""

import argparse
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from common.constants import (
    DEFAULT_NODE_HOST,
    DEFAULT_PING_FREQUENCY_SECONDS,
    DEFAULT_PING_TIMEOUT_SECONDS
)
from kvnode.exceptions import InvalidConfigError


NODE_HOST = os.environ.get("KV_NODE_HOST", DEFAULT_NODE_HOST)

NODE_PORT = os.environ.get("KV_NODE_PORT", "")

PEERS = os.environ.get("KV_PEERS", "")

PING_FREQUENCY = os.environ.get("KV_PING_FREQUENCY", str(DEFAULT_PING_FREQUENCY_SECONDS))
PING_TIMEOUT = os.environ.get("KV_PING_TIMEOUT", str(DEFAULT_PING_TIMEOUT_SECONDS))

ADVERTISE_ADDR = os.environ.get("KV_ADVERTISE_ADDR", "")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class NodeConfig:
    """
    Immutable startup configuration of a node.

    Attributes:
        host: Interface to bind
        port: Listening port
        peers: Fixed peer base URLs, in configured order
        ping_frequency: Seconds between probe cycles
        ping_timeout: Per-request deadline in seconds
        advertise_addr: Our own base URL as peers should see it
        log_level: Logging level name
    """
    host: str
    port: int
    peers: Tuple[str, ...]
    ping_frequency: float
    ping_timeout: float
    advertise_addr: str
    log_level: str = "INFO"


def parse_peers(raw: str) -> Tuple[str, ...]:
    """
    Split a comma-separated peer list.

    Blank entries are dropped, trailing slashes stripped and duplicates
    removed while keeping the first occurrence.

    Raises:
        InvalidConfigError: If no peers remain or an entry is not an http(s) URL
    """
    peers: List[str] = []
    for entry in raw.split(","):
        peer = entry.strip().rstrip("/")
        if not peer:
            continue
        if not peer.startswith(("http://", "https://")):
            raise InvalidConfigError(
                f"Invalid peer address {peer!r}: expected http://host:port"
            )
        if peer not in peers:
            peers.append(peer)

    if not peers:
        raise InvalidConfigError("Peers address must be provided")

    return tuple(peers)


def _parse_port(raw) -> int:
    if raw is None or str(raw).strip() == "":
        raise InvalidConfigError("Port must be provided")
    try:
        port = int(raw)
    except (TypeError, ValueError):
        raise InvalidConfigError(f"Invalid port: {raw!r}")
    if not 1 <= port <= 65535:
        raise InvalidConfigError(f"Port out of range: {port}")
    return port


def _parse_seconds(name: str, raw) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidConfigError(f"Invalid {name} value: {raw!r}")
    if value <= 0:
        raise InvalidConfigError(f"{name} must be positive, got {value}")
    return value


def _parse_log_level(raw) -> str:
    level = str(raw).strip().upper()
    if level not in LOG_LEVELS:
        raise InvalidConfigError(f"Invalid log level: {raw!r}")
    return level


def build_parser() -> argparse.ArgumentParser:
    """Command-line flags; every flag defaults to its environment variable."""
    parser = argparse.ArgumentParser(description="Replicated key/value store node")
    parser.add_argument("--host", default=NODE_HOST, help="Interface to bind")
    parser.add_argument("--port", default=NODE_PORT, help="Port on which the node listens")
    parser.add_argument(
        "--peers",
        default=PEERS,
        help="Comma-separated list of peer nodes (example: http://localhost:8001,http://localhost:8002)"
    )
    parser.add_argument(
        "--pingfreq",
        default=PING_FREQUENCY,
        help="Frequency of pinging peers in seconds"
    )
    parser.add_argument("--timeout", default=PING_TIMEOUT, help="Timeout for peer requests in seconds")
    parser.add_argument(
        "--advertise-addr",
        default=ADVERTISE_ADDR,
        help="Base URL peers use to reach this node (default: http://localhost:<port>)"
    )
    parser.add_argument("--log-level", default=LOG_LEVEL, help="DEBUG, INFO, WARNING or ERROR")
    return parser


def load_config(argv: Optional[Sequence[str]] = None) -> NodeConfig:
    """
    Build and validate the node configuration.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Validated NodeConfig

    Raises:
        InvalidConfigError: If any setting is missing or invalid
    """
    args = build_parser().parse_args(argv)

    port = _parse_port(args.port)
    advertise_addr = (args.advertise_addr or f"http://localhost:{port}").rstrip("/")

    return NodeConfig(
        host=args.host,
        port=port,
        peers=parse_peers(args.peers or ""),
        ping_frequency=_parse_seconds("ping frequency", args.pingfreq),
        ping_timeout=_parse_seconds("timeout", args.timeout),
        advertise_addr=advertise_addr,
        log_level=_parse_log_level(args.log_level)
    )
