"""Project-wide constants (default intervals, timeouts, peer endpoint paths)."""

DEFAULT_NODE_HOST: str = "0.0.0.0"

DEFAULT_PING_FREQUENCY_SECONDS: int = 15
DEFAULT_PING_TIMEOUT_SECONDS: int = 20

PING_OK_STATUS: str = "ok"

# Peer-facing endpoint paths, shared by the server routes and PeerClient.
PING_PATH: str = "/ping"
STORE_PATH: str = "/store"
REPLICATE_PATH: str = "/replicate"
STORE_HASH_PATH: str = "/store/hash"
STORE_KEY_PATH: str = "/store/key"
REPLICATE_ALL_PATH: str = "/replicateAll"
