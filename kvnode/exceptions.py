"""Custom exception classes for the store node."""

from typing import Optional


class KVNodeError(Exception):
    """
    Base exception class for all node errors.
    """
    pass


class KeyNotFoundError(KVNodeError):
    """
    Raised when no record in the local store matches a requested key.
    """
    pass


class StoreSerializationError(KVNodeError):
    """
    Raised when the local store cannot be serialized for hashing or transfer.
    """
    pass


class InvalidConfigError(KVNodeError):
    """
    Raised when startup configuration is missing or invalid.
    """
    pass


class PeerRequestError(KVNodeError):
    """
    Base class for failed outbound requests to a peer node.
    """

    def __init__(self, peer: str, message: str):
        super().__init__(f"{peer}: {message}")
        self.peer = peer


class PeerUnavailableError(PeerRequestError):
    """
    Raised when a peer cannot be reached or does not answer in time.
    """
    pass


class PeerResponseError(PeerRequestError):
    """
    Raised when a peer answers with a non-success status or a malformed body.
    """

    def __init__(self, peer: str, message: str, status: Optional[int] = None):
        super().__init__(peer, message)
        self.status = status
