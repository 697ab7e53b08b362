import logging
import os
import sys
from typing import Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(node)s] - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class NodeContextFilter(logging.Filter):
    """Stamp every record with the address of the node that emitted it."""

    def __init__(self, node_address: str = '-'):
        super().__init__()
        self.node_address = node_address

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'node'):
            record.node = self.node_address
        return True


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    node_address: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Handlers are attached to the root logger so that module loggers obtained
    through get_logger(__name__) share the same output. Calling this again
    only updates the level and node address.

    Args:
        component_name: Name of the component (e.g., 'kvnode')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO
        node_address: Address of this node, included in every line

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    existing = [h for h in root.handlers if getattr(h, '_kvnode_handler', False)]
    if existing:
        for handler in existing:
            handler.setLevel(level)
            for f in handler.filters:
                if isinstance(f, NodeContextFilter) and node_address:
                    f.node_address = node_address
        return logging.getLogger(component_name)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(NodeContextFilter(node_address or '-'))
    handler._kvnode_handler = True

    root.addHandler(handler)

    return logging.getLogger(component_name)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """Flush and detach the handlers installed by setup_logging."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if getattr(handler, '_kvnode_handler', False):
            handler.flush()
            handler.close()
            root.removeHandler(handler)
