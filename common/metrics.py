"""
Prometheus counters for the node.

Counters are created once per process on import and registered in the
default registry, which the /metrics endpoint exposes.
"""
from prometheus_client import Counter


probes_total = Counter(
    "kvnode_probes_total",
    "Total number of liveness probes sent"
)

probes_success = Counter(
    "kvnode_probes_success_total",
    "Total number of liveness probes answered with ok"
)

probes_failed = Counter(
    "kvnode_probes_failed_total",
    "Total number of liveness probes that failed or were not ok"
)

sync_pushes = Counter(
    "kvnode_sync_pushes_total",
    "Total number of whole-store pushes issued by anti-entropy"
)

sync_failures = Counter(
    "kvnode_sync_failures_total",
    "Total number of abandoned anti-entropy attempts"
)

replication_sent = Counter(
    "kvnode_replication_sent_total",
    "Total number of single-record replications acknowledged by a peer"
)

replication_failed = Counter(
    "kvnode_replication_failed_total",
    "Total number of single-record replications that failed"
)


def record_probe(success: bool) -> None:
    """Count one probe attempt and its outcome."""
    probes_total.inc()
    if success:
        probes_success.inc()
    else:
        probes_failed.inc()


def record_sync(pushed: bool = False, failed: bool = False) -> None:
    """Count the outcome of one anti-entropy attempt."""
    if pushed:
        sync_pushes.inc()
    if failed:
        sync_failures.inc()


def record_replication(success: bool) -> None:
    """Count the outcome of one single-record fan-out request."""
    if success:
        replication_sent.inc()
    else:
        replication_failed.inc()
