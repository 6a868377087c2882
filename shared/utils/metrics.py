"""
Activity Coach - Observability Metrics
Prometheus metrics for the parsing and coaching pipeline.
"""

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

from .errors import RemoteTimeoutError

# ============================================================================
# METRIC DEFINITIONS
# ============================================================================

INPUTS_PROCESSED = Counter(
    "activity_inputs_processed_total",
    "Total activity inputs processed by the orchestrator",
    ["path"],  # fast, remote, fallback
)

REMOTE_CALLS = Counter(
    "activity_remote_calls_total",
    "Remote language-model calls issued by the pipeline",
    ["operation", "status"],  # status: success, error, timeout, cancelled
)

REMOTE_CALL_LATENCY = Histogram(
    "activity_remote_call_latency_seconds",
    "Latency of remote language-model calls",
    ["operation"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

SAVE_DECISIONS = Counter(
    "activity_save_decisions_total",
    "Persistence gate outcomes",
    ["decision"],  # save, skip
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


@contextmanager
def track_remote_call(operation: str) -> Iterator[None]:
    """Context manager recording status and latency of one remote call"""
    start_time = time.time()
    status = "success"
    try:
        yield
    except RemoteTimeoutError:
        status = "timeout"
        raise
    except Exception:
        status = "error"
        raise
    except BaseException:
        status = "cancelled"
        raise
    finally:
        REMOTE_CALLS.labels(operation=operation, status=status).inc()
        REMOTE_CALL_LATENCY.labels(operation=operation).observe(time.time() - start_time)


def record_input_processed(path: str) -> None:
    """Record which pipeline path produced a result"""
    INPUTS_PROCESSED.labels(path=path).inc()


def record_save_decision(should_save: bool) -> None:
    """Record the persistence gate outcome"""
    SAVE_DECISIONS.labels(decision="save" if should_save else "skip").inc()
