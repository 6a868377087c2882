import asyncio

import pytest
from prometheus_client import REGISTRY

from shared.utils.errors import RemoteTimeoutError
from shared.utils.metrics import track_remote_call


def _calls(operation: str, status: str) -> float:
    value = REGISTRY.get_sample_value(
        "activity_remote_calls_total", {"operation": operation, "status": status}
    )
    return value or 0.0


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (None, "success"),
        (RuntimeError("boom"), "error"),
        (RemoteTimeoutError("test_op", 1.0), "timeout"),
        (asyncio.CancelledError(), "cancelled"),
    ],
)
def test_remote_call_status_labels(error, status) -> None:
    operation = f"test_{status}"
    before = _calls(operation, status)

    if error is None:
        with track_remote_call(operation):
            pass
    else:
        with pytest.raises(type(error)):
            with track_remote_call(operation):
                raise error

    assert _calls(operation, status) == before + 1
    if status != "success":
        assert _calls(operation, "success") == 0.0
