"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_worker_id: ContextVar[str] = ContextVar("worker_id", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")
_eventhub_name: ContextVar[str] = ContextVar("eventhub_name", default="")
_consumer_group: ContextVar[str] = ContextVar("consumer_group", default="")


def set_log_context(
    worker_id: Optional[str] = None,
    trace_id: Optional[str] = None,
    eventhub_name: Optional[str] = None,
    consumer_group: Optional[str] = None,
) -> None:
    if worker_id is not None:
        _worker_id.set(worker_id)
    if trace_id is not None:
        _trace_id.set(trace_id)
    if eventhub_name is not None:
        _eventhub_name.set(eventhub_name)
    if consumer_group is not None:
        _consumer_group.set(consumer_group)


def get_log_context() -> Dict[str, str]:
    return {
        "worker_id": _worker_id.get(),
        "trace_id": _trace_id.get(),
        "eventhub_name": _eventhub_name.get(),
        "consumer_group": _consumer_group.get(),
    }


def clear_log_context() -> None:
    _worker_id.set("")
    _trace_id.set("")
    _eventhub_name.set("")
    _consumer_group.set("")
