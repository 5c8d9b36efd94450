from .client import BackendClient, BackendError
from .process import BackendProcess, wait_until_ready
from .stream import EventKind, MalformedFrame, StreamEvent, aggregate, parse_frame

__all__ = [
    "BackendClient",
    "BackendError",
    "BackendProcess",
    "EventKind",
    "MalformedFrame",
    "StreamEvent",
    "aggregate",
    "parse_frame",
    "wait_until_ready",
]
