"""Background computation host and the caller-side layout session."""

from pixelspace.host.session import LayoutSession
from pixelspace.host.worker import ComputationHost, run_request

__all__ = [
    "ComputationHost",
    "LayoutSession",
    "run_request",
]
