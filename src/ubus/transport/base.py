"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`ubus.protocol` so the protocol remains unaware of
sockets. Failures are reported with the transport exceptions defined in
:mod:`ubus.errors`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..protocol.message import Message


class Transport(ABC):
    """Minimal contract for a wire-level transport."""

    @abstractmethod
    def open(self) -> bytes:
        """Establish the connection; return the raw handshake header."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the connection. Calling this more than once is harmless."""

    @abstractmethod
    def send(self, frame: bytes) -> None:
        """Send one complete, already-framed message."""

    @abstractmethod
    def recv(self) -> Message:
        """Receive the next complete message."""

    @abstractmethod
    def discard(self, size: int) -> None:
        """Read and drop *size* bytes."""

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return False
