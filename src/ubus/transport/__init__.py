"""Transport layer implementations."""

from .base import Transport
from .unix import UnixTransport

from ..errors import (
    TransportError,
    TransportTimeout,
    TransportConnectionError,
)
