"""Unix domain socket transport.

Blocking I/O throughout. Every read that makes up a frame shares a single
deadline, so a frame that trickles in byte by byte still times out.
"""

from __future__ import annotations

import logging
import socket
import time
from typing import Optional

from .. import config
from .. import errors
from ..protocol import wire
from ..protocol.message import HEADER_SIZE, Message
from .base import Transport


logger = logging.getLogger(__name__)


class UnixTransport(Transport):
    """ Stream connection to the broker's Unix domain socket at *path*. The
        *timeout*, in seconds, bounds the handshake read and every full frame
        read; it defaults to :data:`ubus.config.timeout`.
    """

    def __init__(self, path: Optional[str] = None, timeout: Optional[float] = None):

        if path is None:
            path = config.socket_path

        if timeout is None:
            timeout = config.timeout

        self.path = path
        self.timeout = timeout
        self.socket: Optional[socket.socket] = None


    def __repr__(self):
        return 'UnixTransport(%r)' % (self.path)


    @property
    def is_open(self) -> bool:
        return self.socket is not None


    def open(self) -> bytes:
        """ Connect, then read the twelve byte header of the broker's
            unsolicited HELLO. The header is returned undecoded.
        """

        if self.socket is not None:
            raise errors.TransportError('transport already open: ' + repr(self.path))

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)

        try:
            sock.connect(self.path)
        except socket.timeout:
            sock.close()
            raise errors.TransportTimeout('timed out connecting to ' + self.path)
        except OSError as e:
            sock.close()
            raise errors.TransportConnectionError('cannot connect to %s: %s' % (self.path, e))

        self.socket = sock
        logger.debug("connected to %s", self.path)

        try:
            return self._read(HEADER_SIZE, time.monotonic() + self.timeout)
        except errors.TransportError:
            self.close()
            raise


    def close(self) -> None:

        sock = self.socket
        if sock is None:
            return

        self.socket = None

        try:
            sock.close()
        except OSError:
            logger.debug("error closing socket for %s", self.path, exc_info=True)


    def send(self, frame: bytes) -> None:
        """ Write the whole *frame*; :func:`socket.sendall` retries partial
            writes until everything is sent or an error occurs.
        """

        sock = self._socket()

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("send %d bytes:\n%s", len(frame), wire.hexdump(frame))

        try:
            sock.settimeout(self.timeout)
            sock.sendall(frame)
        except socket.timeout:
            raise errors.TransportTimeout('timed out writing to ' + self.path)
        except OSError as e:
            raise errors.TransportError('write to %s failed: %s' % (self.path, e))


    def recv(self) -> Message:
        """ Read one frame: the header, then the padded body it announces.
        """

        deadline = time.monotonic() + self.timeout

        header = self._read(HEADER_SIZE, deadline)
        header, body_size = wire.unpack_header(header)

        if body_size:
            body = self._read(body_size, deadline)
        else:
            body = b''

        message = Message(header, body)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("recv %r:\n%s", header, wire.hexdump(body))

        return message


    def discard(self, size: int) -> None:
        if size > 0:
            self._read(size, time.monotonic() + self.timeout)


    def _socket(self) -> socket.socket:

        sock = self.socket
        if sock is None:
            raise errors.TransportConnectionError('transport is not open')
        return sock


    def _read(self, size: int, deadline: float) -> bytes:
        """ Read exactly *size* bytes before the *deadline*, a
            :func:`time.monotonic` timestamp.
        """

        sock = self._socket()
        buffer = bytearray(size)
        view = memoryview(buffer)
        received = 0

        while received < size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise errors.TransportTimeout('no response from %s in %.2f sec' % (self.path, self.timeout))

            try:
                sock.settimeout(remaining)
                count = sock.recv_into(view[received:])
            except socket.timeout:
                raise errors.TransportTimeout('no response from %s in %.2f sec' % (self.path, self.timeout))
            except OSError as e:
                raise errors.TransportError('read from %s failed: %s' % (self.path, e))

            if count == 0:
                raise errors.TransportConnectionError('connection closed by broker after %d of %d bytes' % (received, size))

            received += count

        return bytes(buffer)


# end of class UnixTransport
