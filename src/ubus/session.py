""" Classes and methods implemented here implement the client side of the
    ubus remote procedure call protocol: connect to the broker, look up
    objects by path, and invoke methods on them.

    A :class:`Session` is strictly request/response. There is no background
    reader and no correlation by sequence number; the reply read after a
    request is assumed to belong to that request. Calls on one session are
    serialized by a lock. Independent sessions share nothing and can be
    used concurrently.
"""

import logging
import threading

from . import errors
from .protocol import factory
from .protocol.attribute import Table
from .protocol.fields import Attr, MsgType, Status
from .protocol.message import Header
from .protocol.wire import round_up
from .transport import UnixTransport


logger = logging.getLogger(__name__)

DISCONNECTED = 'disconnected'
CONNECTED = 'connected'
AWAITING = 'awaiting'
CLOSED = 'closed'


class Session:
    """ One connection to the broker. Use :func:`connect` to establish the
        session; a newly constructed instance is in the disconnected state.
        The *transport* is typically a :class:`ubus.transport.UnixTransport`.

        Any :class:`errors.ProtocolError` or :class:`errors.TransportError`
        raised during a call closes the session before the exception
        propagates; the caller has to connect again.

        :ivar local_id: The peer id the broker assigned to this connection,
            or None if not connected.
        :ivar sequence: The sequence number for the next outgoing frame.
        :ivar state: One of 'disconnected', 'connected', 'awaiting', or
            'closed'.
        :ivar strict_status: If True, a STATUS reply reporting success to an
            invoke raises :class:`errors.UnknownError`, as the reference
            client does; otherwise an empty :class:`Table` is returned.
    """

    strict_status = False

    def __init__(self, transport, strict_status=None):

        self.transport = transport
        self.local_id = None
        self.sequence = 0
        self.state = DISCONNECTED
        self.lock = threading.Lock()

        if strict_status is not None:
            self.strict_status = strict_status


    def __repr__(self):
        return 'Session(%r, local_id=%r, state=%r)' % (self.transport, self.local_id, self.state)


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.disconnect()


    @property
    def connected(self):
        return self.state in (CONNECTED, AWAITING)


    def connect(self):
        """ Open the transport and complete the handshake: the broker
            immediately sends a HELLO whose peer field is the id assigned to
            this connection. Any payload following the HELLO header is
            discarded.
        """

        if self.state == CLOSED:
            raise errors.TransportConnectionError('session is closed')

        if self.connected:
            return

        raw = self.transport.open()

        try:
            header = Header.decode(raw)

            if header.type != MsgType.HELLO:
                raise errors.ProtocolError('expected HELLO from broker, received %r' % (header.type))

            if header.peer == 0:
                raise errors.ProtocolError('broker assigned peer id zero')

            self.transport.discard(round_up(header.length))

        except (errors.ProtocolError, errors.TransportError):
            self.transport.close()
            raise

        self.local_id = header.peer
        self.sequence = 0
        self.state = CONNECTED

        logger.debug("connected to %r as peer %d", self.transport, self.local_id)


    def disconnect(self):
        """ Close the connection and forget the local id. Calling this on a
            session that is already disconnected has no effect.
        """

        self.transport.close()
        self.local_id = None

        if self.state != DISCONNECTED:
            self.state = CLOSED


    def _send(self, type, payload, peer):
        """ Assign the next sequence number and transmit the :class:`Buffer`
            *payload* as a frame of the given *type*.
        """

        frame = factory.frame(type, payload, self.sequence, peer)

        logger.debug("sending %s seq %d to peer %d", type.name, self.sequence, peer)

        self.sequence = (self.sequence + 1) & 0xFFFF
        self.transport.send(frame)


    def _recv(self):
        message = self.transport.recv()
        logger.debug("received %r", message.header)
        return message


    def _call(self, method, *args):
        """ Run one request/response exchange under the session lock,
            closing the session if the connection can no longer be trusted.
        """

        self.lock.acquire()

        try:
            if not self.connected:
                raise errors.TransportConnectionError('session is not connected')

            self.state = AWAITING

            try:
                return method(*args)
            except (errors.ProtocolError, errors.TransportError):
                logger.debug("closing %r after connection failure", self.transport)
                self.disconnect()
                raise
            finally:
                if self.state == AWAITING:
                    self.state = CONNECTED

        finally:
            self.lock.release()


    def lookup(self, path):
        """ Return the numeric id of the object registered at *path*. Raises
            :class:`errors.NotFound` if the broker reply carries no id.
        """

        return self._call(self._lookup, path)


    def _lookup(self, path):

        self._send(MsgType.LOOKUP, factory.lookup(path), 0)
        reply = self._recv()

        object_id = reply.get(Attr.OBJID)

        if object_id is None:
            raise errors.NotFound('object not found: ' + repr(path))

        return object_id.as_uint32()


    def invoke_by_id(self, object_id, method, args=None):
        """ Invoke *method* on the object with id *object_id*, passing the
            :class:`Table` *args*. Returns the result as a :class:`Table`.

            The broker's reply arrives as two frames. The first one is read
            and dropped; the second determines the outcome: a DATA frame
            carries the result, a STATUS frame carries an error code.
        """

        if args is not None and not isinstance(args, Table):
            args = Table.from_python(args)

        return self._call(self._invoke, object_id, method, args)


    def _invoke(self, object_id, method, args):

        self._send(MsgType.INVOKE, factory.invoke(object_id, method, args), object_id)

        # Only two reply frames are handled; nothing beyond the second one
        # is read.

        first = self._recv()
        logger.debug("discarding first invoke reply: %r", first.header)

        reply = self._recv()
        context = '%s (0x%08x)' % (method, object_id)

        if reply.type == MsgType.STATUS:
            return self._status(reply, context)

        if reply.type == MsgType.DATA:
            data = reply.get(Attr.DATA)
            if data is None:
                raise errors.NoData('no data in reply to ' + context)
            return data.as_table()

        raise errors.UnknownError('unexpected %r reply to %s' % (reply.type, context))


    def _status(self, reply, context):

        status = reply.get(Attr.STATUS)

        if status is not None:
            code = status.as_int32()
            if code != Status.OK:
                raise errors.RemoteError(code, context)

        if self.strict_status:
            raise errors.UnknownError('no data in successful reply to ' + context)

        return Table()


    def invoke_by_name(self, path, method, args=None):
        """ Look up the object at *path* and invoke *method* on it; see
            :func:`invoke_by_id`.
        """

        object_id = self.lookup(path)
        return self.invoke_by_id(object_id, method, args)


    def call(self, path, method, **params):
        """ Convenience wrapper around :func:`invoke_by_name` that accepts
            and returns native Python values.
        """

        args = Table.from_python(params)
        result = self.invoke_by_name(path, method, args)
        return result.to_python()


# end of class Session



def connect(path=None, timeout=None, strict_status=None):
    """ Connect to the broker listening on the Unix domain socket at *path*
        and return a connected :class:`Session`. The *path* and *timeout*
        default to the values in :mod:`ubus.config`.
    """

    transport = UnixTransport(path, timeout)
    session = Session(transport, strict_status)
    session.connect()
    return session


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
