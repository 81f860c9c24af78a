"""Convenience constructors for protocol messages.

The request constructors return an unfinished :class:`attribute.Buffer`;
the caller assigns the sequence number and target peer with :func:`frame`
just before transmission. The reply constructors produce what a broker
would send, and return finished frames.
"""

from .attribute import Buffer, Table
from .fields import Attr, MsgType
from .message import HEADER_SIZE, Header


def buffer():
    """ Return a new :class:`Buffer` with room reserved for the header.
    """

    return Buffer(reserve=HEADER_SIZE)


def frame(type, payload, sequence=0, peer=0):
    """ Fill in the header of the :class:`Buffer` *payload* and return the
        complete frame as bytes.
    """

    header = Header(type, sequence, peer, len(payload))
    return payload.finish(header.encode())


def lookup(path):
    payload = buffer()
    payload.put_string(Attr.OBJPATH, path)
    return payload


def invoke(object_id, method, args=None):
    """ Build the payload of an INVOKE request. The *args* are a
        :class:`Table`; None is sent as an empty table.
    """

    payload = buffer()
    payload.put_uint32(Attr.OBJID, object_id)
    payload.put_string(Attr.METHOD, method)
    payload.put_table(Attr.DATA, args)
    return payload


def hello(peer, sequence=0):
    return frame(MsgType.HELLO, buffer(), sequence, peer)


def status(code, sequence=0, peer=0):
    payload = buffer()
    payload.put_int32(Attr.STATUS, code)
    return frame(MsgType.STATUS, payload, sequence, peer)


def data(table, sequence=0, peer=0):
    if not isinstance(table, Table):
        table = Table.from_python(table)

    payload = buffer()
    payload.put_table(Attr.DATA, table)
    return frame(MsgType.DATA, payload, sequence, peer)


def lookup_reply(object_id, path=None, sequence=0, peer=0):
    """ The DATA frame a broker sends for each object matching a lookup.
    """

    payload = buffer()
    if path is not None:
        payload.put_string(Attr.OBJPATH, path)
    payload.put_uint32(Attr.OBJID, object_id)
    return frame(MsgType.DATA, payload, sequence, peer)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
