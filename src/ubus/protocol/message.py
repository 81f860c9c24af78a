""" A class representation of a ubus message: the fixed twelve byte header,
    and the attribute-encoded payload that follows it.
"""

import struct

from .. import errors
from . import attribute
from . import fields


# This is the version of the ubus on-the-wire protocol implemented here. It
# is the first byte of every header, and is required to be zero.

version = 0

HEADER_SIZE = 12

# The length field in the header counts the payload plus a four byte
# constant; only the low 24 bits are meaningful.

LENGTH_OFFSET = 4
LENGTH_MASK = 0xFFFFFF
MAX_PAYLOAD = LENGTH_MASK - LENGTH_OFFSET

_header = struct.Struct('!BBHII')


class Header:
    """ The fixed-size header at the start of every frame. The fields are in
        the order they appear on the wire.

        :ivar version: Protocol version, always zero.
        :ivar type: A :class:`fields.MsgType` member, or the raw integer for
            types this client does not recognize.
        :ivar sequence: 16-bit sequence number assigned by the sender.
        :ivar peer: The broker-assigned peer id in a HELLO, or the target
            object id for outgoing requests.
        :ivar length: Logical length of the payload, in bytes, excluding
            any trailing alignment padding.
    """

    __slots__ = ('version', 'type', 'sequence', 'peer', 'length')

    def __init__(self, type, sequence=0, peer=0, length=0, version=version):

        try:
            type = fields.MsgType(type)
        except ValueError:
            pass

        self.version = version
        self.type = type
        self.sequence = sequence
        self.peer = peer
        self.length = length


    def __eq__(self, other):

        if not isinstance(other, Header):
            return NotImplemented

        return tuple(self) == tuple(other)


    def __iter__(self):
        return iter((self.version, self.type, self.sequence, self.peer, self.length))


    def __repr__(self):

        try:
            type = self.type.name
        except AttributeError:
            type = str(self.type)

        return 'ver: %d, type: %s, seq: %d, peerID: %d, dataLen %d' % (self.version, type, self.sequence, self.peer, self.length)


    def __bytes__(self):
        return self.encode()


    def encode(self):
        """ Return the twelve byte wire representation of this header.
        """

        length = self.length

        if length < 0 or length > MAX_PAYLOAD:
            raise ValueError('payload length out of range: %d' % (length))

        sequence = self.sequence & 0xFFFF
        return _header.pack(self.version, self.type, sequence, self.peer, length + LENGTH_OFFSET)


    @classmethod
    def decode(cls, data):
        """ Parse the first twelve bytes of *data* as a header. Raises
            :class:`errors.ProtocolError` if there are not enough bytes,
            the version is wrong, or the length field is impossible.
        """

        if len(data) < HEADER_SIZE:
            raise errors.ProtocolError('short message header: %d bytes' % (len(data)))

        their_version, type, sequence, peer, length = _header.unpack_from(data)

        if their_version != version:
            raise errors.ProtocolError('message is ubus protocol %d, recipient expects %d' % (their_version, version))

        length &= LENGTH_MASK

        if length < LENGTH_OFFSET:
            raise errors.ProtocolError('message length field too small: %d' % (length))

        return cls(type, sequence, peer, length - LENGTH_OFFSET, their_version)


# end of class Header



class Message:
    """ A received (or locally assembled) frame: the :class:`Header` plus the
        payload bytes. The *body* may include the trailing alignment padding
        read from the wire, and the attributes are parsed from the
        padded body.
    """

    def __init__(self, header, body=b''):
        self.header = header
        self.body = body
        self._attributes = None


    def __repr__(self):
        return 'Message(%r, %d bytes)' % (self.header, len(self.body))


    @property
    def type(self):
        return self.header.type


    @property
    def attributes(self):
        """ The flat protocol attributes of the payload, keyed by
            :class:`fields.Attr`. The payload is parsed on first access.
        """

        if self._attributes is None:
            self._attributes = attribute.parse_flat(self.body)

        return self._attributes


    def get(self, tag):
        """ Return the attribute with the given *tag*, or None.
        """

        return self.attributes.get(tag)


# end of class Message


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
