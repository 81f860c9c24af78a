""" Helpers to move complete frames on and off the wire: each frame is the
    twelve byte header followed by the payload, padded with zeros to a four
    byte boundary.
"""

from .. import errors
from .attribute import round_up
from .message import Header, Message, HEADER_SIZE


def pack_frame(header, payload=b''):
    """ Return the bytes for one complete frame. The encoded length field is
        taken from the size of the *payload*; the *header* passed in is left
        as it was.
    """

    payload = bytes(payload)
    header = Header(header.type, header.sequence, header.peer, len(payload), header.version)

    padding = b'\x00' * (round_up(len(payload)) - len(payload))
    return header.encode() + payload + padding


def unpack_header(data):
    """ Decode a frame header. Returns the :class:`Header` and the number of
        body bytes the reader must consume next, padding included.
    """

    header = Header.decode(data)
    return header, round_up(header.length)


def unpack_frame(data):
    """ Decode one complete frame from *data*, which must hold at least the
        header plus the padded payload.
    """

    header, body_size = unpack_header(data)
    body = bytes(data[HEADER_SIZE:HEADER_SIZE + body_size])

    if len(body) < body_size:
        raise errors.ProtocolError('truncated frame: %d of %d body bytes' % (len(body), body_size))

    return Message(header, body)


def hexdump(data, width=16):
    """ Return a classic hex dump of *data* as a multi-line string: offset,
        hex bytes, and the printable ASCII rendition.
    """

    data = bytes(data)
    lines = list()

    for offset in range(0, len(data), width):
        chunk = data[offset:offset + width]
        hex = ' '.join('%02x' % (byte) for byte in chunk)
        text = ''.join(chr(byte) if 32 <= byte < 127 else '.' for byte in chunk)
        lines.append('0x%04x  %-*s  %s' % (offset, width * 3 - 1, hex, text))

    return '\n'.join(lines)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
