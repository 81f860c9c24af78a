""" Encoding and decoding of the binary attribute format used by ubus. Every
    attribute starts with a four-byte big-endian header: the top byte holds
    the tag (low seven bits) and the extended flag (high bit), the low three
    bytes hold the attribute length, header included, trailing padding
    excluded. Attributes always start on a four byte boundary relative to
    their container.

    There are two flavors. Unnamed attributes carry the payload directly
    after the header; they are used for the flat protocol fields at the top
    level of a message (see :class:`fields.Attr`) and for the children of an
    array. Named attributes, the "blobmsg" format, set the extended flag and
    carry a key between the header and the value::

        [header][key length: 2][key][NUL][pad to 4][value][pad to 4]

    For named attributes, and for the children of arrays and tables, the tag
    is the value type (see :class:`fields.Type`). For the flat protocol
    attributes the tag is the semantic field identifier, and the payload
    is untyped: accessors read it at whatever width is requested.
"""

import logging
import struct

from .. import errors
from .. import json
from . import fields
from .fields import Type


logger = logging.getLogger(__name__)

ALIGN = 4
HEADER_SIZE = 4
MAX_LENGTH = 0xFFFFFF
MAX_KEY_LENGTH = 0xFFFF

_EXTENDED = 0x80
_TAG_MASK = 0x7F

_header = struct.Struct('!I')
_key_length = struct.Struct('!H')

_int8 = struct.Struct('!b')
_int16 = struct.Struct('!h')
_int32 = struct.Struct('!i')
_uint32 = struct.Struct('!I')
_int64 = struct.Struct('!q')
_double = struct.Struct('!d')

_INT32_MIN = -0x80000000
_INT32_MAX = 0x7FFFFFFF


def round_up(length):
    """ Return *length* rounded up to the next multiple of four.
    """

    return (length + ALIGN - 1) & ~(ALIGN - 1)


def _pad(length):
    return b'\x00' * (round_up(length) - length)


def _value_start(key_length):
    """ Offset of the value, relative to the start of a named attribute
        whose encoded key is *key_length* bytes long.
    """

    return round_up(HEADER_SIZE + _key_length.size + key_length + 1)


def encode(tag, payload, key=None):
    """ Return the full on-wire encoding of one attribute, trailing padding
        included. The attribute is named if *key* is not None; an empty
        string is a valid key. Raises :class:`ValueError` if the attribute
        cannot be represented; nothing is returned partially encoded.
    """

    if tag < 0 or tag > _TAG_MASK:
        raise ValueError('attribute tag out of range: ' + repr(tag))

    payload = bytes(payload)

    if key is None:
        length = HEADER_SIZE + len(payload)
        if length > MAX_LENGTH:
            raise ValueError('attribute too long: %d bytes' % (length))

        header = _header.pack((tag << 24) | length)
        return header + payload + _pad(length)

    key = key.encode('utf-8')

    if len(key) > MAX_KEY_LENGTH:
        raise ValueError('attribute key too long: %d bytes' % (len(key)))

    start = _value_start(len(key))
    length = start + len(payload)
    if length > MAX_LENGTH:
        raise ValueError('attribute too long: %d bytes' % (length))

    header = _header.pack(((_EXTENDED | tag) << 24) | length)
    name = _key_length.pack(len(key)) + key + b'\x00'
    name = name + b'\x00' * (start - HEADER_SIZE - len(name))

    return header + name + payload + _pad(length)



def parse(data, named=False, limit=fields.TYPE_MAX):
    """ Parse every attribute in *data*, a nested array or table container,
        and return them as a list in the order they appear. If *named* is
        True every attribute must carry a key, as required for the contents
        of a table. Attributes parsed here are typed. Raises
        :class:`errors.ProtocolError` on any malformed input.
    """

    attributes = list()

    for attribute in _walk(data, limit, typed=True):
        if named and attribute.key is None:
            raise errors.ProtocolError('table entry without a key (tag %d)' % (attribute.tag))
        attributes.append(attribute)

    return attributes


def parse_flat(data, limit=fields.ATTR_MAX):
    """ Parse the flat, unnamed attributes at the top level of a message
        payload. The return value is a dictionary keyed by tag. Only the
        first attribute seen for a given tag is retained; any later
        attribute with the same tag is ignored, matching the broker's own
        parser.
    """

    found = dict()

    for attribute in _walk(data, limit, typed=False):
        tag = attribute.tag
        if tag in found:
            logger.debug("ignoring duplicate attribute, tag %d", tag)
            continue

        try:
            tag = fields.Attr(tag)
        except ValueError:
            pass

        found[tag] = attribute

    return found



def _walk(data, limit, typed):
    """ Generator over the attributes in *data*. Every offset and length is
        checked against the container before it is used.
    """

    data = memoryview(data)
    end = len(data)
    offset = 0

    while offset < end:
        if offset + HEADER_SIZE > end:
            raise errors.ProtocolError('truncated attribute header at offset %d' % (offset))

        header, = _header.unpack_from(data, offset)
        flags = header >> 24
        tag = flags & _TAG_MASK
        extended = (flags & _EXTENDED) != 0
        length = header & MAX_LENGTH

        if tag >= limit:
            raise errors.ProtocolError('attribute tag out of range: %d' % (tag))

        if length < HEADER_SIZE:
            raise errors.ProtocolError('attribute length too short: %d' % (length))

        stop = offset + length
        if stop > end:
            raise errors.ProtocolError('attribute at offset %d overruns its container (%d > %d)' % (offset, stop, end))

        if extended:
            key_offset = offset + HEADER_SIZE + _key_length.size
            if key_offset > stop:
                raise errors.ProtocolError('named attribute too short for its key length')

            key_length, = _key_length.unpack_from(data, offset + HEADER_SIZE)
            start = offset + _value_start(key_length)

            if start > stop:
                raise errors.ProtocolError('named attribute key overruns the attribute')

            try:
                key = bytes(data[key_offset:key_offset + key_length]).decode('utf-8')
            except UnicodeDecodeError:
                raise errors.ProtocolError('attribute key is not valid UTF-8')
        else:
            key = None
            start = offset + HEADER_SIZE

        yield Attribute(tag, data[start:stop], key, typed)

        offset += round_up(length)

    if offset != end:
        raise errors.ProtocolError('final attribute overshoots its container by %d bytes' % (offset - end))



class Attribute:
    """ One decoded (or ready to encode) attribute. The *payload* is a view
        onto the value bytes only: no header, no key, no trailing padding.
        Attributes are immutable; two attributes are equal when their tag,
        key and payload bytes match.

        Typed attributes check the stored type in every accessor. Untyped
        attributes, the flat protocol fields, are read at whatever width the
        accessor asks for.

        :ivar tag: The attribute tag; a :class:`fields.Type` for typed
            attributes.
        :ivar key: The name of the attribute, or None if it is unnamed.
        :ivar typed: True if the tag denotes the value type.
    """

    __slots__ = ('tag', 'key', 'payload', 'typed')

    def __init__(self, tag, payload=b'', key=None, typed=True):

        if typed:
            try:
                tag = Type(tag)
            except ValueError:
                pass

        object.__setattr__(self, 'tag', tag)
        object.__setattr__(self, 'key', key)
        object.__setattr__(self, 'payload', payload)
        object.__setattr__(self, 'typed', typed)


    def __setattr__(self, name, value):
        raise AttributeError('Attribute instances are immutable')


    def __eq__(self, other):

        if not isinstance(other, Attribute):
            return NotImplemented

        if self.tag != other.tag or self.key != other.key:
            return False

        return bytes(self.payload) == bytes(other.payload)


    def __hash__(self):
        return hash((int(self.tag), self.key, bytes(self.payload)))


    def __repr__(self):

        if self.key is None:
            name = ''
        else:
            name = repr(self.key) + ', '

        try:
            tag = self.tag.name
        except AttributeError:
            tag = str(self.tag)

        return 'Attribute(%s%s, %r)' % (name, tag, bytes(self.payload))


    @property
    def named(self):
        return self.key is not None


    def encode(self, named=None):
        """ Return the on-wire encoding of this attribute. The attribute is
            encoded with its key if it has one, unless *named* is set
            explicitly; an array child is always encoded without its key.
        """

        key = self.key

        if named is None:
            pass
        elif named:
            if key is None:
                key = ''
        else:
            key = None

        return encode(self.tag, self.payload, key)


    # Typed constructors. Each one returns a new Attribute; the key is
    # optional, since array children do not need one.

    @classmethod
    def raw(cls, key=None, value=b''):
        return cls(Type.UNSPEC, bytes(value), key)

    @classmethod
    def bool(cls, key=None, value=False):
        return cls(Type.BOOL, _int8.pack(1 if value else 0), key)

    @classmethod
    def int8(cls, key=None, value=0):
        return cls(Type.INT8, _pack(_int8, value), key)

    @classmethod
    def int16(cls, key=None, value=0):
        return cls(Type.INT16, _pack(_int16, value), key)

    @classmethod
    def int32(cls, key=None, value=0):
        return cls(Type.INT32, _pack(_int32, value), key)

    @classmethod
    def int64(cls, key=None, value=0):
        return cls(Type.INT64, _pack(_int64, value), key)

    @classmethod
    def double(cls, key=None, value=0.0):
        return cls(Type.DOUBLE, _pack(_double, value), key)

    @classmethod
    def string(cls, key=None, value=''):
        return cls(Type.STRING, value.encode('utf-8') + b'\x00', key)

    @classmethod
    def array(cls, key=None, value=()):
        if not isinstance(value, Array):
            value = Array(value)
        return cls(Type.ARRAY, value.encode(), key)

    @classmethod
    def table(cls, key=None, value=()):
        if not isinstance(value, Table):
            value = Table(value)
        return cls(Type.TABLE, value.encode(), key)


    @classmethod
    def from_python(cls, key, value):
        """ Build an attribute from a native Python *value*, inferring the
            type: bool, int (INT32 if it fits, otherwise INT64), float, str,
            bytes and None (both UNSPEC), list or tuple (ARRAY), and dict
            (TABLE).
        """

        if isinstance(value, Attribute):
            return cls(value.tag, value.payload, key, value.typed)

        # bool is a subclass of int; check it first.

        if isinstance(value, bool):
            return cls.bool(key, value)

        if isinstance(value, int):
            if _INT32_MIN <= value <= _INT32_MAX:
                return cls.int32(key, value)
            return cls.int64(key, value)

        if isinstance(value, float):
            return cls.double(key, value)

        if isinstance(value, str):
            return cls.string(key, value)

        if value is None:
            return cls.raw(key)

        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.raw(key, value)

        if isinstance(value, (list, tuple, Array)):
            return cls.array(key, Array.from_python(value))

        if isinstance(value, (dict, Table)):
            return cls.table(key, Table.from_python(value))

        raise TypeError('cannot encode %s as an attribute' % (type(value).__name__))


    # Accessors.

    def _check(self, *expected):

        if self.typed and self.tag not in expected:
            names = '/'.join(Type(tag).name for tag in expected)
            raise errors.TypeMismatch('expected %s attribute, found %s' % (names, _type_name(self.tag)))


    def _unpack(self, unpacker):

        if len(self.payload) < unpacker.size:
            raise errors.TypeMismatch('attribute payload is %d bytes, need %d' % (len(self.payload), unpacker.size))

        value, = unpacker.unpack_from(self.payload)
        return value


    def as_raw(self):
        """ Return the payload bytes, whatever the type.
        """

        return bytes(self.payload)


    def as_bool(self):
        self._check(Type.BOOL)
        return self._unpack(_int8) != 0

    def as_int8(self):
        self._check(Type.INT8)
        return self._unpack(_int8)

    def as_int16(self):
        self._check(Type.INT16)
        return self._unpack(_int16)

    def as_int32(self):
        self._check(Type.INT32)
        return self._unpack(_int32)

    def as_uint32(self):
        self._check(Type.INT32)
        return self._unpack(_uint32)

    def as_int64(self):
        self._check(Type.INT64)
        return self._unpack(_int64)

    def as_double(self):
        self._check(Type.DOUBLE)
        return self._unpack(_double)


    def as_string(self, allow_empty=False):
        """ Return the payload as a string, with the NUL terminator (and any
            other trailing NUL bytes) removed. Empty strings are rejected
            with a :class:`ValueError` unless *allow_empty* is True.
        """

        self._check(Type.STRING)

        value = bytes(self.payload).rstrip(b'\x00')

        if value == b'' and not allow_empty:
            raise ValueError('empty string attribute')

        return value.decode('utf-8', errors='replace')


    def as_array(self):
        self._check(Type.ARRAY)
        return Array(parse(self.payload))


    def as_table(self):
        self._check(Type.TABLE)
        return Table(parse(self.payload, named=True))


    @property
    def value(self):
        """ The value of this attribute, using the accessor that matches
            its type. Untyped attributes return their raw payload.
        """

        if not self.typed:
            return self.as_raw()

        try:
            accessor = _accessors[self.tag]
        except KeyError:
            return self.as_raw()

        return accessor(self)


    def to_python(self):
        """ Return the value of this attribute as native Python types,
            recursing into arrays and tables. INT8 values are reported as
            booleans, and empty strings are permitted.
        """

        tag = self.tag

        if not self.typed or tag == Type.UNSPEC:
            payload = self.as_raw()
            if payload == b'':
                return None
            return payload

        if tag == Type.INT8:
            return self.as_bool()

        if tag == Type.STRING:
            return self.as_string(allow_empty=True)

        if tag == Type.ARRAY:
            return self.as_array().to_python()

        if tag == Type.TABLE:
            return self.as_table().to_python()

        return self.value


# end of class Attribute



class Array:
    """ An ordered sequence of unnamed, typed attributes. Any key on an
        attribute passed in is dropped when the array is encoded.
    """

    def __init__(self, attributes=()):
        self.attributes = tuple(attributes)


    def __iter__(self):
        return iter(self.attributes)


    def __len__(self):
        return len(self.attributes)


    def __getitem__(self, index):
        return self.attributes[index]


    def __eq__(self, other):
        if not isinstance(other, Array):
            return NotImplemented
        return self.attributes == other.attributes


    def __repr__(self):
        return 'Array(%r)' % (list(self.attributes),)


    def encode(self):
        chunks = list()
        for attribute in self.attributes:
            chunks.append(attribute.encode(named=False))
        return b''.join(chunks)


    def to_python(self):
        return [attribute.to_python() for attribute in self.attributes]


    @classmethod
    def from_python(cls, values):
        if isinstance(values, Array):
            return values
        return cls(Attribute.from_python(None, value) for value in values)


# end of class Array



class Table:
    """ An ordered sequence of named, typed attributes; this is how method
        arguments and results are represented. Lookup by key returns the
        first attribute with that key. Every attribute is retained, in
        order, even if a key repeats.
    """

    def __init__(self, attributes=()):

        attributes = tuple(attributes)

        for attribute in attributes:
            if attribute.key is None:
                raise ValueError('table entries must be named: ' + repr(attribute))

        self.attributes = attributes


    def __iter__(self):
        return iter(self.attributes)


    def __len__(self):
        return len(self.attributes)


    def __contains__(self, key):
        for attribute in self.attributes:
            if attribute.key == key:
                return True
        return False


    def __getitem__(self, key):
        for attribute in self.attributes:
            if attribute.key == key:
                return attribute
        raise KeyError(key)


    def __eq__(self, other):
        if not isinstance(other, Table):
            return NotImplemented
        return self.attributes == other.attributes


    def __repr__(self):
        return 'Table(%r)' % (list(self.attributes),)


    def get(self, key, default=None):
        try:
            return self[key]
        except KeyError:
            return default


    def keys(self):
        return [attribute.key for attribute in self.attributes]


    def encode(self):
        chunks = list()
        for attribute in self.attributes:
            chunks.append(attribute.encode(named=True))
        return b''.join(chunks)


    def to_python(self):
        """ Return a dictionary of native Python values. If a key repeats,
            the first occurrence wins, consistent with :func:`__getitem__`.
        """

        result = dict()
        for attribute in self.attributes:
            if attribute.key in result:
                continue
            result[attribute.key] = attribute.to_python()
        return result


    def to_json(self):
        """ Return the JSON encoding of :func:`to_python`, as bytes.
        """

        return json.dumps(self.to_python())


    @classmethod
    def from_python(cls, values):
        if isinstance(values, Table):
            return values
        return cls(Attribute.from_python(str(key), value) for key, value in values.items())


    @classmethod
    def from_json(cls, text):
        """ Build a table from a JSON object, either bytes or text. Types
            are inferred as described in :func:`Attribute.from_python`.
        """

        values = json.loads(text)

        if not isinstance(values, dict):
            raise ValueError('JSON arguments must be an object, not ' + type(values).__name__)

        return cls.from_python(values)


# end of class Table



class Buffer:
    """ Growable encode buffer. The buffer owns its storage outright; every
        append returns the new write offset, and the capacity doubles
        whenever an append would overflow it. A buffer intended to become a
        message reserves room for the message header at the front, which
        is only filled in by :func:`finish`.

        :ivar offset: The current write offset.
        :ivar reserve: Number of bytes reserved at the front.
    """

    initial_size = 256

    def __init__(self, reserve=0, size=None):

        if size is None:
            size = self.initial_size

        size = max(size, reserve, 1)

        self.data = bytearray(size)
        self.reserve = reserve
        self.offset = reserve


    def __len__(self):
        return self.offset - self.reserve


    def _ensure(self, needed):

        capacity = len(self.data)
        required = self.offset + needed

        if capacity >= required:
            return

        while capacity < required:
            capacity *= 2

        logger.debug("growing encode buffer from %d to %d bytes", len(self.data), capacity)
        self.data.extend(bytes(capacity - len(self.data)))


    def append(self, encoded):
        """ Append already-encoded attribute bytes; return the new offset.
        """

        size = len(encoded)
        self._ensure(size)
        self.data[self.offset:self.offset + size] = encoded
        self.offset += size
        return self.offset


    def put(self, tag, payload, key=None):
        return self.append(encode(tag, payload, key))


    def put_string(self, tag, value):
        return self.put(tag, value.encode('utf-8') + b'\x00')


    def put_uint32(self, tag, value):
        return self.put(tag, _pack(_uint32, value))


    def put_int32(self, tag, value):
        return self.put(tag, _pack(_int32, value))


    def put_table(self, tag, table):
        """ Append *table* as the payload of an unnamed attribute; this is
            how method arguments travel inside the DATA field.
        """

        if table is None:
            table = Table()
        return self.put(tag, table.encode())


    def payload(self):
        """ Return a copy of everything written after the reserved region.
        """

        return bytes(self.data[self.reserve:self.offset])


    def finish(self, header):
        """ Write the encoded *header* into the reserved region and return
            the complete frame as bytes. The header must exactly fill the
            reserved region.
        """

        header = bytes(header)

        if len(header) != self.reserve:
            raise ValueError('header is %d bytes, buffer reserved %d' % (len(header), self.reserve))

        self.data[0:self.reserve] = header
        return bytes(self.data[:self.offset])


# end of class Buffer



def _pack(packer, value):

    try:
        return packer.pack(value)
    except struct.error as e:
        raise ValueError('cannot encode %r: %s' % (value, e))


def _type_name(tag):
    try:
        return Type(tag).name
    except ValueError:
        return 'tag %d' % (tag)


_accessors = {
    Type.ARRAY: Attribute.as_array,
    Type.TABLE: Attribute.as_table,
    Type.STRING: Attribute.as_string,
    Type.INT64: Attribute.as_int64,
    Type.INT32: Attribute.as_int32,
    Type.INT16: Attribute.as_int16,
    Type.INT8: Attribute.as_int8,
    Type.DOUBLE: Attribute.as_double,
}


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
