"""Protocol constants.

Keep these in one place to avoid magic numbers in the codec and session
layers. The numeric values are fixed by the broker and must not change.
"""

import enum


class MsgType(enum.IntEnum):
    """ Message types, carried in byte 1 of every frame header. Only
        HELLO, STATUS, DATA, LOOKUP and INVOKE are handled by the client;
        the rest are listed so that incoming frames can be identified.
    """

    HELLO = 0
    STATUS = 1
    DATA = 2
    PING = 3
    LOOKUP = 4
    INVOKE = 5
    ADD_OBJECT = 6
    REMOVE_OBJECT = 7
    SUBSCRIBE = 8
    UNSUBSCRIBE = 9
    NOTIFY = 10
    MONITOR = 11


class Attr(enum.IntEnum):
    """ Tags for the flat, unnamed attributes at the top level of a message
        payload.
    """

    UNSPEC = 0
    STATUS = 1
    OBJPATH = 2
    OBJID = 3
    METHOD = 4
    OBJTYPE = 5
    SIGNATURE = 6
    DATA = 7
    TARGET = 8
    ACTIVE = 9
    NO_REPLY = 10
    SUBSCRIBERS = 11
    USER = 12
    GROUP = 13


# Tags at or above this value are rejected in a flat message payload.
ATTR_MAX = len(Attr)


class Type(enum.IntEnum):
    """ Value types for named (blobmsg) attributes and for the children of
        arrays and tables. BOOL shares its wire value with INT8, so
        ``Type.BOOL is Type.INT8``.
    """

    UNSPEC = 0
    ARRAY = 1
    TABLE = 2
    STRING = 3
    INT64 = 4
    INT32 = 5
    INT16 = 6
    INT8 = 7
    BOOL = 7
    DOUBLE = 8


TYPE_MAX = Type.DOUBLE + 1


class Status(enum.IntEnum):
    """ Status codes reported by the broker in the STATUS attribute.
    """

    OK = 0
    INVALID_COMMAND = 1
    INVALID_ARGUMENT = 2
    METHOD_NOT_FOUND = 3
    NOT_FOUND = 4
    NO_DATA = 5
    PERMISSION_DENIED = 6
    TIMEOUT = 7
    NOT_SUPPORTED = 8
    UNKNOWN_ERROR = 9
    CONNECTION_FAILED = 10


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
