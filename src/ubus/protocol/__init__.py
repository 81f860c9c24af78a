"""
ubus Protocol Layer
===================

This package defines the wire format spoken between a ubus client and the
broker. It has no knowledge of sockets; the transport layer moves the bytes
produced here.

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

Session (ubus.session)
    lookup(), invoke_by_id(), invoke_by_name()

    │
    ▼
Message Factory (factory.py)
    Builds request payloads and broker replies

    │
    ▼
Message Model (message.py, wire.py)
    Twelve byte Header, Message, frame packing

    │
    ▼
Attribute Codec (attribute.py)
    Attribute, Array, Table, Buffer
    Flat protocol attributes and named blobmsg attributes

    │
    ▼
Field Vocabulary (fields.py)
    MsgType, Attr, Type, Status

---------------------------------------------------------------------
"""

# Import order matters: fields has no dependencies, and the error classes
# in ubus.errors depend on it.

from . import fields
from . import attribute
from . import message
from . import wire
from . import factory

from .attribute import Array, Attribute, Buffer, Table
from .fields import Attr, MsgType, Status, Type
from .message import Header, Message


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
