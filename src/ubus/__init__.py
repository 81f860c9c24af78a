""" Python client for ubus, the OpenWrt message bus. A client connects to
    the broker over a Unix domain socket, looks up objects by path, and
    invokes their methods; arguments and results are tables of typed,
    named attributes.

    Typical use::

        with ubus.connect() as session:
            board = session.call('system', 'board')
"""

# Utility components.

from . import config
from . import json

# Submodules used by multiple other components.

from . import protocol
from . import errors
from . import transport

# Primary public-facing interfaces.

from . import session
from .session import Session, connect

from .protocol import Array, Attribute, Table
from .errors import (
    UbusError,
    ProtocolError,
    TransportError,
    TransportConnectionError,
    TransportTimeout,
    TypeMismatch,
    NotFound,
    NoData,
    UnknownError,
    RemoteError,
    strerror,
)

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
