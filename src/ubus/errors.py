""" Exception classes raised by the ubus client. Everything raised on purpose
    derives from :class:`UbusError`. Errors from the codec, the framer and
    the transport are fatal to the connection: the :class:`ubus.Session`
    closes itself before letting them propagate. The remaining errors are
    local to a single call, and the session remains usable afterwards.
"""

from .protocol.fields import Status


_messages = {
    Status.OK: 'Success',
    Status.INVALID_COMMAND: 'Invalid command',
    Status.INVALID_ARGUMENT: 'Invalid argument',
    Status.METHOD_NOT_FOUND: 'Method not found',
    Status.NOT_FOUND: 'Not found',
    Status.NO_DATA: 'No response',
    Status.PERMISSION_DENIED: 'Permission denied',
    Status.TIMEOUT: 'Request timed out',
    Status.NOT_SUPPORTED: 'Operation not supported',
    Status.UNKNOWN_ERROR: 'Unknown error',
    Status.CONNECTION_FAILED: 'Connection failed',
}


def strerror(code):
    """ Return the fixed human-readable string for a broker status *code*.
    """

    try:
        return _messages[code]
    except KeyError:
        return 'Unknown error (%d)' % (code)


def status(code):
    """ Return the :class:`Status` member for *code*, or the plain integer
        if the broker sent a code this client does not know about.
    """

    try:
        return Status(code)
    except ValueError:
        return code


class UbusError(Exception):
    """Base class for all ubus client errors."""

    code = Status.UNKNOWN_ERROR


class ProtocolError(UbusError):
    """ Malformed frame or attribute: bad header version, attribute tag out
        of range, or a declared length that does not fit its container.
    """


class TransportError(UbusError):
    """Base class for socket-level failures."""

    code = Status.CONNECTION_FAILED


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class TransportTimeout(TransportError):
    """A read did not complete before its deadline."""

    code = Status.TIMEOUT


class TypeMismatch(UbusError, TypeError):
    """An attribute accessor was used on an attribute of another type."""

    code = Status.INVALID_ARGUMENT


class NotFound(UbusError):
    """A lookup reply did not carry an object id."""

    code = Status.NOT_FOUND


class NoData(UbusError):
    """An invoke reply of type DATA did not carry a DATA attribute."""

    code = Status.NO_DATA


class UnknownError(UbusError):
    """A reply did not match any anticipated shape."""


class RemoteError(UbusError):
    """ The broker, or the object behind it, answered with a nonzero status.

        :ivar code: A :class:`Status` member, or the raw integer when the
            code is not one this client recognizes.
    """

    def __init__(self, code, context=None):

        self.code = status(code)
        self.context = context

        text = strerror(code)
        if context:
            text = context + ': ' + text

        UbusError.__init__(self, text)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
