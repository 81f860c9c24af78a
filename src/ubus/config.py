""" Default settings for ubus connections. Each default may be overridden
    from the environment; values are read once, at import time, and may
    also be replaced at run time by assigning to the module attributes.

    :ivar socket_path: Filesystem path to the broker's Unix domain socket.
    :ivar timeout: Read deadline, in seconds, for the handshake and for every
        full-frame read.
"""

import os

default_socket_path = '/var/run/ubus/ubus.sock'
default_timeout = 60.0


def _timeout_from_environment():

    raw = os.environ.get('UBUS_TIMEOUT')

    if raw is None or raw == '':
        return default_timeout

    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError('UBUS_TIMEOUT must be a number of seconds: ' + repr(raw))

    if timeout <= 0:
        raise ValueError('UBUS_TIMEOUT must be positive: ' + repr(raw))

    return timeout


socket_path = os.environ.get('UBUS_SOCKET') or default_socket_path
timeout = _timeout_from_environment()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
