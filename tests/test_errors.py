import importlib
import pytest

import ubus
from ubus.protocol.fields import Status


def test_strerror():

    assert ubus.strerror(Status.OK) == 'Success'
    assert ubus.strerror(Status.INVALID_ARGUMENT) == 'Invalid argument'
    assert ubus.strerror(Status.NO_DATA) == 'No response'
    assert ubus.strerror(Status.CONNECTION_FAILED) == 'Connection failed'
    assert ubus.strerror(10) == 'Connection failed'
    assert ubus.strerror(42) == 'Unknown error (42)'

    for code in Status:
        assert ubus.strerror(code)


def test_remote_error():

    error = ubus.RemoteError(4, 'get (0x00000001)')

    assert error.code is Status.NOT_FOUND
    assert str(error) == 'get (0x00000001): Not found'
    assert isinstance(error, ubus.UbusError)

    error = ubus.RemoteError(77)
    assert error.code == 77
    assert str(error) == 'Unknown error (77)'


def test_hierarchy():

    assert issubclass(ubus.TransportTimeout, ubus.TransportError)
    assert issubclass(ubus.TransportConnectionError, ubus.TransportError)
    assert issubclass(ubus.TypeMismatch, TypeError)

    for error in (ubus.ProtocolError, ubus.TransportError, ubus.TypeMismatch,
                  ubus.NotFound, ubus.NoData, ubus.UnknownError, ubus.RemoteError):
        assert issubclass(error, ubus.UbusError)

    assert ubus.NotFound.code == Status.NOT_FOUND
    assert ubus.TransportTimeout.code == Status.TIMEOUT


def test_config_from_environment(monkeypatch):

    monkeypatch.setenv('UBUS_SOCKET', '/tmp/test-ubus.sock')
    monkeypatch.setenv('UBUS_TIMEOUT', '2.5')

    try:
        config = importlib.reload(ubus.config)
        assert config.socket_path == '/tmp/test-ubus.sock'
        assert config.timeout == 2.5

        monkeypatch.setenv('UBUS_TIMEOUT', 'soon')
        with pytest.raises(ValueError):
            importlib.reload(ubus.config)

        monkeypatch.setenv('UBUS_TIMEOUT', '-1')
        with pytest.raises(ValueError):
            importlib.reload(ubus.config)
    finally:
        monkeypatch.delenv('UBUS_SOCKET')
        monkeypatch.delenv('UBUS_TIMEOUT')
        config = importlib.reload(ubus.config)

    assert config.socket_path == '/var/run/ubus/ubus.sock'
    assert config.timeout == 60.0


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
