import pytest

import ubus
from ubus.protocol import factory
from ubus.protocol.attribute import Attribute, Table
from ubus.protocol.fields import Attr, MsgType, Status


def test_handshake(broker):

    server = broker()
    session = ubus.connect(server.path, timeout=5)

    assert session.local_id == 7
    assert session.sequence == 0
    assert session.state == 'connected'
    assert session.connected

    session.disconnect()

    assert session.local_id is None
    assert session.state == 'closed'
    assert not session.transport.is_open

    # Idempotent.
    session.disconnect()


def test_handshake_discards_payload(broker):

    hello = factory.frame(MsgType.HELLO, factory.lookup('ignored.payload'), 0, 11)
    server = broker([[factory.lookup_reply(42)]], hello=hello)

    with ubus.connect(server.path, timeout=5) as session:
        assert session.local_id == 11
        assert session.lookup('my.service') == 42


def test_handshake_wrong_type(broker):

    server = broker(hello=factory.status(0, peer=7))

    with pytest.raises(ubus.ProtocolError):
        ubus.connect(server.path, timeout=5)


def test_handshake_zero_peer(broker):

    server = broker(hello=factory.hello(0))

    with pytest.raises(ubus.ProtocolError):
        ubus.connect(server.path, timeout=5)


def test_lookup(broker):

    server = broker([[factory.lookup_reply(42, 'my.service')]])

    with ubus.connect(server.path, timeout=5) as session:
        assert session.lookup('my.service') == 42
        assert session.sequence == 1

    request = server.requests[0]
    assert request.type == MsgType.LOOKUP
    assert request.header.peer == 0
    assert request.header.sequence == 0
    assert request.get(Attr.OBJPATH).as_string() == 'my.service'


def test_lookup_not_found(broker):

    server = broker([[factory.status(Status.NOT_FOUND)], [factory.lookup_reply(5)]])

    with ubus.connect(server.path, timeout=5) as session:
        with pytest.raises(ubus.NotFound):
            session.lookup('missing')

        # The session is still usable.
        assert session.connected
        assert session.lookup('present') == 5


def test_sequence_wrap(broker):

    server = broker([[factory.lookup_reply(1)], [factory.lookup_reply(2)]])

    with ubus.connect(server.path, timeout=5) as session:
        session.sequence = 0xFFFF

        assert session.lookup('first') == 1
        assert session.sequence == 0
        assert session.lookup('second') == 2
        assert session.sequence == 1

    sequences = [request.header.sequence for request in server.requests]
    assert sequences == [0xFFFF, 0]


def test_invoke(broker):

    replies = list()
    replies.append(factory.status(0))
    replies.append(factory.data({'result': 0}))

    server = broker([replies])
    args = Table([Attribute.string('name', 'eth0')])

    with ubus.connect(server.path, timeout=5) as session:
        result = session.invoke_by_id(0x55, 'status', args)

    assert isinstance(result, Table)
    assert result['result'].as_int32() == 0
    assert result.to_python() == {'result': 0}

    request = server.requests[0]
    assert request.type == MsgType.INVOKE
    assert request.header.peer == 0x55
    assert request.get(Attr.OBJID).as_uint32() == 0x55
    assert request.get(Attr.METHOD).as_string() == 'status'
    assert request.get(Attr.DATA).as_table() == args


def test_invoke_without_arguments(broker):

    server = broker([[factory.status(0), factory.data({'uptime': 100})]])

    with ubus.connect(server.path, timeout=5) as session:
        result = session.invoke_by_id(3, 'info')

    assert result.to_python() == {'uptime': 100}
    assert len(server.requests[0].get(Attr.DATA).as_table()) == 0


def test_invoke_remote_error(broker):

    server = broker([[factory.status(0), factory.status(Status.INVALID_ARGUMENT)]])

    with ubus.connect(server.path, timeout=5) as session:
        with pytest.raises(ubus.RemoteError) as caught:
            session.invoke_by_id(3, 'set')

        assert session.connected

    assert caught.value.code == Status.INVALID_ARGUMENT
    assert 'Invalid argument' in str(caught.value)


def test_invoke_unknown_status_code(broker):

    server = broker([[factory.status(0), factory.status(99)]])

    with ubus.connect(server.path, timeout=5) as session:
        with pytest.raises(ubus.RemoteError) as caught:
            session.invoke_by_id(3, 'set')

    assert caught.value.code == 99


def test_invoke_status_success(broker):

    server = broker([[factory.status(0), factory.status(0)]])

    with ubus.connect(server.path, timeout=5) as session:
        result = session.invoke_by_id(3, 'restart')

    assert result == Table()


def test_invoke_status_success_strict(broker):

    server = broker([[factory.status(0), factory.status(0)]])

    with ubus.connect(server.path, timeout=5, strict_status=True) as session:
        assert session.strict_status is True

        with pytest.raises(ubus.UnknownError):
            session.invoke_by_id(3, 'restart')


def test_invoke_no_data(broker):

    empty = factory.frame(MsgType.DATA, factory.buffer())
    server = broker([[factory.status(0), empty]])

    with ubus.connect(server.path, timeout=5) as session:
        with pytest.raises(ubus.NoData):
            session.invoke_by_id(3, 'info')


def test_invoke_unexpected_type(broker):

    ping = factory.frame(MsgType.PING, factory.buffer())
    server = broker([[factory.status(0), ping]])

    with ubus.connect(server.path, timeout=5) as session:
        with pytest.raises(ubus.UnknownError):
            session.invoke_by_id(3, 'info')


def test_invoke_by_name(broker):

    replies = list()
    replies.append([factory.lookup_reply(0x99, 'network.interface.lan')])
    replies.append([factory.status(0), factory.data({'up': True, 'device': 'br-lan'})])

    server = broker(replies)

    with ubus.connect(server.path, timeout=5) as session:
        result = session.invoke_by_name('network.interface.lan', 'status')
        assert session.sequence == 2

    assert result.to_python() == {'up': True, 'device': 'br-lan'}

    invoke = server.requests[1]
    assert invoke.header.sequence == 1
    assert invoke.header.peer == 0x99


def test_call(broker):

    replies = list()
    replies.append([factory.lookup_reply(4)])
    replies.append([factory.status(0), factory.data({'echo': {'count': 3, 'names': ['a', 'b']}})])

    server = broker(replies)

    with ubus.connect(server.path, timeout=5) as session:
        result = session.call('test', 'echo', count=3, names=['a', 'b'])

    assert result == {'echo': {'count': 3, 'names': ['a', 'b']}}

    args = server.requests[1].get(Attr.DATA).as_table()
    assert args.to_python() == {'count': 3, 'names': ['a', 'b']}


def test_malformed_reply_closes_session(broker):

    garbage = b'\x01' + factory.hello(7)[1:]
    server = broker([[garbage]])

    session = ubus.connect(server.path, timeout=5)

    with pytest.raises(ubus.ProtocolError):
        session.lookup('my.service')

    assert session.state == 'closed'
    assert not session.transport.is_open

    with pytest.raises(ubus.TransportError):
        session.lookup('my.service')


def test_timeout_closes_session(broker):

    server = broker([[]])
    session = ubus.connect(server.path, timeout=0.2)

    with pytest.raises(ubus.TransportTimeout):
        session.lookup('slow.service')

    assert session.state == 'closed'


def test_broker_hangup(broker):

    server = broker(hangup=True)
    session = ubus.connect(server.path, timeout=5)
    server.closed.wait(5)

    with pytest.raises(ubus.TransportError):
        session.lookup('gone')

    assert session.state == 'closed'


def test_not_connected():

    transport = ubus.transport.UnixTransport('/nonexistent/ubus.sock', timeout=1)
    session = ubus.Session(transport)

    assert session.state == 'disconnected'

    with pytest.raises(ubus.TransportConnectionError):
        session.lookup('anything')

    with pytest.raises(ubus.TransportConnectionError):
        session.connect()

    session.disconnect()
    assert session.state == 'disconnected'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
