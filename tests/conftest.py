import os
import pytest
import shutil
import socket
import tempfile
import threading

import ubus
from ubus.protocol import factory


class FakeBroker:
    """ A scripted stand-in for the ubus broker. It accepts one connection,
        sends *hello*, and then, for every request it receives, sends the
        next group of frames from *replies*. Each request is recorded, as a
        :class:`ubus.protocol.Message`, in the *requests* list. If *hangup*
        is True the connection is closed as soon as the script is exhausted.
    """

    def __init__(self, path, replies=(), hello=None, hangup=False):

        if hello is None:
            hello = factory.hello(7)

        self.path = path
        self.hello = hello
        self.replies = list(replies)
        self.hangup = hangup
        self.requests = list()
        self.closed = threading.Event()

        self.listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self.listener.bind(path)
        self.listener.listen(1)

        self.thread = threading.Thread(target=self.run)
        self.thread.daemon = True
        self.thread.start()


    def run(self):

        try:
            connection, address = self.listener.accept()
        except OSError:
            self.closed.set()
            return

        connection.settimeout(5)

        try:
            connection.sendall(self.hello)

            for group in self.replies:
                request = self.read_request(connection)
                if request is None:
                    return
                self.requests.append(request)

                for frame in group:
                    connection.sendall(frame)

            # Hold the connection open until the client hangs up, unless
            # asked to hang up first.

            while not self.hangup:
                try:
                    chunk = connection.recv(4096)
                except socket.timeout:
                    continue
                if chunk == b'':
                    break
        except OSError:
            pass
        finally:
            connection.close()
            self.closed.set()


    def read_request(self, connection):

        header = self.read_exact(connection, ubus.protocol.message.HEADER_SIZE)
        if header is None:
            return None

        header, body_size = ubus.protocol.wire.unpack_header(header)
        body = self.read_exact(connection, body_size)
        if body is None:
            return None

        return ubus.protocol.Message(header, body)


    def read_exact(self, connection, size):

        data = b''
        while len(data) < size:
            chunk = connection.recv(size - len(data))
            if chunk == b'':
                return None
            data += chunk
        return data


    def stop(self):
        self.listener.close()


@pytest.fixture
def socket_directory():

    # Unix socket paths are limited to about a hundred characters; pytest's
    # own tmp_path can exceed that.

    directory = tempfile.mkdtemp(prefix='ubus-', dir='/tmp')
    yield directory
    shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
def broker(socket_directory):

    started = list()

    def start(replies=(), hello=None, hangup=False):
        path = os.path.join(socket_directory, 'ubus.sock')
        instance = FakeBroker(path, replies, hello, hangup)
        started.append(instance)
        return instance

    yield start

    for instance in started:
        instance.stop()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
