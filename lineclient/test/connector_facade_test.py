import socket
import time
import unittest
from unittest.mock import Mock, patch, call

from hamcrest import assert_that, is_, is_not, empty, contains_string

from lineclient.connector.base import ConnectError, CloseError, ConnectorConnectedEvent, \
    ConnectorDisconnectedEvent
from lineclient.connector.socketconn import SocketConnector, TCPServerEndpoint
from lineclient.connector_facade import LineConnector, NOT_CONNECTED_MESSAGE


class Listener:
    """ a server socket on an ephemeral loopback port. Connections are accepted on demand. """

    def __init__(self):
        self.server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server.bind(('127.0.0.1', 0))
        self.server.listen(5)
        self.server.settimeout(5)
        self.port = self.server.getsockname()[1]
        self.clients = []

    def accept(self):
        client, address = self.server.accept()
        client.settimeout(5)
        self.clients.append(client)
        return client

    def close(self):
        for client in self.clients:
            client.close()
        self.server.close()


def read_exactly(sock, count):
    data = b''
    while len(data) < count:
        chunk = sock.recv(count - len(data))
        if not chunk:
            break
        data += chunk
    return data


def unused_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(('127.0.0.1', 0))
    port = s.getsockname()[1]
    s.close()
    return port


def wait_until(condition, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


class LineConnectorLoopbackTest(unittest.TestCase):
    """ functional tests against a listener on the loopback interface """

    def setUp(self):
        self.listener = Listener()
        self.sut = LineConnector()

    def tearDown(self):
        self.sut.disconnect()
        self.listener.close()

    def test_connect(self):
        assert_that(self.sut.connect('127.0.0.1', self.listener.port, 2000), is_(True))
        assert_that(self.sut.is_connected(), is_(True))
        assert_that(self.sut.address, is_('127.0.0.1'))
        assert_that(self.sut.port, is_(self.listener.port))
        assert_that(self.sut.get_address(), is_('127.0.0.1'))
        assert_that(self.sut.get_port(), is_(self.listener.port))

    def test_connect_by_hostname(self):
        assert_that(self.sut.connect('localhost', self.listener.port, 2000), is_(True))
        assert_that(self.sut.endpoint.hostname, is_('localhost'))
        assert_that(self.sut.address, is_('127.0.0.1'))

    def test_ping_scenario(self):
        assert_that(self.sut.connect('127.0.0.1', self.listener.port, 2000), is_(True))
        client = self.listener.accept()
        assert_that(self.sut.send("PING"), is_(True))
        assert_that(read_exactly(client, 6), is_(b'PING\r\n'))
        assert_that(self.sut.disconnect(), is_(True))
        assert_that(self.sut.is_connected(), is_(False))

    def test_send_is_byte_exact(self):
        self.sut.connect('127.0.0.1', self.listener.port, 2000)
        client = self.listener.accept()
        assert_that(self.sut.send("hello"), is_(True))
        self.sut.disconnect()
        assert_that(read_exactly(client, 100), is_(b'hello\r\n'))

    def test_connection_stays_open_between_sends(self):
        self.sut.connect('127.0.0.1', self.listener.port, 2000)
        client = self.listener.accept()
        assert_that(self.sut.send("one"), is_(True))
        assert_that(self.sut.send("two"), is_(True))
        assert_that(read_exactly(client, 10), is_(b'one\r\ntwo\r\n'))
        assert_that(self.sut.is_connected(), is_(True))

    def test_disconnect_keeps_endpoint(self):
        self.sut.connect('127.0.0.1', self.listener.port, 2000)
        self.sut.disconnect()
        assert_that(self.sut.address, is_('127.0.0.1'))
        assert_that(self.sut.port, is_(self.listener.port))

    def test_second_disconnect_is_noop(self):
        self.sut.connect('127.0.0.1', self.listener.port, 2000)
        assert_that(self.sut.disconnect(), is_(True))
        assert_that(self.sut.disconnect(), is_(False))

    def test_connect_again_closes_first_connection(self):
        other = Listener()
        try:
            assert_that(self.sut.connect('127.0.0.1', self.listener.port, 2000), is_(True))
            first = self.listener.accept()
            assert_that(self.sut.connect('127.0.0.1', other.port, 2000), is_(True))
            # end of stream on the first connection shows it was closed
            assert_that(first.recv(1), is_(b''))
            assert_that(self.sut.port, is_(other.port))
            assert_that(self.sut.is_connected(), is_(True))
        finally:
            self.sut.disconnect()
            other.close()

    def test_peer_close_is_detected(self):
        self.sut.connect('127.0.0.1', self.listener.port, 2000)
        client = self.listener.accept()
        client.close()
        assert_that(wait_until(lambda: not self.sut.is_connected()), is_(True))
        assert_that(self.sut.send("late"), is_(False))
        assert_that(self.sut.error_message, is_(NOT_CONNECTED_MESSAGE))

    def test_peer_close_after_greeting_is_detected(self):
        self.sut.connect('127.0.0.1', self.listener.port, 2000)
        client = self.listener.accept()
        client.sendall(b'welcome\r\n')
        client.close()
        assert_that(wait_until(lambda: not self.sut.is_connected()), is_(True))

    def test_disconnect_after_peer_close(self):
        self.sut.connect('127.0.0.1', self.listener.port, 2000)
        self.listener.accept().close()
        wait_until(lambda: not self.sut.is_connected())
        assert_that(self.sut.disconnect(), is_(False))
        assert_that(self.sut._connector._conduit, is_(None))

    def test_context_manager_disconnects(self):
        with self.sut as connector:
            connector.connect('127.0.0.1', self.listener.port, 2000)
            client = self.listener.accept()
        assert_that(self.sut.is_connected(), is_(False))
        assert_that(client.recv(1), is_(b''))

    def test_events(self):
        handler = Mock()
        self.sut.events.add(handler)
        self.sut.connect('127.0.0.1', self.listener.port, 2000)
        self.sut.disconnect()
        events = [c[0][0] for c in handler.call_args_list]
        assert_that(events, is_([ConnectorConnectedEvent(self.sut._connector),
                                 ConnectorDisconnectedEvent(self.sut._connector)]))


class LineConnectorFailureTest(unittest.TestCase):

    def test_initial_state(self):
        sut = LineConnector()
        assert_that(sut.is_connected(), is_(False))
        assert_that(sut.error_message, is_(""))
        assert_that(sut.address, is_('0.0.0.0'))
        assert_that(sut.port, is_(0))

    def test_connect_closed_port(self):
        port = unused_port()
        sut = LineConnector()
        assert_that(sut.connect('127.0.0.1', port, 1000), is_(False))
        assert_that(sut.is_connected(), is_(False))
        assert_that(sut.error_message, is_not(empty()))
        assert_that(sut.address, is_('127.0.0.1'))
        assert_that(sut.port, is_(port))
        assert_that(sut._connector._conduit, is_(None))

    def test_disconnect_never_connected(self):
        sut = LineConnector()
        sut.send("x")
        message = sut.error_message
        assert_that(sut.disconnect(), is_(False))
        assert_that(sut.error_message, is_(message))

    def test_unresolvable_host_keeps_endpoint(self):
        sut = LineConnector()
        with patch('lineclient.connector.socketconn.socket.getaddrinfo') as getaddrinfo:
            getaddrinfo.side_effect = socket.gaierror(-2, "Name or service not known")
            assert_that(sut.connect('no.such.host', 80, 1000), is_(False))
        assert_that(sut.error_message, contains_string("Name or service not known"))
        assert_that(sut.address, is_('0.0.0.0'))
        assert_that(sut.port, is_(0))

    def test_invalid_port(self):
        sut = LineConnector()
        assert_that(sut.connect('127.0.0.1', 70000, 1000), is_(False))
        assert_that(sut.error_message, contains_string("invalid port"))
        assert_that(sut.port, is_(0))

    def test_negative_timeout(self):
        sut = LineConnector()
        assert_that(sut.connect('127.0.0.1', 80, -5), is_(False))
        assert_that(sut.error_message, contains_string("invalid timeout"))
        assert_that(sut.address, is_('0.0.0.0'))

    def test_error_not_cleared_on_success(self):
        listener = Listener()
        sut = LineConnector()
        try:
            sut.send("x")
            assert_that(sut.connect('127.0.0.1', listener.port, 2000), is_(True))
            assert_that(sut.error_message, is_(NOT_CONNECTED_MESSAGE))
        finally:
            sut.disconnect()
            listener.close()


class LineConnectorMockTest(unittest.TestCase):
    """ checks the facade's handling of the connector it manages """

    def connector(self, connected):
        connector = Mock(spec=SocketConnector)
        connector.connected = connected
        connector.endpoint = TCPServerEndpoint(None, '10.0.0.1', 23)
        connector.events = Mock()
        return connector

    def test_write_timeout(self):
        connector = self.connector(False)
        LineConnector(connector, write_timeout_millis=1500)
        assert_that(connector.write_timeout, is_(1.5))

    def test_send_not_connected_performs_no_io(self):
        connector = self.connector(False)
        sut = LineConnector(connector)
        assert_that(sut.send("hello"), is_(False))
        assert_that(sut.error_message.lower(), contains_string("not connected"))
        connector.conduit.output.write.assert_not_called()
        connector.conduit.output.flush.assert_not_called()

    def test_send(self):
        connector = self.connector(True)
        sut = LineConnector(connector)
        assert_that(sut.send("hello"), is_(True))
        connector.conduit.output.write.assert_called_once_with(b'hello\r\n')
        connector.conduit.output.flush.assert_called_once_with()

    def test_send_with_encoding(self):
        connector = self.connector(True)
        sut = LineConnector(connector, encoding='latin-1')
        sut.send("hé")
        connector.conduit.output.write.assert_called_once_with(b'h\xe9\r\n')

    def test_send_failure_does_not_disconnect(self):
        connector = self.connector(True)
        connector.conduit.output.flush.side_effect = BrokenPipeError(32, "Broken pipe")
        sut = LineConnector(connector)
        assert_that(sut.send("hello"), is_(False))
        assert_that(sut.error_message, contains_string("Broken pipe"))
        connector.disconnect.assert_not_called()

    def test_connect_failure(self):
        connector = self.connector(False)
        connector.connect.side_effect = ConnectError("unable to connect to 127.0.0.1:9: refused")
        sut = LineConnector(connector)
        assert_that(sut.connect('127.0.0.1', 9, 1000), is_(False))
        assert_that(sut.error_message, is_("unable to connect to 127.0.0.1:9: refused"))
        assert_that(connector.endpoint, is_(TCPServerEndpoint('127.0.0.1', '127.0.0.1', 9)))
        assert_that(connector.timeout, is_(1.0))

    def test_connect_disconnects_first(self):
        connector = self.connector(True)
        sut = LineConnector(connector)
        assert_that(sut.connect('127.0.0.1', 9, 0), is_(True))
        assert_that(connector.method_calls, is_([call.disconnect(), call.connect()]))
        assert_that(connector.timeout, is_(None))
        connector.disconnect.assert_called_once_with()
        connector.connect.assert_called_once_with()

    def test_connect_close_error_is_recorded(self):
        connector = self.connector(True)
        connector.disconnect.side_effect = CloseError("close failed")
        sut = LineConnector(connector)
        assert_that(sut.connect('127.0.0.1', 9, 100), is_(True))
        assert_that(sut.error_message, is_("close failed"))

    def test_disconnect(self):
        connector = self.connector(True)
        sut = LineConnector(connector)
        assert_that(sut.disconnect(), is_(True))
        connector.disconnect.assert_called_once_with()

    def test_disconnect_close_error(self):
        connector = self.connector(True)
        connector.disconnect.side_effect = CloseError("close failed")
        sut = LineConnector(connector)
        assert_that(sut.disconnect(), is_(True))
        assert_that(sut.error_message, is_("close failed"))

    def test_disconnect_dead_connection_close_error(self):
        connector = self.connector(False)
        connector.disconnect.side_effect = CloseError("close failed")
        sut = LineConnector(connector)
        assert_that(sut.disconnect(), is_(False))
        assert_that(sut.error_message, is_(""))

    def test_events(self):
        connector = self.connector(False)
        sut = LineConnector(connector)
        assert_that(sut.events, is_(connector.events))

    def test_lock(self):
        sut = LineConnector(self.connector(False))
        with sut._lock:
            # re-entrant, so operations may be called while holding it
            assert_that(sut.is_connected(), is_(False))


if __name__ == '__main__':
    unittest.main()
