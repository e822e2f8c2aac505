"""
The line connector manages a single TCP client connection used to send newline terminated text.

Failures never propagate out of the connector. Each operation reports success as a boolean and
keeps a human readable description of the most recent failure in error_message. The message is
not cleared when a later operation succeeds.

    connector = LineConnector()
    if not connector.connect('192.168.1.20', 20500, 5000):
        print("Connection failed: " + connector.error_message)
    elif not connector.send('hello'):
        print("Could not send data: " + connector.error_message)
    connector.disconnect()
"""
import logging
import threading

from lineclient.connector.base import ConnectorError, CloseError, ConnectionNotConnectedError
from lineclient.connector.socketconn import SocketConnector, resolve_endpoint, timeout_seconds
from lineclient.protocol.lines import LineWriter, DEFAULT_ENCODING

logger = logging.getLogger(__name__)

NOT_CONNECTED_MESSAGE = "Not connected, could not send data"


class LineConnector:
    """
    Connects to one endpoint at a time and sends lines of text to it.

    Every public operation holds the connector's lock for its whole duration, so calls from
    several threads are serialized. connect() and send() block the calling thread; there is
    no way to abort them other than the timeouts.
    """

    def __init__(self, connector: SocketConnector = None, encoding=DEFAULT_ENCODING, write_timeout_millis=0):
        """
        :param connector: the socket connector to manage. A new one is created when not given.
        :param encoding: the text encoding used on the wire
        :param write_timeout_millis: how long a send may block. 0 blocks until the data is written.
        """
        self._connector = connector if connector is not None else SocketConnector()
        self._connector.write_timeout = timeout_seconds(write_timeout_millis)
        self.encoding = encoding
        self._error_message = ""
        self._lock = threading.RLock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    @property
    def events(self):
        """ fires ConnectorConnectedEvent and ConnectorDisconnectedEvent """
        return self._connector.events

    def connect(self, host: str, port: int, timeout_millis: int) -> bool:
        """
        Connects to the given host and port, closing any existing connection first.
        :param host: host name or dotted IPv4 address
        :param port: port number, 0-65535
        :param timeout_millis: how long to wait for the connection, 0 waits until connected
            or the operating system gives up.
        :return: True if connected. On failure, error_message describes why.
        """
        with self._lock:
            try:
                timeout = timeout_seconds(timeout_millis)
                endpoint = resolve_endpoint(host, port)
            except ConnectorError as e:
                return self._failed("connect", e)

            self._disconnect()
            connector = self._connector
            connector.endpoint = endpoint
            connector.timeout = timeout
            try:
                connector.connect()
            except ConnectorError as e:
                return self._failed("connect", e)
            logger.info("connected to %s" % connector.endpoint)
            return True

    def send(self, data: str) -> bool:
        """
        Sends data followed by CR LF. The connection is left open, and is not closed when
        sending fails.
        :return: True if the data was written and flushed.
        """
        with self._lock:
            if not self._connector.connected:
                return self._failed("send", ConnectionNotConnectedError(NOT_CONNECTED_MESSAGE))
            try:
                LineWriter(self._connector.conduit.output, self.encoding).write_line(data)
            except ConnectorError as e:
                return self._failed("send", e)
            return True

    def disconnect(self) -> bool:
        """
        Closes the connection. The endpoint is kept.
        :return: True if there was a connection to close. A failure while closing is recorded
            in error_message but the connection is still released and True returned.
        """
        with self._lock:
            return self._disconnect()

    def _disconnect(self):
        connected = self._connector.connected
        try:
            self._connector.disconnect()
        except CloseError as e:
            if connected:
                self._failed("disconnect", e)
            else:
                # the transport was already gone, so the close failure is not reported
                logger.debug("released dead connection: %s" % e)
        if connected:
            logger.info("disconnected from %s" % self._connector.endpoint)
        return connected

    def is_connected(self) -> bool:
        """ True when there is a connection and the peer has not closed or reset it. """
        with self._lock:
            return self._connector.connected

    @property
    def error_message(self) -> str:
        return self._error_message

    @property
    def endpoint(self):
        """ the endpoint last connected to or attempted. 0.0.0.0:0 until the first attempt. """
        return self._connector.endpoint

    @property
    def address(self) -> str:
        return self._connector.endpoint.address

    @property
    def port(self) -> int:
        return self._connector.endpoint.port

    def get_error_message(self):
        return self.error_message

    def get_address(self):
        return self.address

    def get_port(self):
        return self.port

    def _failed(self, operation, error):
        self._error_message = str(error)
        logger.info("%s failed: %s" % (operation, error))
        logger.debug("%s failure detail" % operation, exc_info=error)
        return False
