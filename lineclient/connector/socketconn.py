import logging
import socket

from lineclient.conduit.base import Conduit
from lineclient.conduit.socket_conduit import SocketConduit
from lineclient.connector.base import AbstractConnector, ConnectError, ResolutionError

logger = logging.getLogger(__name__)

MAX_PORT = 65535


class TCPServerEndpoint:
    """
    Describes a TCP server endpoint.
    The hostname is the name the endpoint was requested by (it may be None), the ip_address
    is the address it resolved to, and is what is used to connect.
    """
    def __init__(self, hostname, ip_address, port):
        self.hostname = hostname
        self.ip_address = ip_address
        self.port = port

    @property
    def address(self):
        return self.ip_address

    @property
    def sockaddr(self):
        return self.ip_address, self.port

    def __eq__(self, other):
        return isinstance(other, TCPServerEndpoint) and \
            (self.hostname, self.ip_address, self.port) == (other.hostname, other.ip_address, other.port)

    def __str__(self):
        return "%s:%d" % (self.ip_address, self.port)

    def __repr__(self):
        return "TCPServerEndpoint(%r, %r, %r)" % (self.hostname, self.ip_address, self.port)


UNSPECIFIED_ENDPOINT = TCPServerEndpoint(None, '0.0.0.0', 0)


def resolve_endpoint(host, port) -> TCPServerEndpoint:
    """
    Resolves a host name or dotted IPv4 address to an endpoint.
    Raises ResolutionError if the port is out of range or the host does not resolve.
    """
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= MAX_PORT:
        raise ResolutionError("invalid port %r, must be between 0 and %d" % (port, MAX_PORT))
    try:
        infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_STREAM)
    except (OSError, UnicodeError) as e:
        raise ResolutionError("unable to resolve host %r: %s" % (host, e)) from e
    ip_address = infos[0][4][0]
    return TCPServerEndpoint(host, ip_address, port)


def timeout_seconds(millis):
    """
    Converts a timeout in milliseconds to the value used by socket.settimeout().
    Zero means no timeout, which blocks until the operation completes or the OS gives up.

    >>> timeout_seconds(1500)
    1.5
    >>> timeout_seconds(0) is None
    True
    """
    if millis is None or millis == 0:
        return None
    if millis < 0:
        raise ConnectError("invalid timeout %r ms, must not be negative" % millis)
    return millis / 1000.0


class SocketConnector(AbstractConnector):
    """
    A connector that communicates data via a TCP client socket.
    The endpoint and timeouts may be changed between connections.
    """
    def __init__(self, endpoint=UNSPECIFIED_ENDPOINT, timeout=None, write_timeout=None,
                 sock_args=(socket.AF_INET, socket.SOCK_STREAM)):
        """
        :param endpoint: the TCPServerEndpoint to connect to
        :param timeout: seconds to wait for the connection to be established, None to block
        :param write_timeout: seconds a write may block once connected, None to block
        :param sock_args: arguments for the socket.socket() call
        """
        super().__init__()
        self.endpoint = endpoint
        self.timeout = timeout
        self.write_timeout = write_timeout
        self._sock_args = sock_args

    @property
    def endpoint(self):
        return self._endpoint

    @endpoint.setter
    def endpoint(self, endpoint):
        self._endpoint = endpoint

    def _connect(self) -> Conduit:
        endpoint = self._endpoint
        sock = None
        try:
            sock = socket.socket(*self._sock_args)
            sock.settimeout(self.timeout)
            sock.connect(endpoint.sockaddr)
            sock.settimeout(self.write_timeout)
            ip_address, port = sock.getpeername()[:2]
        except OSError as e:
            if sock is not None:
                sock.close()
            logger.warning("error opening socket to %s: %s" % (endpoint, e))
            raise ConnectError("unable to connect to %s: %s" % (endpoint, e)) from e
        self._endpoint = TCPServerEndpoint(endpoint.hostname, ip_address, port)
        logger.info("opened socket to %s" % self._endpoint)
        return SocketConduit(sock)
