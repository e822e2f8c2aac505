from abc import abstractmethod

from lineclient.conduit.base import Conduit
from lineclient.support.events import EventSource


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. """


class ResolutionError(ConnectorError):
    """ The host name could not be resolved to an address. """


class ConnectError(ConnectorError):
    """ The connection could not be established: refused, timed out or unreachable. """


class ConnectionNotConnectedError(ConnectorError):
    """ Indicates a connection is in the disconnected state when a connection is required. """


class WriteError(ConnectorError):
    """ Writing to an open connection failed. """


class CloseError(ConnectorError):
    """ Closing the connection failed. The connection is released regardless. """


class ConnectorEvent:
    """ base class for connector events. """
    def __init__(self, connector):
        self.connector = connector

    def __eq__(self, other):
        return type(self) is type(other) and self.connector is other.connector

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.connector)


class ConnectorConnectedEvent(ConnectorEvent):
    """ The connector was connected. """


class ConnectorDisconnectedEvent(ConnectorEvent):
    """ The connector was disconnected. """


class Connector:
    """ A connector describes an endpoint to which a conduit can be established. """

    def __init__(self):
        self.events = EventSource()

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @property
    @abstractmethod
    def connected(self) -> bool:
        """
        Determines if this connector is connected to its underlying resource.
        :return: True if this connector is connected to it's underlying resource. False otherwise.
        :rtype: bool
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        If the connection is not connected, raises ConnectionNotConnectedError
        """
        raise NotImplementedError

    @abstractmethod
    def connect(self):
        """
        Connects this connector to the endpoint.
        If the connection is already connected, this method returns silently.
        Raises ConnectorError if the connection cannot be established.
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self):
        raise NotImplementedError


class AbstractConnector(Connector):
    """ Manages the connection cycle to an endpoint."""

    def __init__(self):
        super().__init__()
        self._conduit = None

    @property
    def connected(self):
        return self._conduit is not None and self._connected()

    def connect(self):
        if self.connected:
            return
        self._conduit = self._connect()
        self.events.fire(ConnectorConnectedEvent(self))

    def disconnect(self):
        """
        Releases the conduit, if there is one, even when the transport is no longer connected.
        The conduit is cleared and the disconnected event fired before any close failure
        is raised as a CloseError.
        :return: True if a conduit was released.
        """
        conduit = self._conduit
        if conduit is None:
            return False
        self._conduit = None
        try:
            conduit.close()
        except OSError as e:
            raise CloseError("error closing connection to %s: %s" % (self.endpoint, e)) from e
        finally:
            self.events.fire(ConnectorDisconnectedEvent(self))
        return True

    @abstractmethod
    def _connect(self) -> Conduit:
        """ Template method for subclasses to perform the connection.
            If connection is not possible, a ConnectorError should be raised.
        """
        raise NotImplementedError

    def _connected(self):
        return self._conduit is not None and self._conduit.open

    @property
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        raises ConnectionNotConnectedError if not connected
        """
        self.check_connected()
        return self._conduit

    def check_connected(self):
        if not self.connected:
            raise ConnectionNotConnectedError("not connected to %s" % self.endpoint)
