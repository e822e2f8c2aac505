import logging
import select
import socket

from lineclient.conduit import base

logger = logging.getLogger(__name__)

DRAIN_SIZE = 4096


class SocketConduit(base.Conduit):
    """
    A conduit that provides communication via a connected client socket.
    """
    def __init__(self, sock: socket.socket):
        """
        :param sock: the client socket that represents the connection
        :type sock: socket
        """
        self.sock = sock
        self.read = sock.makefile('rb')
        self.write = sock.makefile('wb')

    @property
    def open(self) -> bool:
        """
        Queries the socket rather than remembering the last known state, so a session
        closed or reset by the peer is reported as not open.
        Data sent by the peer is never used, so pending data is discarded to reach an end of
        stream that may follow it.
        """
        sock = self.sock
        if sock.fileno() < 0:
            return False
        try:
            while True:
                readable, _, _ = select.select([sock], [], [], 0)
                if not readable:
                    return True
                # readable with no data means the peer sent FIN
                if not sock.recv(DRAIN_SIZE):
                    return False
        except (OSError, ValueError):
            return False

    @property
    def target(self):
        return self.sock

    @property
    def output(self):
        return self.write

    @property
    def input(self):
        return self.read

    def close(self):
        """
        Closes the streams and the socket. The socket is always closed, even when closing
        the streams fails; the first failure is re-raised afterwards.
        """
        try:
            self.read.close()
            self.write.close()
        finally:
            try:
                self.sock.shutdown(socket.SHUT_RDWR)
            except OSError as e:
                # the peer may already have closed the socket
                logger.debug("socket shutdown failed: %s" % e)
            finally:
                self.sock.close()
