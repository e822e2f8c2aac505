"""
Newline terminated text messages. Each message is encoded and written as one line ending in CR LF.
Nothing is read back from the peer.
"""
import logging

from lineclient.connector.base import WriteError

logger = logging.getLogger(__name__)

LINE_TERMINATOR = '\r\n'
DEFAULT_ENCODING = 'utf-8'


def encode_line(text: str, encoding=DEFAULT_ENCODING) -> bytes:
    """
    >>> encode_line('hello')
    b'hello\\r\\n'
    """
    return (text + LINE_TERMINATOR).encode(encoding)


class LineWriter:
    """
    Writes lines to a binary output stream, flushing after each line.
    The stream is left open.
    """

    def __init__(self, output, encoding=DEFAULT_ENCODING):
        self.output = output
        self.encoding = encoding

    def write_line(self, text: str) -> int:
        """
        :return: the number of bytes written
        :raises WriteError: if the text cannot be encoded or the stream fails
        """
        try:
            data = encode_line(text, self.encoding)
            self.output.write(data)
            self.output.flush()
        except (OSError, ValueError) as e:
            # UnicodeEncodeError is a ValueError, as is writing to a closed stream
            raise WriteError("unable to send data: %s" % e) from e
        logger.debug("sent %d bytes: %r" % (len(data), data))
        return len(data)
