"""
Interactive console client: connects to a TCP server and sends the lines typed at the prompt.

    lineclient --host 192.168.1.20 --port 20500
    > send hello
    > disconnect

The last endpoint connected to is saved, and with autoconnect on the client connects to it at
startup.
"""
import argparse
import cmd
import logging
import sys

from configobj import ConfigObjError

from lineclient.connector.base import ConnectorConnectedEvent, ConnectorDisconnectedEvent
from lineclient.connector_facade import LineConnector
from lineclient.settings import ConnectionSettings, load_settings, save_settings, settings_path, \
    settings_from_connector, compose_address

logger = logging.getLogger(__name__)

AUTOCONNECT_TIMEOUT_MILLIS = 5000
LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


class ClientShell(cmd.Cmd):
    """ the command loop. Each command is a single call on the connector. """

    intro = "Type help or ? to list commands."

    def __init__(self, connector: LineConnector, settings: ConnectionSettings, path=None,
                 timeout_millis=AUTOCONNECT_TIMEOUT_MILLIS, stdin=None, stdout=None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.connector = connector
        self.settings = settings
        self.path = path
        self.timeout_millis = timeout_millis
        connector.events.add(self._connector_event)
        self.prompt = self._prompt()

    def _connector_event(self, event):
        if isinstance(event, ConnectorConnectedEvent):
            logger.info("connection to %s opened" % event.connector.endpoint)
        elif isinstance(event, ConnectorDisconnectedEvent):
            logger.info("connection to %s closed" % event.connector.endpoint)

    def _prompt(self):
        if self.connector.is_connected():
            return "%s:%d> " % (self.connector.address, self.connector.port)
        return "> "

    def say(self, text):
        self.stdout.write(text + "\n")

    def autoconnect(self):
        """ connects to the saved endpoint, as done at startup when autoconnect is on """
        settings = self.settings
        if not self.connector.connect(settings.host, settings.port, AUTOCONNECT_TIMEOUT_MILLIS):
            self.say("Auto connection to host (%s:%d) failed: %s" %
                     (self.connector.address, self.connector.port, self.connector.error_message))
            return False
        self.say("Auto connection to %s:%d established" % (self.connector.address, self.connector.port))
        self.prompt = self._prompt()
        return True

    def save(self):
        if self.path is None:
            return
        try:
            save_settings(self.settings, self.path)
        except OSError as e:
            self.say("Could not save settings to %s: %s" % (self.path, e))

    def emptyline(self):
        # the default repeats the last command, which would resend the last message
        pass

    def parseline(self, line):
        command, arg, line_stripped = super().parseline(line)
        if command == 'send':
            # the message is sent as typed, only the separator after the command is dropped
            arg = line.lstrip()[len(command) + 1:]
        return command, arg, line_stripped

    def postcmd(self, stop, line):
        self.prompt = self._prompt()
        return stop

    def do_connect(self, arg):
        """connect HOST PORT [TIMEOUT_MS] | connect A B C D PORT [TIMEOUT_MS]
        Connects to the host, closing any current connection. With no arguments, connects to the
        last saved endpoint."""
        args = arg.split()
        if not args:
            host, port, timeout = self.settings.host, str(self.settings.port), None
        elif len(args) in (2, 3):
            host, port, timeout = args[0], args[1], args[2] if len(args) == 3 else None
        elif len(args) in (5, 6):
            host, port, timeout = compose_address(args[:4]), args[4], args[5] if len(args) == 6 else None
        else:
            self.say("usage: connect HOST PORT [TIMEOUT_MS]")
            return
        try:
            port = int(port)
            timeout = int(timeout) if timeout is not None else self.timeout_millis
        except ValueError:
            self.say("port and timeout must be numbers")
            return

        self.say("Connecting to host: %s:%d" % (host, port))
        if not self.connector.connect(host, port, timeout):
            self.say("Connection failed: %s" % self.connector.error_message)
            return
        self.say("Connection established")
        self.settings = settings_from_connector(self.connector, self.settings.autoconnect)
        self.save()

    def do_send(self, arg):
        """send TEXT
        Sends the text, terminated by CR LF. Spaces around the text are sent too."""
        if not self.connector.send(arg):
            self.say("Could not send data: %s" % self.connector.error_message)

    def do_disconnect(self, arg):
        """disconnect
        Closes the connection."""
        if self.connector.disconnect():
            self.say("Disconnected from %s:%d" % (self.connector.address, self.connector.port))
        else:
            self.say("Not connected")

    def do_status(self, arg):
        """status
        Shows the connection state, the last endpoint and the last error."""
        if self.connector.is_connected():
            self.say("Connected to %s:%d" % (self.connector.address, self.connector.port))
        else:
            self.say("Not connected (last endpoint %s:%d)" % (self.connector.address, self.connector.port))
        if self.connector.error_message:
            self.say("Last error: %s" % self.connector.error_message)
        self.say("Autoconnect: %s" % ("on" if self.settings.autoconnect else "off"))

    def do_autoconnect(self, arg):
        """autoconnect on|off
        Whether to connect to the last endpoint when the client starts."""
        value = arg.strip().lower()
        if value not in ('on', 'off'):
            self.say("usage: autoconnect on|off")
            return
        self.settings.autoconnect = value == 'on'
        self.save()
        self.say("Autoconnect %s" % value)

    def do_quit(self, arg):
        """quit
        Disconnects and exits."""
        return True

    def do_EOF(self, arg):
        self.say("")
        return True


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='lineclient', description="Send lines of text to a TCP server.")
    parser.add_argument('--host', help="host name or IPv4 address to connect to")
    parser.add_argument('--port', type=int, help="port to connect to")
    parser.add_argument('--timeout', type=int, default=AUTOCONNECT_TIMEOUT_MILLIS,
                        help="connect timeout in milliseconds, 0 to wait indefinitely (default %(default)s)")
    parser.add_argument('--write-timeout', type=int, default=0,
                        help="send timeout in milliseconds, 0 to wait indefinitely (default %(default)s)")
    parser.add_argument('--autoconnect', dest='autoconnect', action='store_true', default=None,
                        help="connect on startup")
    parser.add_argument('--no-autoconnect', dest='autoconnect', action='store_false',
                        help="do not connect on startup")
    parser.add_argument('--settings', help="settings file (default $LINECLIENT_SETTINGS or ~/.lineclient.cfg)")
    parser.add_argument('-v', '--verbose', action='store_true', help="log debug messages")
    args = parser.parse_args(argv)
    if args.timeout < 0 or args.write_timeout < 0:
        parser.error("timeouts must not be negative")
    return args


def configure_logging(verbose):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def initial_settings(args, path) -> ConnectionSettings:
    """ the saved settings, with any given on the command line taking precedence """
    try:
        settings = load_settings(path)
    except (ConfigObjError, UnicodeDecodeError) as e:
        logger.warning("ignoring unreadable settings in %s: %s" % (path, e))
        settings = ConnectionSettings()
    if args.host is not None:
        settings.host = args.host
    if args.port is not None:
        settings.port = args.port
    if args.autoconnect is not None:
        settings.autoconnect = args.autoconnect
    return settings


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.verbose)
    path = settings_path(args.settings)
    settings = initial_settings(args, path)

    with LineConnector(write_timeout_millis=args.write_timeout) as connector:
        shell = ClientShell(connector, settings, path, timeout_millis=args.timeout)
        if settings.autoconnect:
            shell.autoconnect()
        try:
            shell.cmdloop()
        except KeyboardInterrupt:
            shell.say("")
    return 0


if __name__ == '__main__':
    sys.exit(main())
