"""
Connection settings that persist between runs: the endpoint last connected to, and whether to
connect to it automatically on startup.
"""
import logging
import os

from lineclient.config.config import load_config, write_config, apply_conf

logger = logging.getLogger(__name__)

SETTINGS_NAME = 'settings'
SETTINGS_ENV = 'LINECLIENT_SETTINGS'
DEFAULT_SETTINGS_FILE = os.path.join('~', '.lineclient.cfg')

UNSPECIFIED_ADDRESS = '0.0.0.0'


class ConnectionSettings:
    def __init__(self, host=UNSPECIFIED_ADDRESS, port=0, autoconnect=False):
        self.host = host
        self.port = port
        self.autoconnect = autoconnect

    def as_dict(self):
        return {'host': self.host, 'port': self.port, 'autoconnect': self.autoconnect}

    def __eq__(self, other):
        return isinstance(other, ConnectionSettings) and self.as_dict() == other.as_dict()

    def __repr__(self):
        return "ConnectionSettings(%r, %r, %r)" % (self.host, self.port, self.autoconnect)


def settings_path(path=None):
    """
    The settings file to use: the path given, else the LINECLIENT_SETTINGS environment variable,
    else ~/.lineclient.cfg
    """
    return os.path.expanduser(path or os.environ.get(SETTINGS_ENV) or DEFAULT_SETTINGS_FILE)


def load_settings(path=None) -> ConnectionSettings:
    """
    Reads the settings file. A missing file gives the default settings.
    :raises ConfigValidationError: if the file has invalid values
    """
    config = load_config(SETTINGS_NAME, settings_path(path))
    return apply_conf(config, ConnectionSettings())


def save_settings(settings: ConnectionSettings, path=None):
    path = settings_path(path)
    write_config(settings.as_dict(), path)
    logger.info("saved connection settings %s to %s" % (settings, path))


def settings_from_connector(connector, autoconnect) -> ConnectionSettings:
    """
    Captures the endpoint the connector last connected to, or tried to, for saving.
    """
    return ConnectionSettings(connector.address, connector.port, autoconnect)


def compose_address(octets):
    """
    Joins the four fields of a dotted IPv4 address. Fields that are missing or blank become '0'.

    >>> compose_address(['192', '168', '', '7'])
    '192.168.0.7'
    >>> compose_address(['10'])
    '10.0.0.0'
    """
    fields = list(octets)[:4]
    fields += [''] * (4 - len(fields))
    return '.'.join(f.strip() or '0' for f in fields)
