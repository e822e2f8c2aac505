import logging
import os

from configobj import ConfigObj, Section, ConfigObjError, flatten_errors
from validate import Validator

logger = logging.getLogger(__name__)

# The default extension for configuration files
config_extension = '.cfg'


class ConfigValidationError(ConfigObjError):
    """ A configuration file contains values that do not match its schema. """

    def __init__(self, filename, errors):
        """
        :param filename: the file that failed validation
        :param errors: a list of (key, reason) pairs
        """
        self.filename = filename
        self.errors = errors
        super().__init__("%s failed validation: %s" % (
            filename, "; ".join("%s: %s" % (key, reason) for key, reason in errors)))


def config_flavor(name, flavor=None):
    """
    >>> config_flavor('settings', 'schema')
    'settings.schema'
    >>> config_flavor('settings')
    'settings'
    """
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name):
    """
    Determines the location of a config file shipped with this module.
    """
    dirname = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(dirname, name + config_extension)


def schema_filename(name):
    return config_filename(config_flavor(name, 'schema'))


def load_config(name, file=None, must_exist=False) -> ConfigObj:
    """
    Loads a configuration file and validates it against the schema for the given name.
    Values missing from the file are filled in from the schema defaults.
    :param name:        the name of the configuration, which selects the schema '<name>.schema.cfg'
    :param file:        the configuration file to load. When None, only the defaults are returned.
    :param must_exist:  when True, the file must exist or an IOError is raised.
    :return: The validated ConfigObj instance for the file. Its filename is set so it can be written.
    """
    config = ConfigObj(file, configspec=schema_filename(name), file_error=must_exist, encoding='utf-8')
    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        errors = []
        for section_list, key, res in flatten_errors(config, result):
            section = '.'.join(section_list + [key] if key is not None else section_list)
            errors.append((section, res if res is not False else "missing"))
        raise ConfigValidationError(file, errors)
    logger.debug("loaded %s configuration from %s" % (name, file))
    return config


def write_config(values: dict, file):
    """
    Writes the given values to a configuration file, creating its directory if needed.
    """
    dirname = os.path.dirname(os.path.abspath(file))
    os.makedirs(dirname, exist_ok=True)
    config = ConfigObj(encoding='utf-8')
    config.filename = file
    config.update(values)
    config.write()
    logger.debug("wrote configuration to %s" % file)


def apply_conf(conf: Section, target):
    """
    Applies the attributes contained in a configuration object to a target object.
    It does this by iterating over the items in the configuration and setting any attributes with the same name.
    Methods and private attributes are never replaced.
    """
    for k, v in conf.items():
        if k.startswith('_') or not hasattr(target, k) or callable(getattr(target, k)):
            continue
        setattr(target, k, v)
    return target
