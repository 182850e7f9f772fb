"""
Utilities for loading configuration data and setting up logging
"""
import os, sys, json, logging
from collections.abc import Mapping
from copy import deepcopy

import yaml

from . import ACFieldException

NORMAL = 25
logging.addLevelName(NORMAL, "NORMAL")

global_logdir = None
global_logfile = None
_log_handler = None

DEF_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

class ConfigurationException(ACFieldException):
    """
    a class indicating an error in the configuration of a service or app
    """
    def __init__(self, msg=None, param=None, cause=None):
        if not msg:
            if param:
                msg = "Configuration error for parameter, " + param
            else:
                msg = "Unknown configuration error"
            if cause:
                msg += ": " + str(cause)
        super(ConfigurationException, self).__init__(msg)
        self.param = param
        self.cause = cause

def load_from_file(configfile: str) -> Mapping:
    """
    read the configuration from the given file and return it as a dictionary.
    The file format is determined by its extension: ".yml" and ".yaml" files are
    read as YAML; everything else is read as JSON.

    :raises ConfigurationException:  if the file cannot be read or parsed
    """
    try:
        with open(configfile) as fd:
            if configfile.endswith('.yml') or configfile.endswith('.yaml'):
                out = yaml.safe_load(fd)
            else:
                out = json.load(fd)
    except IOError as ex:
        raise ConfigurationException("%s: unable to read configuration file: %s" %
                                     (configfile, str(ex)), cause=ex) from ex
    except (yaml.YAMLError, ValueError) as ex:
        raise ConfigurationException("%s: configuration file format error: %s" %
                                     (configfile, str(ex)), cause=ex) from ex

    if out is None:
        out = {}
    if not isinstance(out, Mapping):
        raise ConfigurationException("%s: configuration data is not a dictionary" % configfile)
    return out

def merge_config(primary: Mapping, defconf: Mapping) -> Mapping:
    """
    merge two configurations, returning a new dictionary.  Values in ``primary``
    override those in ``defconf``; sub-dictionaries are merged recursively.
    """
    out = deepcopy(defconf)
    for key in primary:
        if key in out and isinstance(out[key], Mapping) and isinstance(primary[key], Mapping):
            out[key] = merge_config(primary[key], out[key])
        else:
            out[key] = deepcopy(primary[key])
    return out

def configure_log(logfile: str=None, level: int=None, format: str=None, config: Mapping=None,
                  addstderr: bool=False):
    """
    configure the root logger to send messages to a file.

    :param str logfile:   the path of the file to write messages to; if relative, it will be
                          interpreted relative to the ``logdir`` config parameter (or the
                          ``working_dir``).  If not provided, the ``logfile`` config parameter
                          is consulted.
    :param int   level:   the minimum logging level; defaults to the ``loglevel`` config
                          parameter or NORMAL
    :param str  format:   the message format
    :param dict config:   the configuration to draw default values from
    :param bool addstderr: if True, messages will also be sent to standard error
    """
    global global_logdir, global_logfile, _log_handler
    if config is None:
        config = {}

    if not logfile:
        logfile = config.get('logfile', 'acfield.log')
    if not os.path.isabs(logfile):
        logdir = config.get('logdir', config.get('working_dir', os.getcwd()))
        global_logdir = logdir
        logfile = os.path.join(logdir, logfile)
    else:
        global_logdir = os.path.dirname(logfile)
    global_logfile = logfile

    if level is None:
        level = config.get('loglevel', NORMAL)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ConfigurationException("loglevel: unrecognized logging level name", "loglevel")
    if not format:
        format = config.get('logformat', DEF_FORMAT)

    rootlog = logging.getLogger()
    if _log_handler:
        rootlog.removeHandler(_log_handler)
    _log_handler = logging.FileHandler(logfile)
    _log_handler.setLevel(logging.DEBUG)
    _log_handler.setFormatter(logging.Formatter(format))
    rootlog.addHandler(_log_handler)
    rootlog.setLevel(level)

    if addstderr:
        hdlr = logging.StreamHandler(sys.stderr)
        hdlr.setLevel(logging.INFO)
        hdlr.setFormatter(logging.Formatter(format))
        rootlog.addHandler(hdlr)

    rootlog.log(NORMAL, "Writing log messages to %s", logfile)
