"""
  This module is intended to be imported by command line tools so they can
  configure the root logger so that other loggers used in other modules can
  inherit the configuration.
"""
import logging
import os
import sys

_loggingEnvLevel = 'BF_OUTPUT_LEVEL'

_loggingDestination = 'BF_OUTPUT_FILE'

_validLogLevels = ['ERROR', 'WARNING', 'INFO', 'DEBUG']

_debugFormat = '%(levelname)s::%(module)s.%(funcName)s() at %(filename)s:%(lineno)d ::%(message)s'

def logConfig(name):

    destination = os.getenv(_loggingDestination)

    if destination:
        logging.basicConfig(filename=destination, level=logging.WARNING, format='%(levelname)s:%(message)s')
    else:
        logging.basicConfig(level=logging.WARNING, format='%(levelname)s:%(message)s')

    retval = logging.getLogger(name)

    level = os.getenv(_loggingEnvLevel)

    if level:
        level = level.upper()
        if not level in _validLogLevels:
            logging.error('"%s" is not a valid value for %s. Valid values are %s',
                          level, _loggingEnvLevel, _validLogLevels)
            sys.exit(1)
        else:
            retval.setLevel(getattr(logging, level))

    # Adjust the format if debugging
    if retval.getEffectiveLevel() == logging.DEBUG:
        _useDebugFormat()

    return retval

def _useDebugFormat():
    formatter = logging.Formatter(_debugFormat)
    for h in logging.getLogger().handlers:
        h.setFormatter(formatter)

def applyVerbosity(verbosity):
    """ -bf-verbose raises the package logger to INFO, twice to DEBUG.
    """
    if verbosity <= 0:
        return
    wanted = logging.INFO if verbosity == 1 else logging.DEBUG
    pkg = logging.getLogger(__package__)
    if pkg.getEffectiveLevel() > wanted:
        pkg.setLevel(wanted)
    if wanted == logging.DEBUG:
        _useDebugFormat()

def loggingConfiguration():
    destination = os.getenv(_loggingDestination)
    level = os.getenv(_loggingEnvLevel)
    return (destination, level)


def informUser(msg):
    sys.stderr.write(msg)
