import os
import subprocess
import pprint
import shlex
import logging

from .errors import SubprocessFailure
from .logconfig import informUser

# This module provides a wrapper for subprocess.Popen
# that can be used for debugging, and the blocking run()
# every pipeline stage goes through.

# Internal logger
_logger = logging.getLogger(__name__)

# Set by -bf-verbose: echo every command on stderr before running it.
ECHO = False

def Popen(*pargs, **kwargs):
    _logger.debug("BF Executing:\n" + pprint.pformat(pargs[0]) + "\nin: " +  os.getcwd())
    try:
        return subprocess.Popen(*pargs, **kwargs)
    except OSError:
        _logger.error("BF Failed to execute: %s", pprint.pformat(pargs[0]))
        raise

def run(cmd, tolerate=False, **kwargs):
    """ Runs cmd to completion and returns its exit status.

    A non-zero status raises SubprocessFailure unless tolerate is set,
    in which case the status is simply returned.
    """
    tool = os.path.basename(cmd[0])
    if ECHO:
        informUser(f'[bf] {" ".join(shlex.quote(c) for c in cmd)}\n')
    try:
        proc = Popen(cmd, **kwargs)
    except OSError as e:
        raise SubprocessFailure(tool, 127) from e
    rc = proc.wait()
    _logger.debug('%s returned %d', tool, rc)
    if rc != 0 and not tolerate:
        _logger.error('Failed to execute:\n%s', pprint.pformat(cmd))
        raise SubprocessFailure(tool, rc)
    return rc

def capture(cmd):
    """ Runs cmd and returns its standard output as text.
    """
    tool = os.path.basename(cmd[0])
    try:
        proc = Popen(cmd, stdout=subprocess.PIPE)
    except OSError as e:
        raise SubprocessFailure(tool, 127) from e
    output = proc.communicate()[0]
    if proc.returncode != 0:
        _logger.error('Failed to execute:\n%s', pprint.pformat(cmd))
        raise SubprocessFailure(tool, proc.returncode)
    return output.decode()
