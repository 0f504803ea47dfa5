""" The workhorse behind bf-gcc, bf-g++ and bf-gfortran.

An invocation is classified first, then either handed to the native
compiler untouched (preprocessing, and with -bf-disable=all), or run
through the compile pipeline and, when linking, the link pipeline.
"""
import sys

from . import popenwrapper
from .arglistfilter import ArgumentListFilter
from .compilers import defaultOptions, getBuilder
from .errors import BfError
from .linker import link
from .modes import BuildMode, DisableMode, SaveTempsPolicy
from .pipeline import compileSources
from .popenwrapper import run
from .tempfiles import scratchDirectory

from .logconfig import logConfig, applyVerbosity

_logger = logConfig(__name__)


def bfcompile(mode, argv=None):
    """ Runs one wrapped invocation and returns the exit status.
    """
    rc = 1

    if argv is None:
        argv = list(sys.argv)[1:]
    cmd = defaultOptions() + list(argv)

    legible_argstring = ' '.join(cmd)
    _logger.info('Entering %s [%s]', mode, legible_argstring)

    try:
        af = ArgumentListFilter(cmd)
        popenwrapper.ECHO = af.verbosity > 0
        applyVerbosity(af.verbosity)

        builder = getBuilder(mode, af)
        rc = dispatch(builder)

    except BfError as e:
        _logger.error('%s: %s', mode, e)
        rc = e.exitCode

    _logger.debug('Calling %s returned %d', mode, rc)
    return rc


def dispatch(builder):
    af = builder.af
    buildMode = af.buildMode

    if buildMode == BuildMode.PREPROCESS:
        return forward(builder)

    disable = af.disableMode
    if disable == DisableMode.ALL:
        return forward(builder)
    if disable == DisableMode.BITCODE:
        return forward(builder, [f'-fplugin={builder.getDragonegg()}'])
    if disable not in (DisableMode.NONE, DisableMode.BYFL):
        raise ValueError(disable)

    af.validate()
    if buildMode == BuildMode.COMPILE:
        compileObjects(builder)
    elif buildMode == BuildMode.LINK:
        linkExecutable(builder)
    else:
        raise ValueError(buildMode)
    return 0


def forward(builder, extra=()):
    """ Hands the invocation to the native compiler and returns its status.
    """
    cmd = builder.getCompiler() + list(extra) + builder.af.nativeArgs
    return run(cmd, tolerate=True)


def compileObjects(builder):
    af = builder.af
    mapping = af.getSourceObjectMapping()
    with scratchDirectory(builder.tool, keep=af.saveTemps == SaveTempsPolicy.KEEP) as scratchDir:
        return compileSources(builder, mapping, scratchDir)


def linkExecutable(builder):
    af = builder.af
    with scratchDirectory(builder.tool, keep=af.saveTemps == SaveTempsPolicy.KEEP) as scratchDir:
        mapping = af.getSourceObjectMapping(objDir=scratchDir)
        compileSources(builder, mapping, scratchDir)
        return link(builder, dict(mapping), scratchDir)
