""" Where the external tools live, and which of them a driver mode uses.

The Builder answers every "which program?" question the pipelines ask,
from the -bf- options first and the environment second.
"""
import os
import sys

from .errors import BfError
from .modes import DisableMode
from .popenwrapper import capture

from .logconfig import logConfig

# Internal logger
_logger = logConfig(__name__)


# Environmental variable for path to the LLVM tools (opt, llc).
llvmCompilerPathEnv = 'LLVM_COMPILER_PATH'

# Environmental variable for cross-compilation target.
binutilsTargetPrefixEnv = 'BINUTILS_TARGET_PREFIX'

# Environmental variable holding options to prepend to every invocation.
defaultOptionsEnv = 'BF_OPTS'

# This is the section the instrumented IR rides in.
bitcodeSectionName = '.bitcode'

# The name of the instrumentation pass inside its plugin, and its runtime.
passName = '-bytesflops'
runtimeLibrary = 'byfl'

# mode -> (compiler env, compiler, linker env, linker)
_modeTools = {
    'bf-gcc': ('BF_GCC', 'gcc', 'BF_CLANG', 'clang'),
    'bf-g++': ('BF_GXX', 'g++', 'BF_CLANGXX', 'clang++'),
    'bf-gfortran': ('BF_GFORTRAN', 'gfortran', 'BF_CLANG', 'clang'),
}


def defaultOptions():
    """ The options BF_OPTS asks for, to go in front of the command line.
    """
    opts = os.getenv(defaultOptionsEnv)
    if opts:
        return opts.split()
    return []


class Builder:
    def __init__(self, mode, af, prefixPath=None):
        if mode not in _modeTools:
            raise BfError(f'Unknown mode {mode}')
        self.mode = mode
        self.af = af
        # computed on first use, then read-only for this invocation
        self._librarySearchPath = None

        # Used as prefix path for the LLVM tools
        if prefixPath:
            self.prefixPath = prefixPath
            # Ensure prefixPath has trailing slash
            if self.prefixPath[-1] != os.path.sep:
                self.prefixPath = self.prefixPath + os.path.sep
            # Check prefix path exists
            if not os.path.exists(self.prefixPath):
                errorMsg = 'Path to LLVM tools "%s" does not exist'
                _logger.error(errorMsg, self.prefixPath)
                raise BfError(errorMsg % self.prefixPath)
        else:
            self.prefixPath = ''

    @property
    def tool(self):
        return self.mode

    @property
    def instrumenting(self):
        disable = self.af.disableMode
        if disable == DisableMode.NONE:
            return True
        if disable in (DisableMode.BYFL, DisableMode.BITCODE, DisableMode.ALL):
            return False
        raise ValueError(disable)

    def getCompiler(self):
        (env, prog, _, _) = _modeTools[self.mode]
        return [os.getenv(env) or prog]

    def getLinker(self):
        (_, _, env, prog) = _modeTools[self.mode]
        return [os.getenv(env) or prog]

    def getOptimizer(self):
        return [f'{self.prefixPath}{os.getenv("BF_OPT_NAME") or "opt"}']

    def getCodeGenerator(self):
        return [f'{self.prefixPath}{os.getenv("BF_LLC_NAME") or "llc"}']

    def getBinutil(self, name):
        binUtilsTargetPrefix = os.getenv(binutilsTargetPrefixEnv)
        return [f'{binUtilsTargetPrefix}-{name}' if binUtilsTargetPrefix else name]

    def getDragonegg(self):
        return self.af.dragoneggPath or os.getenv('BF_DRAGONEGG') or 'dragonegg.so'

    def getPlugin(self):
        return self.af.pluginPath or os.getenv('BF_PLUGIN') or 'bytesflops.so'

    def getLibDir(self):
        return self.af.libDir or os.getenv('BF_LIBDIR') or os.path.join(sys.prefix, 'lib')

    def getPassCommand(self):
        """ opt with the instrumentation pass loaded and selected.
        """
        return self.getOptimizer() + ['-load', self.getPlugin(), passName]

    def getModeLibraries(self):
        if self.mode == 'bf-gfortran':
            return ['-lgfortran']
        return []

    def getLibrarySearchPath(self):
        """ The directories the native compiler searches for libraries.

        Asked of the compiler itself the first time it is needed.
        """
        if self._librarySearchPath is None:
            output = capture(self.getCompiler() + ['-print-search-dirs'])
            self._librarySearchPath = parseSearchDirs(output)
            _logger.debug('Library search path: %s', self._librarySearchPath)
        return self._librarySearchPath


def parseSearchDirs(output):
    for line in output.splitlines():
        if line.startswith('libraries:'):
            dirs = line[len('libraries:'):].strip()
            if dirs.startswith('='):
                dirs = dirs[1:]
            return [os.path.normpath(d) for d in dirs.split(os.pathsep) if d]
    return []


def getBuilder(mode, af):
    pathPrefix = os.getenv(llvmCompilerPathEnv) # Optional

    _logger.debug('%s wrapping %s', mode, _modeTools.get(mode, ('', '?'))[1])
    if pathPrefix:
        _logger.debug('LLVM tools path prefix "%s"', pathPrefix)

    return Builder(mode, af, pathPrefix)
