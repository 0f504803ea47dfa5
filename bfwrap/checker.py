"""
Module support for the bf-sanity-checker tool.

The bf-sanity-checker tool examines the users
environment to see if it makes sense from the
bf-gcc point of view. Useful first step in trying to
debug a failure.
"""
import sys
import os
import subprocess as sp
import errno

from .version import bf_version, bf_date
from .logconfig import loggingConfiguration

explain_BF_GCC = """

bf-gcc, bf-g++ and bf-gfortran run gcc, g++ and gfortran to produce the
IR. If yours are called something else set BF_GCC, BF_GXX or BF_GFORTRAN
to the appropriate command. For example if your gcc is called gcc-4.7
then BF_GCC should be set to gcc-4.7.

"""

explain_BF_DRAGONEGG = """

You need the dragonegg plugin to turn gcc's output into LLVM IR. Pass
-bf-dragonegg=PATH or set the environment variable BF_DRAGONEGG to the
full path to your dragonegg plugin. Thanks.

"""

explain_BF_PLUGIN = """

The instrumentation pass lives in a plugin that opt loads. Pass
-bf-plugin=PATH or set the environment variable BF_PLUGIN to the full
path to it.

"""

explain_LLVM_COMPILER_PATH = """

opt and llc should either be in your PATH, or else located where the
environment variable LLVM_COMPILER_PATH indicates. If they are called
something else (opt-3.5, say) set BF_OPT_NAME and BF_LLC_NAME.

"""

explain_BF_CLANG = """

The final link is done by clang (clang++ for bf-g++). If yours are called
something else set BF_CLANG or BF_CLANGXX.

"""

explain_BINUTILS = """

objcopy, ar and as come from binutils. When cross compiling set
BINUTILS_TARGET_PREFIX to the target triple they are prefixed with.

"""


def describeOutputPrefix(value):
    """ What the runtime will make of a BF_PREFIX value.

    $VARIABLES are expanded; a value naming a path (starting with /,
    ./ or ../) redirects the output to that file, anything else is
    put in front of every output line.
    """
    if not value:
        return 'Output lines are not prefixed.'
    expanded = os.path.expandvars(value)
    if expanded.startswith(('/', './', '../')):
        return f'Output goes to the file {expanded}.'
    return f'Output lines are prefixed with "{expanded}".'


def describeBinaryOutput(value):
    """ What the runtime will make of a BF_BINOUT value.
    """
    if value is None:
        return 'Binary output goes to the default file.'
    if value == '':
        return 'Binary output is disabled.'
    return f'Binary output goes to {os.path.expandvars(value)}.'


class Checker:
    def __init__(self):
        path = os.getenv('LLVM_COMPILER_PATH')

        if path and path[-1] != os.path.sep:
            path = path + os.path.sep

        self.path = path if path else ''

    def check(self):
        """Performs the environmental sanity check.

        Performs the following checks in order:
        0. Prints out the logging configuartion
        1. Check that the OS is supported.
        2. Checks that the native compilers exist.
        3. Checks that the plugins exist.
        4. Checks that the LLVM, binutils and link tools exist.
        5. Reports how the runtime will treat its output.
        """

        self.checkSelf()

        self.checkLogging()

        if not self.checkOS():
            print('I do not think we support your OS. Sorry.')
            return 1

        success = self.checkCompilers()

        success = self.checkPlugins() and success

        if success:
            self.checkAuxiliaries()

        self.checkOutput()

        return 0 if success else 1

    def checkSelf(self):
        print(f'bfwrap version: {bf_version}')
        print(f'bfwrap released: {bf_date}\n')


    def checkLogging(self):
        (destination, level) = loggingConfiguration()
        print(f'Logging output to {destination if destination else "standard error"}.')
        if not level:
            print('Logging level not set, defaulting to WARNING.')
        else:
            print(f'Logging level set to {level}.')


    def checkOS(self):
        """Returns True if we support the OS."""
        return (sys.platform.startswith('freebsd') or
                sys.platform.startswith('linux'))


    def checkCompilers(self):
        """Tests that the native compilers actually exist."""
        found = False
        for (env, default, wrapper) in (('BF_GCC', 'gcc', 'bf-gcc'),
                                        ('BF_GXX', 'g++', 'bf-g++'),
                                        ('BF_GFORTRAN', 'gfortran', 'bf-gfortran')):
            compiler = os.getenv(env) or default
            (ok, version) = self.checkExecutable(compiler)
            if ok:
                print(f'The compiler {compiler} is:\n\n\t{extractLine(version.strip(), -1)}\n')
                found = True
            else:
                print(f'The compiler {compiler} was not found or not executable.\nBetter not try using {wrapper}!\n')

        if not found:
            print(explain_BF_GCC)

        return found


    def checkPlugins(self):
        """Checks for the dragonegg and instrumentation plugins."""
        dragonegg = self.checkFile(os.getenv('BF_DRAGONEGG'), 'dragonegg plugin')
        if not dragonegg:
            print(explain_BF_DRAGONEGG)

        plugin = self.checkFile(os.getenv('BF_PLUGIN'), 'instrumentation plugin')
        if not plugin:
            print(explain_BF_PLUGIN)

        libDir = os.getenv('BF_LIBDIR') or os.path.join(sys.prefix, 'lib')
        if os.path.isdir(libDir):
            print(f'The runtime library directory is:\n\n\t{libDir}\n')
        else:
            print(f'The runtime library directory {libDir} does not exist.\n')

        return dragonegg and plugin


    def checkFile(self, path, what):
        if not path:
            print(f'No {what} given.')
            return False

        if os.path.isfile(path):
            try:
                with open(path, 'rb'):
                    pass
            except IOError as e:
                print(f'Unable to open {path}: {str(e)}')
                return False
            print(f'The {what} is:\n\n\t{path}\n')
            return True

        print(f'Could not find {path}')
        return False


    def checkExecutable(self, exe, version_switch='-v'):
        """Checks that an executable exists, and is executable."""
        cmd = [exe, version_switch]
        try:
            compiler = sp.Popen(cmd, stdout=sp.PIPE, stderr=sp.PIPE)
            output = compiler.communicate()
            compilerOutput = f'{output[0].decode()}{output[1].decode()}'
        except OSError as e:
            if e.errno == errno.EPERM:
                return (False, f'{exe} not executable')
            if e.errno == errno.ENOENT:
                return (False, f'{exe} not found')
            return (False, f'{exe} not sure why, errno is {e.errno}')
        else:
            return (True, compilerOutput)



    def checkAuxiliaries(self):
        """Checks for opt, llc, the back-end linker and binutils."""
        opt = f'{self.path}{os.getenv("BF_OPT_NAME") or "opt"}'
        llc = f'{self.path}{os.getenv("BF_LLC_NAME") or "llc"}'

        llvmOk = True
        for tool in (opt, llc):
            (ok, version) = self.checkExecutable(tool, '-version')
            if ok:
                print(f'The LLVM tool {tool} is:\n\n\t{extractLine(version, 1)}\n')
            else:
                print(f'The LLVM tool {tool} was not found or not executable.\n')
                llvmOk = False
        if not llvmOk:
            print(explain_LLVM_COMPILER_PATH)

        linkersOk = True
        for linker in (os.getenv('BF_CLANG') or 'clang', os.getenv('BF_CLANGXX') or 'clang++'):
            (ok, version) = self.checkExecutable(linker, '--version')
            if ok:
                print(f'The linker {linker} is:\n\n\t{extractLine(version, 0)}\n')
            else:
                print(f'The linker {linker} was not found or not executable.\nBetter not try linking!\n')
                linkersOk = False
        if not linkersOk:
            print(explain_BF_CLANG)

        prefix = os.getenv('BINUTILS_TARGET_PREFIX')
        binutilsOk = True
        for name in ('objcopy', 'ar', 'as'):
            tool = f'{prefix}-{name}' if prefix else name
            (ok, version) = self.checkExecutable(tool, '--version')
            if ok:
                print(f'The binutil {tool} is:\n\n\t{extractLine(version, 0)}\n')
            else:
                print(f'The binutil {tool} was not found or not executable.\n')
                binutilsOk = False
        if not binutilsOk:
            print(explain_BINUTILS)


    def checkOutput(self):
        """Reports how the instrumented program will write its results."""
        print(describeOutputPrefix(os.getenv('BF_PREFIX')))
        print(describeBinaryOutput(os.getenv('BF_BINOUT')))
        print('')


def extractLine(version, n):
    if not version:
        return version
    lines = version.split('\n')
    line = lines[n] if -len(lines) <= n < len(lines) else lines[-1]
    return line.strip() if line else line
