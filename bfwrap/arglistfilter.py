import logging
import collections
import os
import re
import sys

from .errors import ArgumentParseError, NoInputFiles, SourceObjectCountMismatch, UnknownDisableMode
from .modes import BuildMode, DisableMode, SaveTempsPolicy

# Internal logger
_logger = logging.getLogger(__name__)

# Option phases
COMPILE = 'compile'
LINK = 'link'

# The largest -O level opt and llc understand.
OPT_MAX = 3

# Sources the front-end (and so the IR plugin) knows how to compile.
compilableSourcePattern = re.compile(
    r'^.+\.(c|i|ii|cc|cp|cxx|cpp|CPP|c\+\+|C|m|mi|mm|M|'
    r'f|for|ftn|F|FOR|fpp|FPP|FTN|f90|f95|f03|f08|F90|F95|F03|F08)$')

# Leftovers that go straight to the linker.
linkFilePattern = re.compile(r'^.+\.(o|a|so)$|^.+\.so(\.\d+)+$')

# The feature flags handed to the instrumentation pass as they are.
bfFeatureFlags = [
    '-bf-by-func',
    '-bf-call-stack',
    '-bf-data-structs',
    '-bf-types',
    '-bf-inst-mix',
    '-bf-inst-deps',
    '-bf-vectors',
    '-bf-unique-bytes',
    '-bf-mem-footprint',
    '-bf-strides',
    '-bf-every-bb',
    '-bf-reuse-dist',
    '-bf-thread-safe',
]

reuseDistSelectors = ['loads', 'stores']


class ParsedOption(collections.namedtuple('ParsedOption', ['name', 'arg', 'phase'])):
    """ One option, with its argument if it took one from the next token.
    """
    __slots__ = ()

    def tokens(self):
        if self.arg is None:
            return [self.name]
        return [self.name, self.arg]


def flatten(options):
    tokens = []
    for opt in options:
        tokens.extend(opt.tokens())
    return tokens


def normalizeOptLevel(level):
    """ Maps whatever followed -O onto a level opt and llc accept.

    No -O at all is 0, a bare -O is 1, -Ofast and anything numeric
    above OPT_MAX become OPT_MAX; s and z are kept.
    """
    if level is None:
        return '0'
    if level == '':
        return '1'
    if level.isdigit():
        return str(min(int(level), OPT_MAX))
    if level in ('s', 'z'):
        return level
    if level == 'g':
        return '1'
    return str(OPT_MAX)


def postInstrumentationOptLevel(level):
    """ The level to re-optimize instrumented IR at, or None to skip it.

    Instrumented code gets at least -O3, but only when the level asked
    for was numeric (a bare -O counts as 1); -O0, -Os, -Ofast and the
    like are left alone.
    """
    if level is None or not (level == '' or level.isdigit()):
        return None
    normalized = normalizeOptLevel(level)
    if normalized == '0':
        return None
    return str(max(int(normalized), OPT_MAX))


# This class applies filters to GCC argument lists.  It records what it
# needs to drive the bitcode pipeline, but does not modify the argument
# list at all.  It can be subclassed to change this behavior.
#
# The idea is that all flags accepting a parameter must be specified
# so that they know to consume an extra token from the input stream.
# Flags and arguments can be recorded in any way desired by providing
# a callback.  Each callback/flag has an arity specified - zero arity
# flags (such as -v) are provided to their callback as-is.  Higher
# arities remove the appropriate number of arguments from the list and
# pass them to the callback with the flag.
#
# Most flags can be handled with a simple lookup in a table - these
# are exact matches.  Other flags are more complex and can be
# recognized by regular expressions.  Patterns are tried in table
# order and the first one that matches is taken, so the -bf- catch-all
# stays last.  Anything that is not a flag at all is a file.
class ArgumentListFilter:
    def __init__(self, inputList, exactMatches={}, patternMatches={}):
        defaultArgExactMatches = {

            '-o' : (1, ArgumentListFilter.outputFileCallback),
            '-c' : (0, ArgumentListFilter.compileOnlyCallback),

            # Nothing to instrument when gcc stops before compiling.
            '-E' : (0, ArgumentListFilter.preprocessOnlyCallback),
            '-S' : (0, ArgumentListFilter.preprocessOnlyCallback),
            '-M' : (0, ArgumentListFilter.preprocessOnlyCallback),
            '-MM' : (0, ArgumentListFilter.preprocessOnlyCallback),
            '--version' : (0, ArgumentListFilter.preprocessOnlyCallback),
            '--help' : (0, ArgumentListFilter.preprocessOnlyCallback),
            '-dumpversion' : (0, ArgumentListFilter.preprocessOnlyCallback),
            '-dumpfullversion' : (0, ArgumentListFilter.preprocessOnlyCallback),
            '-dumpmachine' : (0, ArgumentListFilter.preprocessOnlyCallback),
            '-dumpspecs' : (0, ArgumentListFilter.preprocessOnlyCallback),

            '-v' : (0, ArgumentListFilter.compileUnaryCallback),
            '--verbose' : (0, ArgumentListFilter.compileUnaryCallback),
            '--param' : (1, ArgumentListFilter.compileBinaryCallback),
            '-aux-info' : (1, ArgumentListFilter.compileBinaryCallback),

            #warnings (apart from the regex below)
            '-w' : (0, ArgumentListFilter.compileUnaryCallback),
            '-W' : (0, ArgumentListFilter.compileUnaryCallback),

            '-pipe' : (0, ArgumentListFilter.compileUnaryCallback),
            '-undef' : (0, ArgumentListFilter.compileUnaryCallback),
            '-nostdinc' : (0, ArgumentListFilter.compileUnaryCallback),
            '-nostdinc++' : (0, ArgumentListFilter.compileUnaryCallback),

            # gcc wants these when compiling and when linking
            '-pthread' : (0, ArgumentListFilter.compileLinkUnaryCallback),
            '-pg' : (0, ArgumentListFilter.compileLinkUnaryCallback),
            '-p' : (0, ArgumentListFilter.compileLinkUnaryCallback),
            '-fprofile-arcs' : (0, ArgumentListFilter.compileLinkUnaryCallback),
            '-coverage' : (0, ArgumentListFilter.compileLinkUnaryCallback),
            '--coverage' : (0, ArgumentListFilter.compileLinkUnaryCallback),

            # Architecture
            '-m16': (0, ArgumentListFilter.archCallback),
            '-m32': (0, ArgumentListFilter.archCallback),
            '-mx32': (0, ArgumentListFilter.archCallback),
            '-m64': (0, ArgumentListFilter.archCallback),
            '-march' : (1, ArgumentListFilter.archBinaryCallback),
            '-mtune' : (1, ArgumentListFilter.archBinaryCallback),
            '-mcpu' : (1, ArgumentListFilter.archBinaryCallback),

            # Preprocessor assertion
            '-A' : (1, ArgumentListFilter.compileBinaryCallback),
            '-D' : (1, ArgumentListFilter.compileBinaryCallback),
            '-U' : (1, ArgumentListFilter.compileBinaryCallback),

            # Dependency generation as a side effect of compiling
            '-MF' : (1, ArgumentListFilter.compileBinaryCallback),
            '-MG' : (0, ArgumentListFilter.compileUnaryCallback),
            '-MP' : (0, ArgumentListFilter.compileUnaryCallback),
            '-MT' : (1, ArgumentListFilter.compileBinaryCallback),
            '-MQ' : (1, ArgumentListFilter.compileBinaryCallback),
            '-MD' : (0, ArgumentListFilter.compileUnaryCallback),
            '-MMD' : (0, ArgumentListFilter.compileUnaryCallback),

            # Include
            '-I' : (1, ArgumentListFilter.compileBinaryCallback),
            '-idirafter' : (1, ArgumentListFilter.compileBinaryCallback),
            '-include' : (1, ArgumentListFilter.compileBinaryCallback),
            '-imacros' : (1, ArgumentListFilter.compileBinaryCallback),
            '-iprefix' : (1, ArgumentListFilter.compileBinaryCallback),
            '-iwithprefix' : (1, ArgumentListFilter.compileBinaryCallback),
            '-iwithprefixbefore' : (1, ArgumentListFilter.compileBinaryCallback),
            '-isystem' : (1, ArgumentListFilter.compileBinaryCallback),
            '-isysroot' : (1, ArgumentListFilter.compileBinaryCallback),
            '-iquote' : (1, ArgumentListFilter.compileBinaryCallback),
            '-imultilib' : (1, ArgumentListFilter.compileBinaryCallback),
            '-J' : (1, ArgumentListFilter.compileBinaryCallback),     # gfortran module directory

            # Driver expands this into include options when compiling and
            # library options when linking
            '--sysroot' : (1, ArgumentListFilter.compileLinkBinaryCallback),

            # Language
            '-ansi' : (0, ArgumentListFilter.compileUnaryCallback),
            '-pedantic' : (0, ArgumentListFilter.compileUnaryCallback),
            '-x' : (1, ArgumentListFilter.compileBinaryCallback),

            '-save-temps' : (0, ArgumentListFilter.saveTempsCallback),

            # Component-specifiers
            '-Xpreprocessor' : (1, ArgumentListFilter.compileBinaryCallback),
            '-Xassembler' : (1, ArgumentListFilter.compileBinaryCallback),
            '-Xlinker' : (1, ArgumentListFilter.linkBinaryCallback),

            # Linker
            '-l' : (1, ArgumentListFilter.libraryBinaryCallback),
            '-L' : (1, ArgumentListFilter.libraryPathBinaryCallback),
            '-T' : (1, ArgumentListFilter.linkBinaryCallback),
            '-u' : (1, ArgumentListFilter.linkBinaryCallback),
            '-e' : (1, ArgumentListFilter.linkBinaryCallback),
            '-rpath' : (1, ArgumentListFilter.linkBinaryCallback),
            '-shared' : (0, ArgumentListFilter.linkUnaryCallback),
            '-static' : (0, ArgumentListFilter.linkUnaryCallback),
            '-static-libgcc' : (0, ArgumentListFilter.linkUnaryCallback),
            '-pie' : (0, ArgumentListFilter.linkUnaryCallback),
            '-no-pie' : (0, ArgumentListFilter.linkUnaryCallback),
            '-nostdlib' : (0, ArgumentListFilter.linkUnaryCallback),
            '-nodefaultlibs' : (0, ArgumentListFilter.linkUnaryCallback),
            '-nostartfiles' : (0, ArgumentListFilter.linkUnaryCallback),
            '-rdynamic' : (0, ArgumentListFilter.linkUnaryCallback),
            '-s' : (0, ArgumentListFilter.linkUnaryCallback),

            # Driver options: what to instrument
            '-bf-verbose' : (0, ArgumentListFilter.bfVerboseCallback),
            '-bf-static' : (0, ArgumentListFilter.bfStaticCallback),
        }

        for flag in bfFeatureFlags:
            defaultArgExactMatches[flag] = (0, ArgumentListFilter.bfFeatureCallback)

        #
        # Patterns for other command-line arguments:
        # - the -bf- driver options taking a value
        # - optimization and debug levels
        # - libraries + linker options as in -lxxx -Lpath or -Wl,xxxx
        # - preprocessor options as in -DXXX -Ipath
        # - compiler warning options: -W....
        # - code generation and other flags: -f...
        #
        defaultArgPatterns = {
            r'^-bf-merge-bb=.*$' : (0, ArgumentListFilter.bfMergeCallback),
            r'^-bf-reuse-dist=.*$' : (0, ArgumentListFilter.bfReuseDistCallback),
            r'^-bf-(include|exclude)=.*$' : (0, ArgumentListFilter.bfFilterCallback),
            r'^-bf-disable=.*$' : (0, ArgumentListFilter.bfDisableCallback),
            r'^-bf-(dragonegg|libdir|plugin)=.*$' : (0, ArgumentListFilter.bfPathCallback),
            r'^-O.*$' : (0, ArgumentListFilter.optimizationCallback),
            r'^-g.*$' : (0, ArgumentListFilter.compileUnaryCallback),
            r'^-save-temps=.*$' : (0, ArgumentListFilter.saveTempsCallback),
            r'^-print-.*$' : (0, ArgumentListFilter.preprocessOnlyCallback),
            r'^-l.+$' : (0, ArgumentListFilter.libraryUnaryCallback),
            r'^-L.+$' : (0, ArgumentListFilter.libraryPathUnaryCallback),
            r'^-I.+$' : (0, ArgumentListFilter.compileUnaryCallback),
            r'^-D.+$' : (0, ArgumentListFilter.compileUnaryCallback),
            r'^-U.+$' : (0, ArgumentListFilter.compileUnaryCallback),
            r'^-J.+$' : (0, ArgumentListFilter.compileUnaryCallback),
            r'^-Wl,.+$' : (0, ArgumentListFilter.linkUnaryCallback),
            r'^-W(?!l,).*$' : (0, ArgumentListFilter.compileUnaryCallback),
            r'^-m(arch|tune|cpu)=.+$' : (0, ArgumentListFilter.archCallback),
            r'^-fopenmp.*$' : (0, ArgumentListFilter.compileLinkUnaryCallback),
            r'^-fsanitize=.+$' : (0, ArgumentListFilter.compileLinkUnaryCallback),
            r'^-f.+$' : (0, ArgumentListFilter.compileUnaryCallback),
            r'^-std=.+$' : (0, ArgumentListFilter.compileUnaryCallback),
            r'^-stdlib=.+$' : (0, ArgumentListFilter.compileLinkUnaryCallback),
            r'^--sysroot=.+$' : (0, ArgumentListFilter.compileLinkUnaryCallback),
            r'^-x.+$' : (0, ArgumentListFilter.compileUnaryCallback),
            r'^-bf-.*$' : (0, ArgumentListFilter.bfUnknownCallback),
        }

        # the files, input objects and output
        self.inputList = inputList
        self.leftoverFiles = []
        # files named inside a -Wl,--start-group ... -Wl,--end-group
        self.groupFiles = []
        self.sourceFiles = []
        self.linkFiles = []
        self.targetFilenames = []
        self.outputFilename = None

        # the args split into linker and compiler switches
        self.compileOptions = []
        self.linkOptions = []
        self.archOptions = []
        self.libraries = []
        self.libraryPaths = []

        self.isPreprocessOnly = False
        self.isCompileOnly = False
        self.optLevel = None
        self.saveTemps = SaveTempsPolicy.DISCARD

        # driver state
        self.bfOptions = []
        self.verbosity = 0
        self.runStatic = False
        self.threadSafe = False
        self.disableMode = DisableMode.NONE
        self.dragoneggPath = None
        self.libDir = None
        self.pluginPath = None
        self._includeGiven = False
        self._excludeGiven = False

        argExactMatches = dict(defaultArgExactMatches)
        argExactMatches.update(exactMatches)
        argPatterns = dict(defaultArgPatterns)
        argPatterns.update(patternMatches)

        self._inputArgs = collections.deque(inputList)

        while self._inputArgs:
            # Get the next argument
            currentItem = self._inputArgs.popleft()
            _logger.debug('Trying to match item %s', currentItem)
            # First, see if this exact flag has a handler in the table.
            # This is a cheap test.  Otherwise, see if the input matches
            # some pattern with a handler that we recognize
            if currentItem in argExactMatches:
                (arity, handler) = argExactMatches[currentItem]
                flagArgs = self._shiftArgs(currentItem, arity)
                handler(self, currentItem, *flagArgs)
            elif currentItem == '-Wl,--start-group':
                linkingGroup = [currentItem]
                terminated = False
                while self._inputArgs:
                    groupCurrent = self._inputArgs.popleft()
                    linkingGroup.append(groupCurrent)
                    if groupCurrent == '-Wl,--end-group':
                        terminated = True
                        break
                if not terminated:
                    _logger.warning('Did not find a closing "-Wl,--end-group" to match "-Wl,--start-group"')
                self.linkingGroupCallback(linkingGroup)
            elif currentItem == '-' or not currentItem.startswith('-'):
                self.fileCallback(currentItem)
            else:
                matched = False
                for pattern, (arity, handler) in argPatterns.items():
                    if re.match(pattern, currentItem):
                        flagArgs = self._shiftArgs(currentItem, arity)
                        handler(self, currentItem, *flagArgs)
                        matched = True
                        break
                # If no action has been specified, this is a zero-argument
                # flag that we should just keep.
                if not matched:
                    _logger.info('Did not recognize the compiler flag "%s"', currentItem)
                    self.compileUnaryCallback(currentItem)

        if self._includeGiven and self._excludeGiven:
            raise ArgumentParseError('-bf-include and -bf-exclude are mutually exclusive')

        if self.verbosity > 1:
            self.dump()

    def _shiftArgs(self, flag, nargs):
        ret = []
        while nargs > 0:
            if not self._inputArgs:
                raise ArgumentParseError(f'missing argument to "{flag}"')
            a = self._inputArgs.popleft()
            ret.append(a)
            nargs = nargs - 1
        return ret

    @property
    def buildMode(self):
        if self.isCompileOnly:
            return BuildMode.COMPILE
        if not self.isPreprocessOnly:
            return BuildMode.LINK
        return BuildMode.PREPROCESS

    @property
    def nativeArgs(self):
        """ The invocation as the native compiler should see it.
        """
        return [a for a in self.inputList
                if not a.startswith('-bf-') and a != '-save-temps=keep']

    def validate(self):
        """ Checks the invocation makes sense for a compile or a link.
        """
        mode = self.buildMode
        if mode == BuildMode.COMPILE and not self.sourceFiles:
            raise NoInputFiles()
        if mode == BuildMode.LINK and not (self.leftoverFiles or self.groupFiles):
            raise NoInputFiles()
        if mode != BuildMode.PREPROCESS:
            objects = self.getObjectFiles()
            if len(objects) != len(self.sourceFiles):
                raise SourceObjectCountMismatch(self.sourceFiles, objects)

    def fileCallback(self, infile):
        _logger.debug('Input file: %s', infile)
        self.leftoverFiles.append(infile)
        if linkFilePattern.match(infile):
            self.linkFiles.append(infile)
        else:
            self.sourceFiles.append(infile)

    def outputFileCallback(self, flag, filename):
        _logger.debug('outputFileCallback: %s %s', flag, filename)
        self.targetFilenames.append(filename)
        self.outputFilename = filename

    def preprocessOnlyCallback(self, flag):
        _logger.debug('preprocessOnlyCallback: %s', flag)
        self.isPreprocessOnly = True
        self.compileOptions.append(ParsedOption(flag, None, COMPILE))

    def compileOnlyCallback(self, flag):
        _logger.debug('compileOnlyCallback: %s', flag)
        self.isCompileOnly = True

    def optimizationCallback(self, flag):
        _logger.debug('optimizationCallback: %s', flag)
        self.optLevel = flag[2:]
        self.compileOptions.append(ParsedOption(flag, None, COMPILE))
        self.linkOptions.append(ParsedOption(flag, None, LINK))

    def archCallback(self, flag):
        _logger.debug('archCallback: %s', flag)
        (name, _, value) = flag.partition('=')
        self.archOptions.append((name, value or None))
        self.compileOptions.append(ParsedOption(flag, None, COMPILE))
        self.linkOptions.append(ParsedOption(flag, None, LINK))

    def archBinaryCallback(self, flag, arg):
        _logger.debug('archBinaryCallback: %s %s', flag, arg)
        self.archOptions.append((flag, arg))
        self.compileOptions.append(ParsedOption(flag, arg, COMPILE))
        self.linkOptions.append(ParsedOption(flag, arg, LINK))

    def saveTempsCallback(self, flag):
        _logger.debug('saveTempsCallback: %s', flag)
        (_, _, where) = flag.partition('=')
        if where in ('', 'cwd'):
            self.saveTemps = SaveTempsPolicy.MOVE_TO_CWD
        elif where == 'obj':
            self.saveTemps = SaveTempsPolicy.MOVE_TO_OBJDIR
        elif where == 'keep':
            self.saveTemps = SaveTempsPolicy.KEEP
        else:
            raise ArgumentParseError(f'unknown -save-temps value "{where}"')

    def libraryUnaryCallback(self, flag):
        self.libraryBinaryCallback('-l', flag[2:])

    def libraryBinaryCallback(self, flag, arg):
        _logger.debug('libraryCallback: %s %s', flag, arg)
        self.libraries.append(arg)
        self.linkOptions.append(ParsedOption(f'-l{arg}', None, LINK))

    def libraryPathUnaryCallback(self, flag):
        self.libraryPathBinaryCallback('-L', flag[2:])

    def libraryPathBinaryCallback(self, flag, arg):
        _logger.debug('libraryPathCallback: %s %s', flag, arg)
        self.libraryPaths.append(arg)
        self.linkOptions.append(ParsedOption(f'-L{arg}', None, LINK))

    def linkUnaryCallback(self, flag):
        _logger.debug('linkUnaryCallback: %s', flag)
        self.linkOptions.append(ParsedOption(flag, None, LINK))

    def compileUnaryCallback(self, flag):
        _logger.debug('compileUnaryCallback: %s', flag)
        self.compileOptions.append(ParsedOption(flag, None, COMPILE))

    def compileLinkUnaryCallback(self, flag):
        _logger.debug('compileLinkUnaryCallback: %s', flag)
        self.compileOptions.append(ParsedOption(flag, None, COMPILE))
        self.linkOptions.append(ParsedOption(flag, None, LINK))

    def compileBinaryCallback(self, flag, arg):
        _logger.debug('compileBinaryCallback: %s %s', flag, arg)
        self.compileOptions.append(ParsedOption(flag, arg, COMPILE))

    def linkBinaryCallback(self, flag, arg):
        _logger.debug('linkBinaryCallback: %s %s', flag, arg)
        self.linkOptions.append(ParsedOption(flag, arg, LINK))

    def compileLinkBinaryCallback(self, flag, arg):
        _logger.debug('compileLinkBinaryCallback: %s %s', flag, arg)
        self.compileOptions.append(ParsedOption(flag, arg, COMPILE))
        self.linkOptions.append(ParsedOption(flag, arg, LINK))

    def linkingGroupCallback(self, args):
        _logger.debug('linkingGroupCallback: %s', args)
        for a in args:
            self.linkOptions.append(ParsedOption(a, None, LINK))
            if not a.startswith('-'):
                self.groupFiles.append(a)

    def bfFeatureCallback(self, flag):
        _logger.debug('bfFeatureCallback: %s', flag)
        if flag == '-bf-thread-safe':
            self.threadSafe = True
        self.bfOptions.append(flag)

    def bfMergeCallback(self, flag):
        (_, _, count) = flag.partition('=')
        if not count.isdigit():
            raise ArgumentParseError(f'"{flag}" needs a non-negative integer')
        self.bfOptions.append(flag)

    def bfReuseDistCallback(self, flag):
        (_, _, selector) = flag.partition('=')
        if selector not in reuseDistSelectors:
            raise ArgumentParseError(f'"{flag}" must select one of {reuseDistSelectors}')
        self.bfOptions.append(flag)

    def bfFilterCallback(self, flag):
        (name, _, funcs) = flag.partition('=')
        if not funcs:
            raise ArgumentParseError(f'"{name}" needs a comma-separated list of functions')
        if name == '-bf-include':
            self._includeGiven = True
        else:
            self._excludeGiven = True
        self.bfOptions.append(flag)

    def bfDisableCallback(self, flag):
        (_, _, value) = flag.partition('=')
        try:
            self.disableMode = DisableMode(value)
        except ValueError:
            raise UnknownDisableMode(value, DisableMode.values()) from None

    def bfPathCallback(self, flag):
        (name, _, path) = flag.partition('=')
        if not path:
            raise ArgumentParseError(f'"{name}" needs a path')
        if name == '-bf-dragonegg':
            self.dragoneggPath = path
        elif name == '-bf-libdir':
            self.libDir = path
        else:
            self.pluginPath = path

    def bfVerboseCallback(self, flag):
        self.verbosity += 1

    def bfStaticCallback(self, flag):
        self.runStatic = True

    def bfUnknownCallback(self, flag):
        raise ArgumentParseError(f'unrecognized driver option "{flag}"')

    def isCompilable(self, srcFile):
        return compilableSourcePattern.match(srcFile) is not None

    def getObjectFiles(self):
        """ The object file names standing for the source files, in order.

        Only compilable sources get an object, so a count that differs
        from len(sourceFiles) means the invocation cannot be honoured.
        """
        derived = [self.getObjectName(s) for s in self.sourceFiles if self.isCompilable(s)]
        if len(derived) != len(self.sourceFiles):
            return derived
        if self.buildMode == BuildMode.COMPILE and self.targetFilenames:
            return list(self.targetFilenames)
        return derived

    def getObjectName(self, srcFile):
        # -c but no -o, therefore the obj ends up in the cwd
        (_, base) = os.path.split(srcFile)
        (root, _) = os.path.splitext(base)
        return f'{root}.o'

    def getSourceObjectMapping(self, objDir=None):
        """ Pairs every source file with the object that will represent it.

        When objDir is given (linking straight from sources) the objects
        are placed there, renamed where two different sources share a
        basename; the same source named twice maps to the same object.
        """
        objects = self.getObjectFiles()
        if len(objects) != len(self.sourceFiles):
            raise SourceObjectCountMismatch(self.sourceFiles, objects)
        if objDir is None:
            return list(zip(self.sourceFiles, objects))
        mapping = []
        bySource = {}
        used = set()
        for (srcFile, objFile) in zip(self.sourceFiles, objects):
            if srcFile not in bySource:
                (root, ext) = os.path.splitext(objFile)
                candidate = objFile
                n = 1
                while candidate in used:
                    candidate = f'{root}-{n}{ext}'
                    n += 1
                used.add(candidate)
                bySource[srcFile] = os.path.join(objDir, candidate)
            mapping.append((srcFile, bySource[srcFile]))
        return mapping

    def getOutputFilename(self):
        if self.outputFilename is not None:
            return self.outputFilename
        return 'a.out'

    # for printing our partitioning of the args
    def dump(self):
        efn = sys.stderr.write
        efn(f'\ncompileOptions: {flatten(self.compileOptions)}\nsourceFiles: {self.sourceFiles}\n')
        efn(f'linkOptions: {flatten(self.linkOptions)}\nlinkFiles: {self.linkFiles}\n')
        efn(f'groupFiles: {self.groupFiles}\n')
        efn(f'targetFilenames: {self.targetFilenames}\noptLevel: {self.optLevel}\n')
        efn(f'bfOptions: {self.bfOptions}\n')
        efn(f'\nFlags:\nbuildMode = {self.buildMode.value}\n')
        efn(f'disableMode = {self.disableMode.value}\n')
        efn(f'saveTemps = {self.saveTemps.value}\n')
        efn(f'runStatic = {self.runStatic}\n')
        efn(f'threadSafe = {self.threadSafe}\n')
