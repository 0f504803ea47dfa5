""" Relinking through the back-end compiler.

Every input that carries IR is replaced by that IR; archives we built
are converted back to native code first. The gcc link options are
translated into the back-end's dialect, and the instrumentation runtime
is added unless instrumentation is off.
"""
import os
import re

from .arglistfilter import normalizeOptLevel
from .compilers import runtimeLibrary
from .extraction import BitcodeExtractor, convertArchive
from .popenwrapper import run

from .logconfig import logConfig

_logger = logConfig(__name__)

# Options the back-end driver understands exactly as gcc does.
passThroughPatterns = [re.compile(p) for p in (
    r'^-Wl,.*$',
    r'^-L.+$',
    r'^-pthread$',
    r'^-pg$',
    r'^-p$',
    r'^-fprofile-arcs$',
    r'^-?-coverage$',
    r'^-fopenmp.*$',
    r'^-fsanitize=.+$',
    r'^-stdlib=.+$',
    r'^--sysroot(=.+)?$',
    r'^-(shared|static|pie|no-pie|s)$',
    r'^-(nostdlib|nodefaultlibs|nostartfiles|static-libgcc)$',
)]

# Options the back-end must not see.
droppedOptions = ('-rdynamic',)

archOptionNames = ('-m16', '-m32', '-mx32', '-m64', '-march', '-mtune', '-mcpu')

_groupStart = '-Wl,--start-group'
_groupEnd = '-Wl,--end-group'


def findLibrary(builder, name):
    """ Finds lib<name>.a, looking in the -L directories first.
    """
    af = builder.af
    for d in af.libraryPaths + builder.getLibrarySearchPath():
        candidate = os.path.join(d, f'lib{name}.a')
        if os.path.isfile(candidate):
            return candidate
    return None


def translateOption(opt, convertedLibraries):
    """ The back-end tokens standing for one gcc link option.
    """
    name = opt.name
    if name in droppedOptions:
        return []
    if name.startswith('-O'):
        return [f'-O{normalizeOptLevel(name[2:])}']
    if name.startswith('-l'):
        if name[2:] in convertedLibraries:
            return []
        return [name]
    if name in archOptionNames or re.match(r'^-m(arch|tune|cpu)=', name):
        if opt.arg is not None:
            return [f'{name}={opt.arg}']
        return [name]
    if name == '-Xlinker':
        return opt.tokens()
    if any(p.match(name) for p in passThroughPatterns):
        return opt.tokens()
    translated = []
    for token in opt.tokens():
        translated.extend(['-Xlinker', token])
    return translated


def translateOptions(af, convertedLibraries, groupInputs=None):
    """ The back-end tokens for all of af's link options, in order.

    Link groups keep their exact form and position; a file named inside
    one is replaced by what groupInputs maps it to.
    """
    groupInputs = groupInputs or {}
    options = []
    inGroup = False
    for opt in af.linkOptions:
        if opt.name == _groupStart:
            inGroup = True
        if inGroup:
            options.append(groupInputs.get(opt.name, opt.name))
            if opt.name == _groupEnd:
                inGroup = False
            continue
        options.extend(translateOption(opt, convertedLibraries))
    return options


def defaultOptions(builder):
    """ The options every back-end link gets, instrumented or not.
    """
    libDir = builder.getLibDir()
    options = [f'-L{d}' for d in builder.getLibrarySearchPath()]
    options.append(f'-L{libDir}')
    if builder.instrumenting:
        options.append(f'-Wl,-rpath,{libDir}')
        options.append(f'-l{runtimeLibrary}')
        if builder.af.threadSafe:
            options.append('-lpthread')
        if builder.mode != 'bf-g++':
            # the runtime is C++; clang++ links this itself
            options.append('-lstdc++')
    options.extend(builder.getModeLibraries())
    options.append('-lm')
    return options


def linkInputs(builder, objectMap, scratchDir):
    """ Returns (inputs, archives, convertedLibraries, groupInputs) for the link.

    inputs are the files in command-line order with IR substituted;
    archives are the archives we could not convert, to be passed as
    plain options; groupInputs maps each file named inside a link group
    to what the back-end should see in its place.
    """
    af = builder.af
    extractor = BitcodeExtractor(builder, scratchDir)
    inputs = []
    archives = []
    for f in af.leftoverFiles:
        if f in objectMap:
            inputs.append(extractor.extract(objectMap[f]))
        elif f.endswith('.a'):
            (path, converted) = convertArchive(builder, f)
            if converted:
                inputs.append(path)
            else:
                archives.append(path)
        else:
            inputs.append(extractor.extract(f))

    groupInputs = {}
    for f in af.groupFiles:
        if f.endswith('.a'):
            # converted or not, the archive keeps its place in the group
            (groupInputs[f], _) = convertArchive(builder, f)
        else:
            groupInputs[f] = extractor.extract(f)

    convertedLibraries = set()
    for lib in af.libraries:
        if lib in convertedLibraries:
            continue
        path = findLibrary(builder, lib)
        if path is None:
            _logger.debug('No archive for -l%s; the linker will look for it', lib)
            continue
        (path, converted) = convertArchive(builder, path)
        if converted:
            inputs.append(path)
            convertedLibraries.add(lib)
    return (inputs, archives, convertedLibraries, groupInputs)


def link(builder, objectMap, scratchDir):
    """ Links the final executable (or shared object) with the back-end.

    objectMap takes each source file named on the command line to the
    object the compile pipeline made for it.
    """
    af = builder.af
    (inputs, archives, convertedLibraries, groupInputs) = linkInputs(builder, objectMap, scratchDir)
    cmd = builder.getLinker() + inputs + archives
    cmd += translateOptions(af, convertedLibraries, groupInputs)
    cmd += defaultOptions(builder)
    if af.outputFilename is not None:
        cmd += ['-o', af.outputFilename]
    _logger.debug('Linking %d inputs into "%s"', len(inputs), af.getOutputFilename())
    run(cmd)
    return cmd
