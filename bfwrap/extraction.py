import os
import shutil

from .arglistfilter import normalizeOptLevel
from .compilers import bitcodeSectionName
from .errors import FilesystemError
from .popenwrapper import run, capture
from .tempfiles import scratchDirectory

from .logconfig import logConfig

_logger = logConfig(__name__)

# Leftovers worth asking objcopy about.
objectExtensions = ('.o', '.lo', '.os')

_thinArchiveMagic = b'!<thin>\n'

# gcc architecture flags and what the assembler wants to hear instead.
_asWordSizes = {
    '-m16': '--16',
    '-m32': '--32',
    '-mx32': '--x32',
    '-m64': '--64',
}


class BitcodeExtractor:
    """ Pulls the embedded IR section out of object files.

    Each distinct object (by real path) is looked at only once per
    invocation; asking again returns the first answer.
    """

    def __init__(self, builder, scratchDir):
        self.builder = builder
        self.scratchDir = scratchDir
        self._extracted = {}
        self._names = set()

    def extract(self, objFile):
        """ Returns the IR file carried by objFile, or objFile itself.
        """
        key = os.path.realpath(objFile)
        if key in self._extracted:
            return self._extracted[key]

        result = objFile
        if os.path.splitext(objFile)[1] in objectExtensions:
            bcFile = self._bitcodeName(objFile)
            cmd = self.builder.getBinutil('objcopy') + ['--output-target=binary',
                                                         f'--only-section={bitcodeSectionName}',
                                                         objFile, bcFile]
            rc = run(cmd, tolerate=True)
            if rc == 0 and os.path.isfile(bcFile) and os.path.getsize(bcFile) > 0:
                _logger.debug('Extracted "%s" from "%s"', bcFile, objFile)
                result = bcFile
            else:
                # objcopy leaves an empty file behind when there is no section
                if os.path.exists(bcFile):
                    os.remove(bcFile)
                _logger.debug('No %s section in "%s"', bitcodeSectionName, objFile)

        self._extracted[key] = result
        return result

    def _bitcodeName(self, objFile):
        (root, _) = os.path.splitext(os.path.basename(objFile))
        candidate = f'{root}.bc'
        n = 1
        while candidate in self._names:
            candidate = f'{root}-{n}.bc'
            n += 1
        self._names.add(candidate)
        return os.path.join(self.scratchDir, candidate)


def fetchTOC(builder, archive):
    """ The members of archive in archive order, as (name, instance) pairs.

    Instance counts from 1 and tells apart members sharing a name.
    """
    seen = {}
    members = []
    output = capture(builder.getBinutil('ar') + ['t', archive])
    for line in output.splitlines():
        if not line:
            continue
        seen[line] = seen.get(line, 0) + 1
        members.append((line, seen[line]))
    return members


def extractFile(builder, archive, filename, instance, destDir):
    arCmd = builder.getBinutil('ar') + ['xN', str(instance), archive, filename]
    run(arCmd, cwd=destDir)
    return os.path.join(destDir, filename)


def codegenOptions(archOptions):
    """ Splits the architecture options into llc's share and the assembler's.
    """
    llcOpts = []
    asOpts = []
    cpu = None
    for (name, value) in archOptions:
        if name in _asWordSizes:
            asOpts.append(_asWordSizes[name])
        elif name == '-march' or (name in ('-mcpu', '-mtune') and cpu is None):
            cpu = value
    if cpu and cpu != 'native':
        llcOpts.append(f'-mcpu={cpu}')
    return (llcOpts, asOpts)


def llcOptLevel(level):
    normalized = normalizeOptLevel(level)
    if normalized.isdigit():
        return normalized
    return '2'


def isWritable(archive):
    return os.access(archive, os.W_OK)


def isThinArchive(archive):
    with open(archive, 'rb') as f:
        return f.read(len(_thinArchiveMagic)) == _thinArchiveMagic


def convertArchive(builder, archive):
    """ Rewrites archive so every member carrying IR holds native code.

    Returns (archive, converted); converted is False when the archive
    was left exactly as it was, either because it is not ours to
    rewrite or because no member carried IR.

    Archives are processed by:

      1. listing the members in order, counting repeated names.

      2. extracting each OCCURRENCE of each name into a directory of
    its own, and when it carries IR, compiling that IR back to a
    native object in place.

      3. building a fresh archive from the members in their original
    order and copying it over the original.
    """
    af = builder.af
    if not isWritable(archive):
        _logger.info('"%s" is not writable, so it cannot be one of ours', archive)
        return (archive, False)
    if isThinArchive(archive):
        _logger.info('"%s" is a thin archive; leaving its members alone', archive)
        return (archive, False)

    archivePath = os.path.abspath(archive)
    members = fetchTOC(builder, archivePath)
    if not members:
        _logger.warning('No files found in "%s", so nothing to be done.', archive)
        return (archive, False)

    (llcOpts, asOpts) = codegenOptions(af.archOptions)
    level = llcOptLevel(af.optLevel)
    converted = False

    with scratchDirectory(builder.tool) as tempDir:
        extractor = BitcodeExtractor(builder, tempDir)
        objects = []
        for (index, (filename, instance)) in enumerate(members):
            memberDir = os.path.join(tempDir, str(index))
            os.mkdir(memberDir)
            member = extractFile(builder, archivePath, filename, instance, memberDir)

            bcFile = extractor.extract(member)
            if bcFile != member:
                _logger.debug('Instance %s of %s in %s carries IR', instance, filename, archive)
                asmFile = os.path.join(memberDir, f'{os.path.splitext(filename)[0]}.s')
                run(builder.getCodeGenerator() + [f'-O{level}'] + llcOpts + [bcFile, '-o', asmFile])
                run(builder.getBinutil('as') + asOpts + [asmFile, '-o', member])
                converted = True
            objects.append(member)

        if not converted:
            _logger.debug('Nothing in "%s" needed converting', archive)
            return (archive, False)

        newArchive = os.path.join(tempDir, os.path.basename(archive))
        run(builder.getBinutil('ar') + ['qcs', newArchive] + objects)
        try:
            shutil.copyfile(newArchive, archivePath)
        except OSError as e:
            raise FilesystemError(f'could not replace {archive}: {e}') from e

    _logger.info('Converted the IR members of "%s" to native code', archive)
    return (archive, True)
