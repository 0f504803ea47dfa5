"""
A stand-in for the external programs the wrappers run.

FakeToolchain replaces popenwrapper.Popen. It records every command and
acts out just enough of each tool's behaviour for the wrappers to carry
on: files named by -o are created, objcopy really adds and extracts the
.bitcode section (as a marker inside the file), and ar keeps its
archives' members in a dictionary.
"""
import os
from unittest import mock

_sectionMarker = b'\n.bitcode:'

_ownEnvironment = ('BF_', 'LLVM_COMPILER_PATH', 'BINUTILS_TARGET_PREFIX')


def cleanEnvironment():
    """
    Patches os.environ so none of our own variables leak in from the caller
    :return: a mock.patch.dict, to be started or used as a context manager
    """
    kept = {k: v for (k, v) in os.environ.items() if not k.startswith(_ownEnvironment)}
    return mock.patch.dict(os.environ, kept, clear=True)


def writeFile(path, contents=b''):
    with open(path, 'wb') as f:
        f.write(contents)
    return path


def readFile(path):
    with open(path, 'rb') as f:
        return f.read()


def withBitcode(ir=b'define void @f()'):
    """
    The contents of an object that carries ir in its .bitcode section
    """
    return b'ELF' + _sectionMarker + ir


def objectWithBitcode(path, ir=b'define void @f()'):
    return writeFile(path, withBitcode(ir))


class FakeProcess:
    def __init__(self, returncode=0, stdout=b''):
        self.returncode = returncode
        self.stdout = stdout

    def wait(self):
        return self.returncode

    def communicate(self):
        return (self.stdout, b'')


class FakeToolchain:
    def __init__(self, searchDirs=('/opt/bf-test/lib',)):
        self.commands = []
        self.searchDirs = list(searchDirs)
        # tool name -> exit status it should fail with
        self.failing = {}
        # tool names that cannot be found at all
        self.missing = set()
        # absolute archive path -> [(member name, contents)]
        self.archives = {}

    def __call__(self, cmd, **kwargs):
        cmd = list(cmd)
        self.commands.append(cmd)
        tool = os.path.basename(cmd[0])

        if tool in self.missing:
            raise FileNotFoundError(2, 'No such file or directory', cmd[0])
        if tool in self.failing:
            return FakeProcess(self.failing[tool])
        if '-print-search-dirs' in cmd:
            return self._searchDirs()
        if tool == 'objcopy':
            return self._objcopy(cmd)
        if tool == 'ar':
            return self._ar(cmd, kwargs.get('cwd'))
        if '-o' in cmd:
            output = cmd[cmd.index('-o') + 1]
            writeFile(output, f'{tool} output\n'.encode())
        return FakeProcess()

    @property
    def tools(self):
        """
        The names of the programs run so far, in order
        """
        return [os.path.basename(c[0]) for c in self.commands]

    def commandsFor(self, tool):
        return [c for c in self.commands if os.path.basename(c[0]) == tool]

    def addArchive(self, path, members):
        writeFile(path, b'!<arch>\n')
        self.archives[os.path.abspath(path)] = list(members)
        return path

    def _searchDirs(self):
        output = f'install: /usr/lib/gcc/\nprograms: =/usr/bin\nlibraries: ={os.pathsep.join(self.searchDirs)}\n'
        return FakeProcess(stdout=output.encode())

    def _objcopy(self, cmd):
        if '--add-section' in cmd:
            (_, irFile) = cmd[cmd.index('--add-section') + 1].split('=', 1)
            objFile = cmd[-1]
            with open(objFile, 'ab') as f:
                f.write(_sectionMarker + readFile(irFile))
            return FakeProcess()
        (objFile, bcFile) = cmd[-2:]
        if not os.path.exists(objFile):
            return FakeProcess(1)
        contents = readFile(objFile)
        (_, found, ir) = contents.partition(_sectionMarker)
        writeFile(bcFile, ir if found else b'')
        return FakeProcess()

    def _ar(self, cmd, cwd):
        op = cmd[1]
        if op == 't':
            names = [name for (name, _) in self.archives[os.path.abspath(cmd[2])]]
            return FakeProcess(stdout=''.join(f'{n}\n' for n in names).encode())
        if op == 'xN':
            (instance, archive, filename) = (int(cmd[2]), cmd[3], cmd[4])
            matching = [c for (n, c) in self.archives[os.path.abspath(archive)] if n == filename]
            writeFile(os.path.join(cwd or os.curdir, filename), matching[instance - 1])
            return FakeProcess()
        if op == 'qcs':
            archive = cmd[2]
            members = [(os.path.basename(m), readFile(m)) for m in cmd[3:]]
            self.addArchive(archive, members)
            return FakeProcess()
        return FakeProcess(1)
