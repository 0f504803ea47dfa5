""" The exceptions raised by the bf-gcc driver.

Every one of them is fatal: the console entry points catch BfError,
log it, and exit with its exitCode.
"""


class BfError(Exception):
    exitCode = 1


class ArgumentParseError(BfError):
    pass


class NoInputFiles(BfError):
    def __init__(self, msg='no input files'):
        super().__init__(msg)


class SourceObjectCountMismatch(BfError):
    def __init__(self, sources, objects):
        self.sources = sources
        self.objects = objects
        super().__init__(f'{len(sources)} source files {sources} but {len(objects)} object files {objects}')


class UnknownDisableMode(BfError):
    def __init__(self, value, valid):
        self.value = value
        super().__init__(f'unknown -bf-disable value "{value}"; expected one of {valid}')


class SubprocessFailure(BfError):
    def __init__(self, tool, status):
        self.tool = tool
        self.status = status
        # a signal shows up as a negative status
        self.exitCode = status if status > 0 else 1
        super().__init__(f'{tool} failed with status {status}')


class FilesystemError(BfError):
    pass
