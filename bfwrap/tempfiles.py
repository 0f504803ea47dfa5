""" Scoped ownership of the scratch directories and intermediate files.

Every intermediate file the pipelines create is handed to the external
tools by name, so the files themselves cannot be avoided; what this
module guarantees is that they go away (or are saved, per -save-temps)
however the stage that made them exits.
"""
import contextlib
import errno
import logging
import os
import shutil
import tempfile

from .errors import FilesystemError
from .modes import SaveTempsPolicy

# Internal logger
_logger = logging.getLogger(__name__)


@contextlib.contextmanager
def scratchDirectory(tool, keep=False):
    """ Yields a fresh, uniquely named directory and deletes it afterwards.

    The name is derived from the tool name so concurrent invocations
    sharing a working directory never collide.
    """
    tempDir = tempfile.mkdtemp(prefix=f'{tool}-')
    _logger.debug('Created scratch directory "%s"', tempDir)
    try:
        yield tempDir
    finally:
        if keep:
            _logger.warning('Keeping temporary files in "%s"', tempDir)
        else:
            _logger.debug('Deleting scratch directory "%s"', tempDir)
            shutil.rmtree(tempDir, ignore_errors=True)


class TemporaryFiles:
    """ The intermediate files of one compilation unit.

    Used as a context manager; on exit every registered file is disposed
    of according to the SaveTempsPolicy, whether or not the body raised.
    """

    def __init__(self, policy, objDir=None):
        self.policy = policy
        self.objDir = objDir or os.curdir
        self.files = []

    def register(self, path):
        self.files.append(path)
        return path

    def __enter__(self):
        return self

    def __exit__(self, excType, excValue, tb):
        self.dispose()
        return False

    def dispose(self):
        files, self.files = self.files, []
        for path in files:
            if self.policy == SaveTempsPolicy.DISCARD:
                self._remove(path)
            elif self.policy == SaveTempsPolicy.MOVE_TO_CWD:
                self._move(path, os.curdir)
            elif self.policy == SaveTempsPolicy.MOVE_TO_OBJDIR:
                self._move(path, self.objDir)
            elif self.policy == SaveTempsPolicy.KEEP:
                _logger.debug('Keeping "%s"', path)
            else:
                raise ValueError(self.policy)

    def _remove(self, path):
        try:
            os.remove(path)
            _logger.debug('Removed "%s"', path)
        except OSError as e:
            if e.errno != errno.ENOENT:
                raise FilesystemError(f'could not remove {path}: {e.strerror}') from e

    def _move(self, path, destDir):
        if not os.path.exists(path):
            return
        dest = os.path.join(destDir, os.path.basename(path))
        try:
            shutil.move(path, dest)
            _logger.info('Saved "%s"', dest)
        except OSError as e:
            raise FilesystemError(f'could not move {path} to {dest}: {e}') from e
