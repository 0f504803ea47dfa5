#!/usr/bin/env python

import os
import shutil
import tempfile
import unittest

from bfwrap.modes import SaveTempsPolicy
from bfwrap.tempfiles import TemporaryFiles, scratchDirectory

from toolchain import writeFile


class TemporaryFilesTest(unittest.TestCase):
    """
    Intermediate files are disposed of by policy, however the unit ends
    """

    def setUp(self):
        """
        Works in a fresh directory, with a scratch directory inside it
        :return:
        """
        self.origDir = os.getcwd()
        self.workDir = tempfile.mkdtemp(prefix='test-bfwrap-')
        os.chdir(self.workDir)
        self.scratch = os.path.join(self.workDir, 'scratch')
        os.mkdir(self.scratch)

    def tearDown(self):
        os.chdir(self.origDir)
        shutil.rmtree(self.workDir)

    def makeTemps(self, temps, *names):
        return [temps.register(writeFile(os.path.join(self.scratch, n))) for n in names]

    def test_discard(self):
        with TemporaryFiles(SaveTempsPolicy.DISCARD) as temps:
            paths = self.makeTemps(temps, 'foo.ll', 'foo.bc')
        for p in paths:
            self.assertFalse(os.path.exists(p))

    def test_discard_on_failure(self):
        """
        A stage raising still leaves nothing behind
        :return:
        """
        with self.assertRaises(RuntimeError):
            with TemporaryFiles(SaveTempsPolicy.DISCARD) as temps:
                paths = self.makeTemps(temps, 'foo.ll')
                temps.register(os.path.join(self.scratch, 'never-written.bc'))
                raise RuntimeError('opt crashed')
        self.assertFalse(os.path.exists(paths[0]))

    def test_move_to_cwd(self):
        with TemporaryFiles(SaveTempsPolicy.MOVE_TO_CWD) as temps:
            self.makeTemps(temps, 'foo.ll')
        self.assertTrue(os.path.isfile(os.path.join(self.workDir, 'foo.ll')))
        self.assertFalse(os.path.exists(os.path.join(self.scratch, 'foo.ll')))

    def test_move_to_objdir(self):
        objDir = os.path.join(self.workDir, 'build')
        os.mkdir(objDir)
        with TemporaryFiles(SaveTempsPolicy.MOVE_TO_OBJDIR, objDir) as temps:
            self.makeTemps(temps, 'foo.ll')
        self.assertTrue(os.path.isfile(os.path.join(objDir, 'foo.ll')))

    def test_keep(self):
        with TemporaryFiles(SaveTempsPolicy.KEEP) as temps:
            paths = self.makeTemps(temps, 'foo.ll')
        self.assertTrue(os.path.isfile(paths[0]))


class ScratchDirectoryTest(unittest.TestCase):

    def test_removed_afterwards(self):
        with self.assertRaises(RuntimeError):
            with scratchDirectory('bf-gcc') as tempDir:
                writeFile(os.path.join(tempDir, 'foo.bc'))
                raise RuntimeError('llc crashed')
        self.assertFalse(os.path.exists(tempDir))

    def test_unique_and_named_after_the_tool(self):
        with scratchDirectory('bf-gcc') as first, scratchDirectory('bf-gcc') as second:
            self.assertNotEqual(first, second)
            self.assertTrue(os.path.basename(first).startswith('bf-gcc-'))

    def test_keep(self):
        with scratchDirectory('bf-gcc', keep=True) as tempDir:
            pass
        try:
            self.assertTrue(os.path.isdir(tempDir))
        finally:
            shutil.rmtree(tempDir)


if __name__ == '__main__':
    unittest.main()
