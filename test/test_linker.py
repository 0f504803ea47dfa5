#!/usr/bin/env python

import os
import shutil
import tempfile
import unittest
from unittest import mock

from bfwrap.arglistfilter import LINK, ArgumentListFilter, ParsedOption
from bfwrap.compilers import Builder, parseSearchDirs
from bfwrap.linker import defaultOptions, link, translateOption, translateOptions

from toolchain import FakeToolchain, cleanEnvironment, objectWithBitcode, withBitcode, writeFile


def linkOpt(name, arg=None):
    return ParsedOption(name, arg, LINK)


class TranslationTest(unittest.TestCase):
    """
    gcc link options, as the back-end linker wants them
    """

    def test_passed_through(self):
        for name in ['-Wl,-z,now', '-L/opt/lib', '-pthread', '-pg', '-fprofile-arcs', '--coverage',
                     '-fopenmp', '-shared', '-static', '-nostdlib', '--sysroot=/sys']:
            self.assertEqual(translateOption(linkOpt(name), set()), [name])
        self.assertEqual(translateOption(linkOpt('-Xlinker', '--gc-sections'), set()), ['-Xlinker', '--gc-sections'])
        self.assertEqual(translateOption(linkOpt('--sysroot', '/sys'), set()), ['--sysroot', '/sys'])

    def test_dropped(self):
        self.assertEqual(translateOption(linkOpt('-rdynamic'), set()), [])

    def test_optimization_is_normalized(self):
        self.assertEqual(translateOption(linkOpt('-O2'), set()), ['-O2'])
        self.assertEqual(translateOption(linkOpt('-Ofast'), set()), ['-O3'])
        self.assertEqual(translateOption(linkOpt('-O'), set()), ['-O1'])

    def test_architecture(self):
        self.assertEqual(translateOption(linkOpt('-march', 'core2'), set()), ['-march=core2'])
        self.assertEqual(translateOption(linkOpt('-mtune=generic'), set()), ['-mtune=generic'])
        self.assertEqual(translateOption(linkOpt('-m32'), set()), ['-m32'])

    def test_everything_else_goes_to_the_linker(self):
        self.assertEqual(translateOption(linkOpt('-T', 'link.ld'), set()), ['-Xlinker', '-T', '-Xlinker', 'link.ld'])
        self.assertEqual(translateOption(linkOpt('-rpath', '/opt'), set()), ['-Xlinker', '-rpath', '-Xlinker', '/opt'])

    def test_converted_libraries_are_not_repeated(self):
        self.assertEqual(translateOption(linkOpt('-lfoo'), {'foo'}), [])
        self.assertEqual(translateOption(linkOpt('-lbar'), {'foo'}), ['-lbar'])

    def test_linking_group_is_verbatim(self):
        af = ArgumentListFilter(['main.o', '-rdynamic', '-Wl,--start-group', 'liba.a', '-lb', '-T', 'x.ld',
                                 '-Wl,--end-group', '-T', 'y.ld'])
        self.assertEqual(translateOptions(af, {'b'}),
                         ['-Wl,--start-group', 'liba.a', '-lb', '-T', 'x.ld', '-Wl,--end-group',
                          '-Xlinker', '-T', '-Xlinker', 'y.ld'])

    def test_linking_group_members_are_replaced(self):
        af = ArgumentListFilter(['main.o', '-Wl,--start-group', 'liba.a', 'grp.o', '-Wl,--end-group'])
        self.assertEqual(translateOptions(af, set(), {'grp.o': 'scratch/grp.bc'}),
                         ['-Wl,--start-group', 'liba.a', 'scratch/grp.bc', '-Wl,--end-group'])

    def test_search_dirs(self):
        output = 'install: /usr/lib/gcc/x86_64-linux-gnu/9/\nlibraries: =/usr/lib/gcc/../lib/:/lib/x86_64-linux-gnu/:/usr/lib/\n'
        self.assertEqual(parseSearchDirs(output), ['/usr/lib', '/lib/x86_64-linux-gnu', '/usr/lib'])
        self.assertEqual(parseSearchDirs('programs: =/usr/bin\n'), [])


class LinkTestCase(unittest.TestCase):
    """
    Runs each test in a fresh directory with the fake toolchain in place
    """

    def setUp(self):
        self.origDir = os.getcwd()
        self.workDir = tempfile.mkdtemp(prefix='test-bfwrap-')
        os.chdir(self.workDir)
        self.scratch = os.path.join(self.workDir, 'scratch')
        os.mkdir(self.scratch)

        self.toolchain = FakeToolchain()
        patches = [cleanEnvironment(), mock.patch('bfwrap.popenwrapper.Popen', new=self.toolchain)]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    def tearDown(self):
        os.chdir(self.origDir)
        shutil.rmtree(self.workDir)

    def builder(self, *args, mode='bf-gcc'):
        return Builder(mode, ArgumentListFilter(list(args)))

    def linkCommand(self):
        return self.toolchain.commandsFor('clang')[-1]


class DefaultOptionsTest(LinkTestCase):

    def test_instrumented(self):
        options = defaultOptions(self.builder('main.o', '-bf-thread-safe', '-bf-libdir=/opt/bf/lib'))
        self.assertEqual(options, ['-L/opt/bf-test/lib', '-L/opt/bf/lib', '-Wl,-rpath,/opt/bf/lib',
                                   '-lbyfl', '-lpthread', '-lstdc++', '-lm'])

    def test_not_instrumented(self):
        options = defaultOptions(self.builder('main.o', '-bf-disable=byfl', '-bf-libdir=/opt/bf/lib'))
        self.assertEqual(options, ['-L/opt/bf-test/lib', '-L/opt/bf/lib', '-lm'])

    def test_modes(self):
        options = defaultOptions(self.builder('main.o', mode='bf-gfortran'))
        self.assertIn('-lgfortran', options)
        options = defaultOptions(self.builder('main.o', mode='bf-g++'))
        self.assertNotIn('-lstdc++', options)

    def test_search_path_is_asked_for_once(self):
        builder = self.builder('main.o')
        defaultOptions(builder)
        defaultOptions(builder)
        searches = [c for c in self.toolchain.commands if '-print-search-dirs' in c]
        self.assertEqual(searches, [['gcc', '-print-search-dirs']])


class LinkTest(LinkTestCase):

    def test_inputs_keep_their_order(self):
        """
        Two of our objects and a system archive: the objects' IR, in order, and the archive untouched
        :return:
        """
        objectWithBitcode('b.o', b'b')
        objectWithBitcode('a.o', b'a')
        self.toolchain.addArchive('libsys.a', [('sys.o', b'ELF')])
        builder = self.builder('b.o', 'libsys.a', 'a.o', '-o', 'prog')
        with mock.patch('bfwrap.extraction.isWritable', return_value=False):
            link(builder, {}, self.scratch)

        cmd = self.linkCommand()
        inputs = [c for c in cmd if c.endswith('.bc')]
        self.assertEqual([os.path.basename(i) for i in inputs], ['b.bc', 'a.bc'])
        self.assertEqual(cmd[1:3], inputs)
        self.assertEqual(cmd[3], 'libsys.a')
        self.assertEqual(cmd[-2:], ['-o', 'prog'])
        self.assertNotIn('ar', self.toolchain.tools)

    def test_generated_objects_stand_for_their_sources(self):
        objectWithBitcode(os.path.join(self.scratch, 'main.o'), b'main')
        builder = self.builder('main.c', 'other.o')
        writeFile('other.o', b'ELF')
        link(builder, {'main.c': os.path.join(self.scratch, 'main.o')}, self.scratch)
        cmd = self.linkCommand()
        self.assertEqual(cmd[1:3], [os.path.join(self.scratch, 'main.bc'), 'other.o'])
        self.assertNotIn('-o', cmd)

    def test_library_archives_are_converted(self):
        os.mkdir('lib')
        self.toolchain.addArchive('lib/libfoo.a', [('foo.o', withBitcode())])
        objectWithBitcode('main.o')
        builder = self.builder('main.o', '-Llib', '-lfoo', '-lm')
        link(builder, {}, self.scratch)

        cmd = self.linkCommand()
        self.assertEqual(cmd[1:3], [os.path.join(self.scratch, 'main.bc'), 'lib/libfoo.a'])
        self.assertNotIn('-lfoo', cmd)
        self.assertIn('-Llib', cmd)
        self.assertIn('-lm', cmd)
        self.assertIn('llc', self.toolchain.tools)

    def test_unconverted_archive_file(self):
        self.toolchain.addArchive('libplain.a', [('x.o', b'ELF')])
        builder = self.builder('libplain.a', 'main.o')
        writeFile('main.o', b'ELF')
        link(builder, {}, self.scratch)
        self.assertEqual(self.linkCommand()[1:3], ['main.o', 'libplain.a'])

    def test_linking_group_members_are_recovered(self):
        """
        Our archive inside a link group is converted, and an object there has its IR linked, both in place
        :return:
        """
        objectWithBitcode('main.o', b'main')
        objectWithBitcode('grp.o', b'grp')
        self.toolchain.addArchive('libours.a', [('ours.o', withBitcode())])
        builder = self.builder('main.o', '-Wl,--start-group', 'libours.a', 'grp.o', '-Wl,--end-group', '-o', 'prog')
        link(builder, {}, self.scratch)

        cmd = self.linkCommand()
        self.assertIn('llc', self.toolchain.tools)
        self.assertIn('qcs', [c[1] for c in self.toolchain.commandsFor('ar')])
        self.assertEqual(cmd[1], os.path.join(self.scratch, 'main.bc'))
        start = cmd.index('-Wl,--start-group')
        self.assertEqual(cmd[start:start + 4], ['-Wl,--start-group', 'libours.a',
                                                os.path.join(self.scratch, 'grp.bc'), '-Wl,--end-group'])
        self.assertEqual(cmd.count('libours.a'), 1)

    def test_back_end_is_configurable(self):
        writeFile('main.o', b'ELF')
        with mock.patch.dict(os.environ, {'BF_CLANGXX': '/opt/llvm/bin/clang++'}):
            link(self.builder('main.o', mode='bf-g++'), {}, self.scratch)
        self.assertEqual(self.toolchain.commands[-1][0], '/opt/llvm/bin/clang++')


if __name__ == '__main__':
    unittest.main()
