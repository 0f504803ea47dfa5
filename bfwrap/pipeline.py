""" Turning one source file into an object that carries instrumented IR.

The stages run strictly in order, each consuming the previous stage's
output file:

  1. emit:         the native front-end with the IR plugin writes IR.
  2. analyze:      with -bf-static, the pass reports on the IR; no output.
  3. preoptimize:  opt at the user's level, skipped at -O0.
  4. instrument:   opt with the instrumentation pass loaded.
  5. postoptimize: opt again, at -O3 or higher, skipped at -O0.
  6. embed:        an empty native object gets the IR as a section.

Every intermediate file belongs to the unit's TemporaryFiles and is
disposed of when the unit finishes, successfully or not.
"""
import os
import shutil

from .arglistfilter import flatten, normalizeOptLevel, postInstrumentationOptLevel
from .compilers import bitcodeSectionName
from .errors import FilesystemError
from .modes import BuildMode, SaveTempsPolicy
from .popenwrapper import run
from .tempfiles import TemporaryFiles

from .logconfig import logConfig

_logger = logConfig(__name__)


class SourcePipeline:
    stages = ('emit', 'analyze', 'preoptimize', 'instrument', 'postoptimize', 'embed')

    def __init__(self, builder, srcFile, objFile, scratchDir, temps):
        self.builder = builder
        self.af = builder.af
        self.srcFile = srcFile
        self.objFile = objFile
        self.scratchDir = scratchDir
        self.temps = temps
        (self.stem, _) = os.path.splitext(os.path.basename(objFile))
        self.completed = []

    def _intermediate(self, suffix):
        return self.temps.register(os.path.join(self.scratchDir, f'{self.stem}{suffix}'))

    def run(self):
        current = self.srcFile
        for stage in self.stages:
            _logger.debug('%s: %s on "%s"', self.srcFile, stage, current)
            current = getattr(self, stage)(current)
            self.completed.append(stage)
        return self.objFile

    def emit(self, srcFile):
        irFile = self._intermediate('.ll')
        # -g is always given, so a user -g would only be repeated
        forwarded = [o for o in self.af.compileOptions if not o.name.startswith('-g')]
        cmd = self.builder.getCompiler() + [f'-fplugin={self.builder.getDragonegg()}',
                                            '-fplugin-arg-dragonegg-emit-ir', '-S', '-g']
        cmd += flatten(forwarded)
        cmd += [srcFile, '-o', irFile]
        run(cmd)
        return irFile

    def analyze(self, irFile):
        if not self.af.runStatic:
            return irFile
        cmd = self.builder.getPassCommand() + ['-bf-static'] + self.af.bfOptions
        cmd += ['-disable-output', irFile]
        run(cmd)
        return irFile

    def preoptimize(self, irFile):
        level = normalizeOptLevel(self.af.optLevel)
        if level == '0':
            return irFile
        optFile = self._intermediate('.opt.bc')
        run(self.builder.getOptimizer() + [f'-O{level}', irFile, '-o', optFile])
        return optFile

    def instrument(self, irFile):
        if not self.builder.instrumenting:
            return irFile
        instFile = self._intermediate('.inst.bc')
        run(self.builder.getPassCommand() + self.af.bfOptions + [irFile, '-o', instFile])
        return instFile

    def postoptimize(self, irFile):
        level = postInstrumentationOptLevel(self.af.optLevel)
        if level is None:
            return irFile
        optFile = self._intermediate('.bc')
        run(self.builder.getOptimizer() + [f'-O{level}', irFile, '-o', optFile])
        return optFile

    def embed(self, irFile):
        # the object only appears at objFile once it carries the IR
        placeholder = self._intermediate('.placeholder.o')
        archFlags = [o for o in self.af.compileOptions if o.name.startswith('-m')]
        cmd = self.builder.getCompiler() + flatten(archFlags)
        cmd += ['-c', '-o', placeholder, '-x', 'c', os.devnull]
        run(cmd)
        run(self.builder.getBinutil('objcopy') + ['--add-section', f'{bitcodeSectionName}={irFile}',
                                                  '--set-section-flags', f'{bitcodeSectionName}=alloc',
                                                  placeholder])
        try:
            shutil.move(placeholder, self.objFile)
        except OSError as e:
            raise FilesystemError(f'could not move {placeholder} to {self.objFile}: {e}') from e
        return self.objFile


def compileSources(builder, mapping, scratchDir):
    """ Runs the pipeline for each (source, object) pair, in order.

    A source named twice is compiled once; its later entries already
    have their object.
    """
    af = builder.af
    done = {}
    for (srcFile, objFile) in mapping:
        if srcFile in done:
            _logger.info('"%s" was already compiled to "%s"; skipping it', srcFile, done[srcFile])
            continue
        objDir = None
        if af.saveTemps == SaveTempsPolicy.MOVE_TO_OBJDIR:
            # objects made for a link live in scratch; save beside the output instead
            target = objFile if af.buildMode == BuildMode.COMPILE else af.getOutputFilename()
            objDir = os.path.dirname(target)
        with TemporaryFiles(af.saveTemps, objDir) as temps:
            SourcePipeline(builder, srcFile, objFile, scratchDir, temps).run()
        done[srcFile] = objFile
    return [objFile for (_, objFile) in mapping]
