""" The closed sets of values the driver switches on.
"""
from enum import Enum


class BuildMode(Enum):
    PREPROCESS = 'preprocess'
    COMPILE = 'compile'
    LINK = 'link'


class DisableMode(Enum):
    """ What -bf-disable turns off, in increasing order.

    BYFL drops the instrumentation pass, BITCODE drops the IR pipeline
    (the plugin compiles straight to native code) and ALL falls back to
    the wrapped native compiler.
    """
    NONE = 'none'
    BYFL = 'byfl'
    BITCODE = 'bitcode'
    ALL = 'all'

    @classmethod
    def values(cls):
        return [m.value for m in cls]


class SaveTempsPolicy(Enum):
    DISCARD = 'discard'
    MOVE_TO_CWD = 'cwd'
    MOVE_TO_OBJDIR = 'obj'
    KEEP = 'keep'
