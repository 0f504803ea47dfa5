#!/usr/bin/env python
"""This is a wrapper around the real compiler.

It compiles each source file to LLVM IR with the dragonegg plugin,
instruments the IR, and carries it in a section of an otherwise empty
object file.  When linking, the IR is taken back out of the objects
(and archives) and linked, with the instrumentation runtime, by clang.
"""

import sys

from .driver import bfcompile


def main():
    """ The entry point to bf-gcc.
    """
    return bfcompile("bf-gcc")


if __name__ == '__main__':
    sys.exit(main())
