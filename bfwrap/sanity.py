#!/usr/bin/env python
"""The bf-sanity-checker command.

Reports whether the compilers, plugins and LLVM tools bf-gcc relies on
can be found, and how the instrumented program's output will be routed.
Exits non-zero when something needed is missing.
"""

import sys

from .checker import Checker


def main():
    return Checker().check()


if __name__ == '__main__':
    sys.exit(main())
