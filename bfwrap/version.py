# Feeping Creaturism:
#
# this is the all important version number used by pip.
#
#
"""
Version History:

0.1.0    - 9/14/2026 bf-gcc, bf-g++ and bf-gfortran: IR through dragonegg,
           instrumented by opt, carried in a .bitcode section.

0.1.1    - 9/28/2026 archives we built get their IR members turned back into
           native code before the link; duplicate member names handled.

0.2.0    - 10/12/2026 -bf-disable=, -bf-static and -save-temps=obj|keep;
           bf-sanity-checker reports BF_PREFIX and BF_BINOUT.

"""

bf_version = '0.2.0'
bf_date = 'October 12 2026'
