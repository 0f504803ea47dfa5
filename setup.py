from setuptools import setup, find_packages

from codecs import open
from os import path

here = path.abspath(path.dirname(__file__))

# Get the long description from the README file
with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

# use the in house version number so we stay in synch with ourselves.
from bfwrap.version import bf_version

setup(
    name='bfwrap',
    version=bf_version,
    description='Compiler wrappers that instrument programs with the bytesflops pass',
    long_description=long_description,

    include_package_data=True,

    packages=find_packages(exclude=['test']),

    python_requires='>=3.6',

    entry_points = {
        'console_scripts': [
            'bf-gcc = bfwrap.bfgcc:main',
            'bf-g++ = bfwrap.bfgxx:main',
            'bf-gfortran = bfwrap.bfgfortran:main',
            'bf-sanity-checker = bfwrap.sanity:main',
        ],
    },

    license='BSD',

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Natural Language :: English',
        'Intended Audience :: Science/Research',
        'Intended Audience :: Developers',
        'Topic :: Software Development :: Compilers',
        'Operating System :: POSIX :: Linux',
        'Operating System :: POSIX :: BSD',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ],
)
