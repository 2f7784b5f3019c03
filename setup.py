"""
Packaging for tsexport: incremental export of time-series catalogs into
HDF5 channel containers.
"""

import re
from pathlib import Path

from setuptools import setup, find_packages

HERE = Path(__file__).parent


def read_version():
    source = (HERE / 'tsexport' / '__init__.py').read_text(encoding='utf-8')
    match = re.search(r'^__version__\s*=\s*[\'"]([^\'"]+)[\'"]', source, re.MULTILINE)
    if match is None:
        raise RuntimeError('Unable to find __version__ in tsexport/__init__.py')
    return match.group(1)


setup(
    name='tsexport',
    version=read_version(),
    description='Write time-series catalogs into one HDF5 container file per period',
    long_description=(HERE / 'README.md').read_text(encoding='utf-8'),
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*', 'examples']),
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Information Analysis',
        'Programming Language :: Python :: 3 :: Only',
    ],
    python_requires='>=3.10',
    install_requires=[
        'numpy>=1.20.0',
        'h5py>=3.0.0',
        'pydantic>=2.0',
    ],
    extras_require={
        'dev': [
            'pytest>=6.0',
            'pytest-cov>=2.0',
        ],
    },
)
