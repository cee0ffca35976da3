#!/usr/bin/env python3

# python setup.py sdist --format=zip,gztar

import importlib.util
import sys

from setuptools import setup

if sys.version_info[:3] < (3, 10, 0):
    sys.exit("Error: bch-tx-editor requires Python version >= 3.10.0...")

with open('contrib/requirements/requirements.txt') as f:
    requirements = f.read().splitlines()

with open('contrib/requirements/requirements-dev.txt') as f:
    requirements_dev = f.read().splitlines()

version_spec = importlib.util.spec_from_file_location('version', 'bchtxeditor/version.py')
assert version_spec is not None and version_spec.loader is not None
version = importlib.util.module_from_spec(version_spec)
version_spec.loader.exec_module(version)

setup(
    name="bch-tx-editor",
    version=version.PACKAGE_VERSION,
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        'test': requirements_dev,
    },
    packages=[
        'bchtxeditor',
        'bchtxeditor.tests',
    ],
    entry_points={
        'console_scripts': [
            'bch-tx-editor=bchtxeditor.commands:main',
        ],
    },
    description="Bitcoin Cash partially signed transaction editor",
    license="MIT Licence",
    long_description="""Encode, decode and inspect partially signed Bitcoin Cash transactions"""
)
