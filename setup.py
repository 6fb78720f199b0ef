#! /usr/bin/env python

# Public Domain (-) 2013-2026 The Assetstamp Authors.
# See the Assetstamp UNLICENSE file for details.

from assetstamp.version import __release__
from setuptools import setup

# ------------------------------------------------------------------------------
# Run Setup
# ------------------------------------------------------------------------------

setup(
    name="assetstamp",
    author="The Assetstamp Authors",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Intended Audience :: Developers",
        "License :: Public Domain",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Build Tools",
        "Topic :: Utilities"
        ],
    description="Build cache and freshness engine for compiled web assets",
    entry_points=dict(console_scripts=[
        "assetstamp = assetstamp.main:main"
        ]),
    extras_require=dict(test=[
        "pytest >= 7.0"
        ]),
    install_requires=[
        "PyYAML >= 5.1",
        "requests >= 2.20.0",
        "simplejson >= 3.2.0"
        ],
    keywords=[
        "assets", "javascript", "css", "build", "cache", "timestamps",
        "freshness", "themes"
        ],
    license="Public Domain",
    long_description=open('README.rst').read(),
    packages=["assetstamp"],
    python_requires=">=3.7",
    version=__release__,
    zip_safe=True
    )
