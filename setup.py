#!/usr/bin/env python3

from setuptools import setup, find_packages
from os import path


def readme():
    here = path.relpath(path.abspath(path.dirname(__file__)))
    with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
            return f.read()


setup(
    name='MRFEM',
    version='0.1.0',
    description='MRFEM - spatial clustering of binary observations with EM over a Markov random field',
    long_description=readme(),
    author='MRFEM developers',
    license='GNU General Public License, version 3 (GPL-3.0)',
    packages=find_packages(exclude=['tests']),
    exclude_package_data = {'': ['.gitignore']},
    scripts=['mrfem-cli'],
    python_requires='>=3.8',
    install_requires=["numpy >= 1.17", "scipy >= 1.3", "docopt >= 0.6.2", "termcolor >= 1.1"],
    extras_require={'test': ["pytest >= 6.0"]},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Operating System :: POSIX :: Linux"
    ]
)
