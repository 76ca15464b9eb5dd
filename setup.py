#!/usr/bin/env python
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages
import sys

valid_python = sys.version_info[0] >= 3 and sys.version_info[1] >= 6
if not valid_python:
    raise RuntimeError("agptorch requires python 3.6+")

requirements = [
    "numpy>=1.10",
    "scipy>=0.18",
    "matplotlib>=2.1.2",
    "torch",  # conda install pytorch -c pytorch
    "pytest>=3.5.0",
]

setup(name="agptorch",
    version="0.1.0",
    description="agptorch - augmented variational Gaussian processes built "
        "on PyTorch",
    install_requires=requirements,
    packages=find_packages(exclude=["test", "test.*", "examples"])
)
