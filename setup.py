#!/usr/bin/env python3
"""
Setup script for pyRIG
"""

from setuptools import setup, find_packages

setup(
    name="pyrig",
    version="0.1.0",
    description="Python toolkit for Residue Interaction Graph consensus and contact prediction evaluation",
    packages=find_packages(include=["rig", "rig.*"]),
    install_requires=[
        "pyyaml>=6.0",
        "biopython>=1.79",
        "numpy>=1.22.0",
        "pandas>=1.4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
    ],
    python_requires=">=3.8",
)
