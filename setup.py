#!/usr/bin/env python3
"""
ttlkv Setup Script
==================
Allows installation of the ttlkv package.

Usage:
    pip install -e .           # Development install
    pip install -e ".[test]"   # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="ttlkv",
    version="1.0.0",
    description="Expiring values and counters on a durable key-value store",
    packages=find_packages(include=["ttlkv", "ttlkv.*"]),
    python_requires=">=3.10",
    install_requires=[
        "msgspec>=0.18",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ttlkv=ttlkv.cli:main",
        ],
    },
)
