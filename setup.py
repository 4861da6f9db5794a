"""
Setuptools build script for agentshell.

This file allows installation of the ``agentshell`` package via
``pip install .``.  It declares the required dependencies and
registers a console script entry point named ``agentshell``.  The
model itself is provided by an external command line tool (the
``gemini`` CLI by default) which must be installed separately.
"""

from setuptools import setup, find_packages

setup(
    name="agentshell",
    version="0.1.0",
    description="Interactive shell for domain-scoped conversations with a command-line LLM backend",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click>=8.0",
        "PyYAML>=5.4",
        "rich>=12.0",
        "questionary>=1.10",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "agentshell=agentshell.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
