"""
Setup script for egsphsp package.

Installation:
    pip install -e .
"""

from setuptools import setup, find_packages

setup(
    name="egsphsp",
    version="0.1.0",
    description="Read, transform, combine and sample EGSnrc phase space files",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "numba>=0.58",
        "pyyaml>=6.0",
        "tqdm>=4.65",
    ],
    extras_require={
        "dev": ["pytest>=7.3", "black>=23.0", "mypy>=1.3", "ipython>=8.12"],
        "test": ["pytest>=7.3"],
    },
    entry_points={
        "console_scripts": [
            "egsphsp = egsphsp.cli:main",
        ],
    },
)
