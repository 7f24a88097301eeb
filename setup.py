"""
Setup script for throttler.

This allows the package to be installed in development mode:
    pip install -e .

Or run directly:
    throttler --config conf/throttler.yaml status
"""

from setuptools import setup, find_packages

setup(
    name="throttler",
    version="0.1.0",
    description="Network condition emulation control (tc/netem, dummynet/pf)",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-mock",
            "black",
            "flake8",
            "mypy",
        ],
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "throttler=throttler.cli:main",
        ],
    },
)
