"""
setup.py for the predictivecontrol package.

The package is pure Python on top of numpy/scipy:
    pip install -e .

Development extras (tests, linters):
    pip install -e ".[dev]"
"""

from setuptools import find_packages, setup

setup(
    name="predictivecontrol",
    version="0.1.0",
    description="Condensed QP construction and Fast Gradient Method solver for linear MPC",
    package_dir={"": "python"},
    packages=find_packages(where="python"),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "scipy>=1.7",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "hypothesis>=6.0",
            "black>=23.0",
            "ruff>=0.1.0",
            "mypy>=1.0",
        ],
    },
)
