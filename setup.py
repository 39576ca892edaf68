#!/usr/bin/env python3
"""
Setup script for nigfield-jax.

Install in development mode:
    pip install -e ".[dev]"

Install normally:
    pip install .
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="nigfield-jax",
    version="0.1.0",
    description="Likelihood engine for spatial latent fields driven by Normal-Inverse-Gaussian noise",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["nigfield_jax", "nigfield_jax.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Mathematics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=3.0.0",
            "black>=22.0.0",
            "flake8>=4.0.0",
            "mypy>=0.950",
            "optax>=0.1.7",
        ],
        "examples": [
            "matplotlib>=3.5.0",
            "optax>=0.1.7",
        ],
    },
)
