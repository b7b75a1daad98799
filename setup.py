#!/usr/bin/env python
"""
kubesim - docker and kubectl terminal simulator for learning container tooling
"""
from setuptools import setup, find_packages

# Define required packages
required_packages = [
    "pydantic>=2.0.0",  # For settings validation
    "colorama>=0.4.5",  # For terminal color codes
    "pyyaml>=6.0",      # For manifests and configuration files
    "rich>=13.5.0",     # For rendering output in the interactive shell
]

setup(
    name="kubesim",
    version="1.0.0",
    description="Simulated docker and kubectl command line over an in-memory cluster",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=required_packages,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        'console_scripts': [
            'kubesim=kubesim.main:main',
        ],
    },
    include_package_data=True,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Education",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
