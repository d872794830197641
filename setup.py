#!/usr/bin/env python3
"""
Setup script for Lockbox
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="lockbox-keychain",
    version="1.0.0",
    description="Local-first encrypted password keychain with tamper-evident persistence",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Security :: Cryptography",
    ],
    python_requires=">=3.11",
    install_requires=[
        "cryptography>=41.0",
        "pydantic>=2.5",
        "structlog>=23.1",
        "keyring>=24.0",
        "click>=8.1",
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-cov>=4.1",
        ],
    },
    entry_points={
        "console_scripts": [
            "lockbox=lockbox.cli.entry_points:entrypoint",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
