#!/usr/bin/env python3
"""
Java VM Monitor - Setup Script
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

# Read requirements
requirements = []
with open(this_directory / "requirements.txt") as f:
    for line in f:
        line = line.strip()
        if line and not line.startswith("#"):
            requirements.append(line)

setup(
    name="java-vm-monitor",
    version="0.1.0",
    author="Java VM Monitor Team",
    description="Periodic JVM identity and garbage collection snapshots using the JDK diagnostic tools",
    long_description=long_description,
    long_description_content_type="text/markdown",

    packages=find_packages(exclude=["tests", "tests.*"]),

    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Intended Audience :: Developers",
        "Topic :: System :: Monitoring",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX",
    ],

    python_requires=">=3.8",
    install_requires=requirements,

    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-mock>=3.11.0",
            "pytest-cov>=4.1.0",
            "flake8>=6.0.0",
            "black>=23.0.0",
            "mypy>=1.4.0",
        ],
    },

    entry_points={
        "console_scripts": [
            "java-vm-monitor=java_vm_monitor.main:cli_main",
        ],
    },

    package_data={
        "java_vm_monitor": [
            "config/*.yaml",
        ],
    },

    include_package_data=True,
    zip_safe=False,

    keywords="monitoring java jvm garbage-collection jstat jinfo jps",
)
