#!/usr/bin/env python3
"""
Java VM Monitor - Collectors Module
"""

from .jdk_tools import JdkToolCollector

__all__ = [
    'JdkToolCollector'
]
