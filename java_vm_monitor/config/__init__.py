#!/usr/bin/env python3
"""
Java VM Monitor - Configuration Management Module
"""

from .config_manager import ConfigManager, ConfigValidationError

__all__ = ['ConfigManager', 'ConfigValidationError']
