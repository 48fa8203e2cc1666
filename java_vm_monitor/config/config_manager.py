#!/usr/bin/env python3
"""
Java VM Monitor - Configuration Management
YAML configuration loading, defaults and validation.
"""

import os
import re
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

import structlog
logger = structlog.get_logger()


VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_LOG_FORMATS = ['json', 'console']

DEFAULT_CONFIG: Dict[str, Any] = {
    'monitor': {
        'interval_ms': 5000,
        'run_once': False,
        'export_path': None,
        'retention_count': 100,
    },
    'tools': {
        'java_home': None,
        'jps_command': 'jps',
        'jinfo_command': 'jinfo',
        'jstat_command': 'jstat',
        'hostname_command': 'hostname',
        'command_timeout_seconds': 30,
        'psutil_fallback': True,
        'excluded_process_names': [
            'jdk.jcmd/sun.tools.jps.Jps',
            'sun.tools.jps.Jps',
        ],
    },
    'app_info': {
        'app_name_prefix': 'com.netfolio.appname',
        'variant_prefix': 'com.netfolio.fullname',
        'main_class_property': 'sun.java.command',
    },
    'logging': {
        'level': 'INFO',
        'format': 'json',
    },
}


@dataclass
class ConfigValidationError:
    """Represents a configuration validation error."""
    path: str                    # Configuration path where error occurred
    message: str                 # Error message
    severity: str = "error"      # error, warning
    suggestion: Optional[str] = None  # Suggested fix


class ConfigManager:
    """
    Configuration management for Java VM Monitor.

    Features:
    - YAML configuration loading with environment variable substitution
    - Environment-specific override file selected by JVM_MONITOR_ENV
    - Default value injection
    - Validation with detailed error reporting

    Without a configuration file the defaults are used as-is.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to primary configuration file, or None for defaults
        """
        self.config_path = Path(config_path) if config_path else None
        self.config: Dict[str, Any] = deepcopy(DEFAULT_CONFIG)
        self.validation_errors: List[ConfigValidationError] = []
        self.environment = os.getenv('JVM_MONITOR_ENV')

        logger.debug("ConfigManager initialized",
                     config_path=str(self.config_path) if self.config_path else None,
                     environment=self.environment)

    async def load_config(self) -> bool:
        """
        Load configuration from file with validation.

        Returns:
            True if loading successful, False otherwise
        """
        try:
            raw_config: Dict[str, Any] = {}

            if self.config_path is not None:
                logger.info("Loading configuration", config_path=str(self.config_path))

                if not self.config_path.exists():
                    logger.error("Configuration file not found", path=str(self.config_path))
                    return False

                with open(self.config_path, 'r') as f:
                    raw_config = yaml.safe_load(f) or {}

                if not isinstance(raw_config, dict):
                    logger.error("Configuration file must contain a mapping",
                                 path=str(self.config_path))
                    return False

            config = self._substitute_environment_variables(raw_config)
            config = self._load_environment_overrides(config)
            self.config = self._deep_merge(deepcopy(DEFAULT_CONFIG), config)

            if not self.validate():
                logger.error("Configuration validation failed",
                             errors=[f"{e.path}: {e.message}" for e in self.errors])
                return False

            logger.debug("Configuration loaded", sections=list(self.config.keys()))
            return True

        except yaml.YAMLError as e:
            logger.error("YAML parsing error", error=str(e))
            return False
        except Exception as e:
            logger.error("Error loading configuration", error=str(e))
            return False

    def get_config(self) -> Dict[str, Any]:
        """
        Get the current configuration.

        Returns:
            Deep copy of the configuration dictionary
        """
        return deepcopy(self.config)

    def get_section(self, section: str, default: Any = None) -> Any:
        """
        Get a specific configuration section.

        Args:
            section: Section name (supports dot notation like 'monitor.interval_ms')
            default: Default value if section not found

        Returns:
            Configuration section value or default
        """
        keys = section.split('.')
        current = self.config

        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set_value(self, path: str, value: Any) -> None:
        """
        Set a configuration value (runtime only, e.g. from CLI flags).

        Args:
            path: Configuration path (dot notation)
            value: Value to set
        """
        keys = path.split('.')
        current = self.config

        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    @property
    def errors(self) -> List[ConfigValidationError]:
        return [e for e in self.validation_errors if e.severity == 'error']

    def validate(self) -> bool:
        """
        Validate the current configuration.

        Returns:
            True if there are no error-severity problems
        """
        self.validation_errors.clear()

        self._validate_monitor_config()
        self._validate_tools_config()
        self._validate_logging_config()

        for warning in (e for e in self.validation_errors if e.severity == 'warning'):
            logger.warning("Configuration warning", path=warning.path, message=warning.message)

        return not self.errors

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _substitute_environment_variables(self, config: Any) -> Any:
        """
        Substitute environment variables in configuration values.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax. A value that
        is a single ${...} expression is re-read as YAML, so numbers and
        booleans keep their type.
        """
        def replace_env_var(match):
            var_expr = match.group(1)
            if ':' in var_expr:
                var_name, default_value = var_expr.split(':', 1)
                return os.getenv(var_name.strip(), default_value.strip())

            env_value = os.getenv(var_expr.strip())
            if env_value is None:
                logger.warning("Environment variable not found", variable=var_expr.strip())
                return match.group(0)
            return env_value

        def substitute_value(value):
            if isinstance(value, str):
                substituted = re.sub(r'\$\{([^}]+)\}', replace_env_var, value)
                if substituted != value and re.fullmatch(r'\$\{[^}]+\}', value.strip()):
                    try:
                        return yaml.safe_load(substituted)
                    except yaml.YAMLError:
                        return substituted
                return substituted
            elif isinstance(value, dict):
                return {k: substitute_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [substitute_value(item) for item in value]
            return value

        return substitute_value(config)

    def _load_environment_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge ``<environment>.yaml`` from the config directory over the config.
        """
        if self.config_path is None or not self.environment:
            return config

        env_config_file = self.config_path.parent / f"{self.environment}.yaml"
        if not env_config_file.exists():
            return config

        try:
            logger.info("Loading environment-specific configuration",
                        env_file=str(env_config_file))

            with open(env_config_file, 'r') as f:
                env_config = yaml.safe_load(f)

            if isinstance(env_config, dict):
                return self._deep_merge(config, self._substitute_environment_variables(env_config))

        except Exception as e:
            logger.warning("Error loading environment configuration",
                           env_file=str(env_config_file),
                           error=str(e))

        return config

    def _validate_monitor_config(self) -> None:
        monitor = self.config.get('monitor', {})

        interval_ms = monitor.get('interval_ms')
        if not _is_int(interval_ms) or interval_ms < 1:
            self.validation_errors.append(ConfigValidationError(
                path='monitor.interval_ms',
                message='interval_ms must be an integer >= 1',
                suggestion='Use 5000 for a five second interval'
            ))
        elif interval_ms < 100:
            self.validation_errors.append(ConfigValidationError(
                path='monitor.interval_ms',
                message='interval_ms below 100 will keep the JDK tools permanently busy',
                severity='warning'
            ))

        retention_count = monitor.get('retention_count')
        if not _is_int(retention_count) or retention_count < 1:
            self.validation_errors.append(ConfigValidationError(
                path='monitor.retention_count',
                message='retention_count must be an integer >= 1'
            ))

        export_path = monitor.get('export_path')
        if export_path is not None and (not isinstance(export_path, str) or not export_path):
            self.validation_errors.append(ConfigValidationError(
                path='monitor.export_path',
                message='export_path must be a non-empty string'
            ))

    def _validate_tools_config(self) -> None:
        tools = self.config.get('tools', {})

        timeout = tools.get('command_timeout_seconds')
        if timeout is not None and (isinstance(timeout, bool)
                                    or not isinstance(timeout, (int, float))
                                    or timeout <= 0):
            self.validation_errors.append(ConfigValidationError(
                path='tools.command_timeout_seconds',
                message='command_timeout_seconds must be a positive number or null'
            ))

        for command_key in ('jps_command', 'jinfo_command', 'jstat_command', 'hostname_command'):
            command = tools.get(command_key)
            if not isinstance(command, str) or not command:
                self.validation_errors.append(ConfigValidationError(
                    path=f'tools.{command_key}',
                    message=f'{command_key} must be a non-empty string'
                ))

        java_home = tools.get('java_home')
        if java_home and not Path(java_home).is_dir():
            self.validation_errors.append(ConfigValidationError(
                path='tools.java_home',
                message=f'java_home {java_home} is not a directory',
                severity='warning',
                suggestion='Point java_home at a JDK installation or leave it unset'
            ))

        excluded = tools.get('excluded_process_names')
        if not isinstance(excluded, list):
            self.validation_errors.append(ConfigValidationError(
                path='tools.excluded_process_names',
                message='excluded_process_names must be a list'
            ))

    def _validate_logging_config(self) -> None:
        logging_config = self.config.get('logging', {})

        level = logging_config.get('level')
        if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
            self.validation_errors.append(ConfigValidationError(
                path='logging.level',
                message=f'level must be one of: {", ".join(VALID_LOG_LEVELS)}'
            ))

        log_format = logging_config.get('format')
        if log_format not in VALID_LOG_FORMATS:
            self.validation_errors.append(ConfigValidationError(
                path='logging.format',
                message=f'format must be one of: {", ".join(VALID_LOG_FORMATS)}'
            ))

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries; values from ``override`` win.
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
