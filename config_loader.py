"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict, Optional

import yaml

from errors import MigrationError
from models import Dialect, PARSER_CLASS_PATTERN

DEFAULT_CONFIG: Dict[str, Any] = {
    'migration': {
        'source_directory': None,
        'target_directory': None,
        'language': None,
        'source_dialect': 'jspwiki',
        'target_dialect': 'markdown',
        'clean_target': False,
        'dry_run': False,
        'verify_attachments': True,
        'report_path': None,
        'progress_bars': True,
    },
    'engine': {
        'work_directory': './target',
        'cache_enabled': False,
        'parser_override': None,
    },
    'logging': {
        'level': None,
        'file': None,
        'verbosity': 0,
    },
}

# Two or three lowercase letters, optionally followed by a region: de, en, pt_BR, zh_CN
LANGUAGE_PATTERN = re.compile(r'^[a-z]{2,3}(_[A-Z]{2})?$')

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def defaults(cls) -> Dict[str, Any]:
        """Return a fresh copy of the default configuration."""
        return copy.deepcopy(DEFAULT_CONFIG)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Values missing from the file are filled in from DEFAULT_CONFIG. Without
        a path the defaults are returned as they are.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            ValueError: If the file does not hold a mapping
        """
        if config_path is None:
            return cls.defaults()

        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        # Substitute environment variables recursively
        config_data = cls._substitute_env_vars_recursive(config_data)

        return _deep_merge(cls.defaults(), config_data)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            MigrationError: ConfigurationError if validation fails
        """
        cls._validate_required_field(config, 'migration.source_directory')
        cls._validate_required_field(config, 'migration.target_directory')
        cls._validate_required_field(config, 'migration.language')

        language = get_nested(config, 'migration.language')
        if not isinstance(language, str) or not LANGUAGE_PATTERN.match(language):
            raise MigrationError.configuration(
                f"migration.language must be a language code like 'de', 'en' or 'pt_BR': {language!r}"
            )

        dialects = [d.value for d in Dialect]
        for field in ('migration.source_dialect', 'migration.target_dialect'):
            value = get_nested(config, field)
            if value not in dialects:
                raise MigrationError.configuration(f"{field} must be one of: {dialects}")

        for field in (
            'migration.clean_target',
            'migration.dry_run',
            'migration.verify_attachments',
            'migration.progress_bars',
            'engine.cache_enabled',
        ):
            if not isinstance(get_nested(config, field), bool):
                raise MigrationError.configuration(f"{field} must be a boolean")

        cls._validate_required_field(config, 'engine.work_directory')

        parser_override = get_nested(config, 'engine.parser_override')
        if parser_override is not None:
            if not isinstance(parser_override, str) or not PARSER_CLASS_PATTERN.match(parser_override):
                raise MigrationError.configuration(
                    f"engine.parser_override must be a class path like 'package.module.Class': {parser_override!r}"
                )

        level = get_nested(config, 'logging.level')
        if level is not None and str(level).upper() not in LOG_LEVELS:
            raise MigrationError.configuration(f"logging.level must be one of: {list(LOG_LEVELS)}")

    # CLI attribute -> (config path, value to store; None stores the argument itself)
    ARG_MAPPING = (
        ('source_dir', 'migration.source_directory', None),
        ('target_dir', 'migration.target_directory', None),
        ('language', 'migration.language', None),
        ('source_dialect', 'migration.source_dialect', None),
        ('target_dialect', 'migration.target_dialect', None),
        ('clean_target', 'migration.clean_target', True),
        ('dry_run', 'migration.dry_run', True),
        ('no_verify', 'migration.verify_attachments', False),
        ('report', 'migration.report_path', None),
        ('work_dir', 'engine.work_directory', None),
        ('parser', 'engine.parser_override', None),
        ('log_file', 'logging.file', None),
        ('verbose', 'logging.verbosity', None),
    )

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values; unset
        arguments and flags that were not given leave the file's value alone.

        Args:
            config: Base configuration dictionary
            args: Parsed CLI arguments (see migrate.create_argument_parser)

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for attribute, path, fixed_value in cls.ARG_MAPPING:
            given = getattr(args, attribute, None)
            if not given:
                continue

            section, key = path.split('.')
            if not isinstance(merged.get(section), dict):
                merged[section] = {}
            merged[section][key] = given if fixed_value is None else fixed_value

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config, field)
        if value is None or value == '':
            raise MigrationError.configuration(f"Missing required configuration: {field}")

        # Check for unsubstituted environment variables
        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise MigrationError.configuration(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "engine.work_directory")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
