"""Configuration management and validation."""

import yaml
import json
from pathlib import Path
from typing import Dict, Any, Union

from pangrowth.core.types import ValidationResult
from pangrowth.core.exceptions import ConfigurationError


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def create_default_configuration() -> Dict[str, Any]:
    """
    Create default configuration.

    Returns:
        Default configuration dictionary
    """
    return {
        "growth": {
            "coverage": "1",
            "quorum": "0",
            "add_hist": False,
            "add_alpha": True
        },
        "resources": {
            "threads": None
        },
        "logging": {
            "level": "INFO",
            "file": None
        }
    }


def load_configuration(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load and validate configuration from file.

    Args:
        config_path: Path to configuration file (YAML or JSON)

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigurationError: Invalid configuration
        FileNotFoundError: Configuration file not found
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            if config_path.suffix.lower() in ['.yaml', '.yml']:
                config = yaml.safe_load(f)
            elif config_path.suffix.lower() == '.json':
                config = json.load(f)
            else:
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}", config_path
                )

    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Error parsing configuration file: {e}", config_path)

    if config is None:
        config = {}

    validation_result = validate_configuration_schema(config)
    if not validation_result.is_valid:
        raise ConfigurationError(
            f"Configuration validation failed: {validation_result.errors}", config_path
        )

    return merge_configurations(create_default_configuration(), config)


def validate_configuration_schema(config: Dict[str, Any]) -> ValidationResult:
    """
    Check configuration structure and value types.

    Args:
        config: Configuration dictionary

    Returns:
        ValidationResult with validation status
    """
    errors = []
    warnings = []

    if not isinstance(config, dict):
        return ValidationResult(is_valid=False, errors=["Configuration must be a dictionary"])

    for section in ["growth", "resources", "logging"]:
        if section not in config:
            warnings.append(f"Missing '{section}' configuration - using defaults")
        elif not isinstance(config[section], dict):
            errors.append(f"'{section}' must be a dictionary")

    growth = config.get("growth", {})
    if isinstance(growth, dict):
        for key in ["coverage", "quorum"]:
            if key in growth and not isinstance(growth[key], (str, int, float)):
                errors.append(f"'growth.{key}' must be a comma-separated string or a number")
        for key in ["add_hist", "add_alpha"]:
            if key in growth and not isinstance(growth[key], bool):
                errors.append(f"'growth.{key}' must be a boolean")

    resources = config.get("resources", {})
    if isinstance(resources, dict):
        threads = resources.get("threads")
        if threads is not None and (
            isinstance(threads, bool) or not isinstance(threads, int) or threads < 1
        ):
            errors.append("'resources.threads' must be a positive integer or null")

    logging_config = config.get("logging", {})
    if isinstance(logging_config, dict):
        level = logging_config.get("level", "INFO")
        if str(level).upper() not in LOG_LEVELS:
            errors.append(f"'logging.level' must be one of {LOG_LEVELS}, got {level}")

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
        details={"validation": "basic_checks_completed"}
    )


def merge_configurations(
    base_config: Dict[str, Any],
    override_config: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Merge configuration dictionaries with validation.

    Args:
        base_config: Base configuration
        override_config: Override parameters

    Returns:
        Merged configuration
    """
    def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    merged = merge_dicts(base_config, override_config)

    validation_result = validate_configuration_schema(merged)
    if not validation_result.is_valid:
        raise ConfigurationError(
            f"Merged configuration validation failed: {validation_result.errors}"
        )

    return merged


def save_configuration(config: Dict[str, Any], output_path: Union[str, Path]) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration dictionary
        output_path: Output file path

    Raises:
        ConfigurationError: Error saving configuration
    """
    output_path = Path(output_path)

    try:
        with open(output_path, 'w') as f:
            if output_path.suffix.lower() in ['.yaml', '.yml']:
                yaml.dump(config, f, default_flow_style=False, indent=2)
            elif output_path.suffix.lower() == '.json':
                json.dump(config, f, indent=2)
            else:
                raise ConfigurationError(
                    f"Unsupported output format: {output_path.suffix}", output_path
                )

    except (yaml.YAMLError, TypeError, IOError) as e:
        raise ConfigurationError(f"Error saving configuration: {e}", output_path)
