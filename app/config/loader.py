"""Load config.yaml and the process environment into validated settings."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

DEFAULT_CONFIG_LOCATIONS = (
    Path("config.yaml"),
    Path("config") / "config.yaml",
)

_TYPE_ERRORS = {
    "string_type": "string",
    "int_type": "integer",
    "int_parsing": "integer",
    "float_type": "number",
    "float_parsing": "number",
    "bool_type": "boolean",
    "bool_parsing": "boolean",
}


def load_config(config_path: Optional[Path] = None) -> tuple[AppConfig, EnvironmentConfig]:
    """Build the service settings.

    An explicit ``config_path`` must exist. Without one, config.yaml and then
    config/config.yaml are tried; if neither exists the built-in defaults
    apply. Secrets and deployment values (DATABASE_URL, LOG_LEVEL,
    ENVIRONMENT) always come from the environment.

    Raises:
        ConfigurationError: On a missing explicit file, unreadable YAML, or
            values that fail validation
    """
    config_file = _find_config_file(config_path)
    raw = _read_yaml(config_file) if config_file is not None else {}

    warnings = check_for_warnings(raw)
    if warnings:
        emit_warnings(warnings)

    app_config = _validate(raw)

    try:
        env_config = load_environment_config()
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Could not read settings from the environment: {e}",
            suggestions=["Copy .env.example to .env and adjust the values"],
        ) from e

    return app_config, env_config


def _find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Check the path passed to --config ({config_path})",
                    "Omit --config to run with built-in defaults",
                ],
            )
        return config_path

    return next((path for path in DEFAULT_CONFIG_LOCATIONS if path.exists()), None)


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    """Parse a YAML file into a mapping. An empty file counts as ``{}``."""
    try:
        content = yaml.safe_load(config_file.read_text())
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Configuration file not found: {config_file}",
            suggestions=["Copy config.example.yaml to config.yaml"],
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"{config_file} is not valid YAML: {e}",
            suggestions=["Indent with spaces, not tabs"],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read {config_file}: {e}",
            suggestions=["Check file permissions"],
        ) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(
            f"{config_file} must contain a mapping at the top level",
            suggestions=["Start from config.example.yaml"],
        )
    return content


def _validate(raw: Dict[str, Any]) -> AppConfig:
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=_describe_errors(e),
            suggestions=["Compare your file with config.example.yaml"],
        ) from e


def _describe_errors(exc: ValidationError) -> List[str]:
    """Turn pydantic errors into one readable line per offending field."""
    lines = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"])
        kind = error["type"]
        if kind == "missing":
            lines.append(f"Missing required field: {field}")
        elif kind in _TYPE_ERRORS:
            lines.append(
                f"Invalid type for '{field}': expected {_TYPE_ERRORS[kind]}, got {error.get('input')!r}"
            )
        else:
            lines.append(f"{field}: {error['msg']}")
    return lines


def validate_config_file(config_path: Path) -> bool:
    """Check a config file without touching the environment (``--check-config``).

    Prints the verdict and returns whether the file is valid.
    """
    try:
        _validate(_read_yaml(config_path))
    except ConfigurationError as e:
        print(f"Configuration validation failed for {config_path}:\n{e}")
        return False

    print(f"Configuration file {config_path} is valid")
    return True
