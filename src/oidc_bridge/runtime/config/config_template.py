"""Loading of config.yaml with environment variable substitution."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic_core import ValidationError

from oidc_bridge.runtime.config.config_data import ConfigData

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variable placeholders in text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message
    """

    def replacer(match: re.Match) -> str:
        var_expr = match.group(1)

        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)

        if ":?" in var_expr:
            var_name, error_msg = var_expr.split(":?", 1)
            value = os.getenv(var_name)
            if value is None:
                raise ValueError(
                    f"Required environment variable {var_name}: {error_msg}"
                )
            return value

        value = os.getenv(var_expr)
        if value is None:
            raise ValueError(f"Required environment variable {var_expr} not set")
        return value

    return _PLACEHOLDER.sub(replacer, text)


def load_templated_yaml(file_path: Path) -> ConfigData:
    """
    Load config.yaml with environment variable substitution.

    A missing file yields the default configuration.

    Raises:
        ValueError: If required environment variables are missing, the YAML is
            malformed or the content does not validate.
    """
    if not file_path.exists():
        logger.warning("Configuration file {} not found, using defaults", file_path)
        return ConfigData()

    logger.info("Loading configuration from {}", file_path)
    content = substitute_env_vars(file_path.read_text(encoding="utf-8"))

    try:
        loaded = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e

    if not isinstance(loaded, dict):
        raise ValueError("Configuration file must contain a mapping")

    try:
        return ConfigData.model_validate(loaded.get("config") or {})
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
