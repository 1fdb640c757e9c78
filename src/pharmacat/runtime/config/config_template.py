"""Load ``config.yaml`` with ``${VAR}`` placeholders filled from the environment."""

import os
import re
from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from src.pharmacat.runtime.config.config_data import ConfigData

# ${NAME}, ${NAME:-fallback} or ${NAME:?message}
_PLACEHOLDER = re.compile(r"\$\{(?P<name>[^}:]+)(?:(?P<op>:[-?])(?P<arg>[^}]*))?\}")


def _resolve(match: re.Match[str]) -> str:
    name, op, arg = match.group("name"), match.group("op"), match.group("arg")
    value = os.getenv(name)
    if value is not None:
        return value
    if op == ":-":
        return arg
    if op == ":?":
        raise ValueError(f"Required environment variable {name}: {arg}")
    raise ValueError(f"Required environment variable {name} not set")


def substitute_env_vars(text: str) -> str:
    """Replace every placeholder in ``text``.

    ``${NAME}`` must be set, ``${NAME:-fallback}`` falls back to the given
    text, and ``${NAME:?message}`` fails with ``message`` when unset.

    Raises:
        ValueError: if a required variable is missing.
    """
    return _PLACEHOLDER.sub(_resolve, text)


def _apply_environment_prefix(environment: str) -> None:
    """Copy ``PRODUCTION_STORE_BACKEND`` to ``STORE_BACKEND`` when running in production."""
    prefix = f"{environment.upper()}_"
    for name, value in list(os.environ.items()):
        if name.startswith(prefix) and len(name) > len(prefix):
            os.environ[name[len(prefix):]] = value
            logger.debug("Using {} for {}", name, name[len(prefix):])


def load_templated_yaml(file_path: Path) -> ConfigData:
    """Parse the ``config:`` document of ``file_path`` into ``ConfigData``.

    Raises:
        ValueError: on a missing required variable, malformed YAML or values
            the config models reject.
        FileNotFoundError: if ``file_path`` does not exist.
    """
    raw = Path(file_path).read_text(encoding="utf-8")

    environment = os.getenv("APP_ENVIRONMENT", "development")
    logger.info("Loading {} for the {} environment", file_path, environment)
    _apply_environment_prefix(environment)

    try:
        document = yaml.safe_load(substitute_env_vars(raw))
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e
    if not isinstance(document, dict):
        raise ValueError(f"{file_path} does not contain a YAML mapping")

    try:
        return ConfigData.model_validate(document.get("config") or {})
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def load_config(file_path: Path) -> ConfigData:
    """Load ``file_path`` if it exists, otherwise fall back to model defaults."""
    if not file_path.exists():
        logger.warning("Configuration file {} not found; using defaults", file_path)
        return ConfigData()
    return load_templated_yaml(file_path)
