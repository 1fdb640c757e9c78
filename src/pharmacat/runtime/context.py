"""Process-wide configuration, overridable per context.

``config.yaml`` (or the file named by ``PHARMACAT_CONFIG``) is read once at
import, after ``.env`` has been loaded into the environment. Code reads it back
through ``get_config()``; tests and the CLI narrow it with ``with_context()``.
"""

import os
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from dotenv.main import load_dotenv
from pydantic import BaseModel

from src.pharmacat.runtime.config.config_data import ConfigData
from src.pharmacat.runtime.config.config_template import load_config


@dataclass
class AppContext:
    config: ConfigData


load_dotenv()
_startup_context = AppContext(
    config=load_config(Path(os.getenv("PHARMACAT_CONFIG", "config.yaml")))
)

_current: ContextVar[AppContext] = ContextVar("pharmacat_context", default=_startup_context)


def get_context() -> AppContext:
    return _current.get()


def set_context(context: AppContext) -> Token[AppContext]:
    return _current.set(context)


def _explicit_fields(model: BaseModel) -> dict[str, Any]:
    """Fields the caller actually set on ``model``, nested models included.

    A nested model counts as set when any of its own fields was set, or when
    it was assigned as a whole.
    """
    explicit: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, BaseModel):
            nested = _explicit_fields(value)
            if nested:
                explicit[name] = nested
            elif name in model.model_fields_set:
                explicit[name] = value.model_dump()
        elif name in model.model_fields_set:
            explicit[name] = value
    return explicit


def _deep_update(target: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    merged = dict(target)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_update(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_config(base: ConfigData, override: ConfigData) -> ConfigData:
    """``base`` with the explicitly set fields of ``override`` laid on top."""
    merged = _deep_update(base.model_dump(), _explicit_fields(override))
    return ConfigData.model_validate(merged)


@contextmanager
def with_context(config_override: ConfigData | None = None):
    """Run a block under a configuration that differs only in the fields set on ``config_override``.

    Example:
        override = ConfigData.model_validate({"storage": {"backend": "embedded"}})
        with with_context(override):
            assert get_config().storage.backend == "embedded"
    """
    if config_override is None:
        yield
        return
    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData or None, got {type(config_override)}"
        )

    token = set_context(
        replace(get_context(), config=merge_config(get_config(), config_override))
    )
    try:
        yield
    finally:
        _current.reset(token)


def get_config() -> ConfigData:
    return get_context().config
