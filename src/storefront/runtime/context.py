"""Process-wide configuration held in a context variable."""

import os
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.config.config_template import load_templated_yaml


@dataclass
class AppContext:
    config: ConfigData


_app_context: ContextVar[AppContext] = ContextVar(
    "app_context",
    default=AppContext(
        config=load_templated_yaml(Path(os.getenv("APP_CONFIG_FILE", "config.yaml")))
    ),
)


def get_context() -> AppContext:
    return _app_context.get()


def get_config() -> ConfigData:
    """Return the configuration active in the current context."""
    return _app_context.get().config


def _explicit_values(model: BaseModel) -> dict[str, Any]:
    """Dump only the fields that were set on ``model``, descending into sections."""
    values: dict[str, Any] = {}
    for name in type(model).model_fields:
        value = getattr(model, name)
        if isinstance(value, BaseModel):
            nested = _explicit_values(value)
            if nested:
                values[name] = nested
            elif name in model.model_fields_set:
                values[name] = value.model_dump()
        elif name in model.model_fields_set:
            values[name] = value
    return values


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@contextmanager
def with_context(config_override: ConfigData | None = None):
    """Temporarily layer ``config_override`` over the current configuration.

    Only fields explicitly set on the override replace current values; every
    other section and field is inherited.

    Example:
        override = ConfigData()
        override.stripe.secret_key = "sk_test_123"
        with with_context(override):
            assert get_config().stripe.secret_key == "sk_test_123"
    """
    if config_override is None:
        yield
        return

    if not isinstance(config_override, ConfigData):
        raise ValueError(
            f"config_override must be ConfigData, or None, got {type(config_override)}"
        )

    merged = ConfigData.model_validate(
        _deep_merge(get_config().model_dump(), _explicit_values(config_override))
    )
    token = _app_context.set(replace(get_context(), config=merged))
    try:
        yield
    finally:
        _app_context.reset(token)
