"""
Configuration utilities for the Guardian SDK.
Reads ``GUARDIAN_*`` environment variables with type casting.
"""

import os
from typing import Any, Callable, List, Optional


ENV_PREFIX = "GUARDIAN_"
TRUE_VALUES = ('true', '1', 'yes', 'on')


def env_key(key: str, env_prefix: str = ENV_PREFIX) -> str:
    return f"{env_prefix}{key.upper()}"


def get_config_value(key: str, default: Any = None,
                     cast_type: Optional[Callable[[str], Any]] = None,
                     env_prefix: str = ENV_PREFIX) -> Any:
    """
    Value of ``GUARDIAN_<KEY>``, or ``default`` when unset.
    A value ``cast_type`` rejects also falls back to ``default``.
    """
    raw = os.environ.get(env_key(key, env_prefix))
    if raw is None:
        return default
    if cast_type is None:
        return raw

    try:
        return cast_type(raw)
    except (ValueError, TypeError):
        return default


def get_bool_config(key: str, default: bool = False,
                    env_prefix: str = ENV_PREFIX) -> bool:
    """Boolean value; ``true``, ``1``, ``yes`` and ``on`` are truthy."""
    return get_config_value(key, default, lambda raw: raw.strip().lower() in TRUE_VALUES, env_prefix)


def get_float_config(key: str, default: float = 0.0,
                     env_prefix: str = ENV_PREFIX) -> float:
    return get_config_value(key, default, float, env_prefix)


def get_list_config(key: str, default: Optional[List[str]] = None,
                    env_prefix: str = ENV_PREFIX) -> List[str]:
    """Comma-separated list value, empty items dropped."""
    def split(raw: str) -> List[str]:
        return [item.strip() for item in raw.split(',') if item.strip()]

    return get_config_value(key, [] if default is None else default, split, env_prefix)
