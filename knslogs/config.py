"""
Runtime Configuration
Environment-driven settings for knslogs.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_REQUEST_TIMEOUT = 45  # seconds
DEFAULT_LOG_LEVEL = "WARNING"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Settings resolved once at startup and shared read-only for the run."""

    kube_context: Optional[str] = None
    kubeconfig: Optional[str] = None
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    color: bool = True


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def load_settings(dotenv: bool = True) -> Settings:
    """
    Build Settings from the environment.

    Args:
        dotenv: Load the nearest .env file from the working directory first (default: True)

    Returns:
        Frozen Settings instance
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    no_color = "NO_COLOR" in os.environ or _env_flag("KNSLOGS_NO_COLOR")

    return Settings(
        kube_context=os.getenv("KNSLOGS_KUBE_CONTEXT") or None,
        kubeconfig=os.getenv("KNSLOGS_KUBECONFIG") or None,
        request_timeout=_env_int("KNSLOGS_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        log_level=os.getenv("KNSLOGS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        color=not no_color,
    )
