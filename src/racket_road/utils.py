"""Environment-driven settings and logging setup."""

from __future__ import annotations

import logging
import os
from typing import List, Optional

ENV_PREFIX = "RACKET_ROAD_"

DEFAULT_EVALUATORS = "local"
DEFAULT_LLM_URL = "http://localhost:11434/v1/chat/completions"
DEFAULT_LLM_MODEL = "qwen2.5:1.5b"
DEFAULT_COMPILER_URL = "https://emkc.org/api/v2/piston/execute"
DEFAULT_HTTP_TIMEOUT = 30.0

_TRUTHY = ("1", "true", "yes", "on")


def env_value(name: str, default: Optional[str] = None) -> Optional[str]:
    """Read RACKET_ROAD_<name>, treating empty values as unset."""
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or not value.strip():
        return default
    return value.strip()


def debug_enabled() -> bool:
    return (env_value("DEBUG") or "").lower() in _TRUTHY


def evaluator_names() -> List[str]:
    raw = env_value("EVALUATORS", DEFAULT_EVALUATORS) or DEFAULT_EVALUATORS
    return [name.strip().lower() for name in raw.split(",") if name.strip()]


def http_timeout() -> float:
    raw = env_value("HTTP_TIMEOUT")
    if raw is None:
        return DEFAULT_HTTP_TIMEOUT

    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}HTTP_TIMEOUT must be a number, got '{raw}'") from None

    if timeout <= 0:
        raise ValueError(f"{ENV_PREFIX}HTTP_TIMEOUT must be positive, got '{raw}'")
    return timeout


def llm_url() -> str:
    return env_value("LLM_URL", DEFAULT_LLM_URL) or DEFAULT_LLM_URL


def llm_model() -> str:
    return env_value("LLM_MODEL", DEFAULT_LLM_MODEL) or DEFAULT_LLM_MODEL


def llm_api_key() -> Optional[str]:
    return env_value("LLM_API_KEY")


def compiler_url() -> str:
    return env_value("COMPILER_URL", DEFAULT_COMPILER_URL) or DEFAULT_COMPILER_URL


def compiler_version() -> str:
    return env_value("COMPILER_VERSION", "*") or "*"


def configure_logging(debug: Optional[bool] = None) -> None:
    """One-time logging setup for the command line and the shell."""
    if debug is None:
        debug = debug_enabled()

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
