from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 30.0

_BASE_URL_ENV = "BACKEND_URL"
_TOKEN_ENV = "BACKEND_TOKEN"
_TIMEOUT_ENV = "BACKEND_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT


def _read_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _clean_token(value: Optional[str]) -> Optional[str]:
    # tokens copied out of browser storage arrive JSON-quoted
    if value is None:
        return None
    candidate = value.replace('"', "").strip()
    return candidate or None


def load_config(
    base_url: Optional[str] = None,
    token: Optional[str] = None,
    timeout: Optional[float] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    return CLIConfig(
        base_url=url.rstrip("/"),
        token=_clean_token(token if token is not None else os.getenv(_TOKEN_ENV)),
        timeout=timeout,
    )
