"""Settings for reaching the resource directory and bounding sessions.

Values come from keyword arguments or from the environment:

    RESOURCEBRIDGE_API_URL          control-plane base URL
    RESOURCEBRIDGE_TOKEN            bearer token for directory lookups
    RESOURCEBRIDGE_HTTP_TIMEOUT     per-request timeout, seconds
    RESOURCEBRIDGE_SESSION_TIMEOUT  console/import timeout, seconds (unset = none)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_API_BASE_URL = "https://api.resourcebridge.dev"
DEFAULT_HTTP_TIMEOUT = 10.0


@dataclass(frozen=True, slots=True)
class BridgeSettings:
    api_base_url: str = DEFAULT_API_BASE_URL
    token: str = ""
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    session_timeout: Optional[float] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BridgeSettings":
        env = os.environ if environ is None else environ
        return cls(
            api_base_url=env.get("RESOURCEBRIDGE_API_URL") or DEFAULT_API_BASE_URL,
            token=env.get("RESOURCEBRIDGE_TOKEN", ""),
            http_timeout=_float(env, "RESOURCEBRIDGE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
            session_timeout=_float(env, "RESOURCEBRIDGE_SESSION_TIMEOUT", None),
        )


def _float(env: Mapping[str, str], key: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number of seconds, got {raw!r}") from None
