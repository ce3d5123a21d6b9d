"""
Slow statement threshold configuration.
"""

from __future__ import annotations

import os

SLOW_QUERY_ENV_VAR = "RELFORGE_SLOW_QUERY_MS"


def resolve_slow_query_ms(*, default: int = 100, override: int | None = None) -> int:
    """
    Resolve the slow statement threshold.

    An explicit ``override`` wins, then the ``RELFORGE_SLOW_QUERY_MS``
    environment variable, then ``default``.
    """
    if override is not None:
        if override < 0:
            raise ValueError("Slow query threshold must be non-negative.")
        return override
    raw = os.getenv(SLOW_QUERY_ENV_VAR)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value for {SLOW_QUERY_ENV_VAR}: {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{SLOW_QUERY_ENV_VAR} must be non-negative.")
    return value
