"""Environment-driven settings.

The CLI loads a local ``.env`` (via ``python-dotenv``) before calling
:func:`load_settings`, so values can come from either the process environment
or that file. Malformed values fall back to the defaults instead of failing.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

SETTLEMENT_CURRENCY = "CHF"

DEFAULT_ROLLING_WINDOW_DAYS = 30
DEFAULT_PAGE_SIZE = 20

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class Settings:
    log_level: str = "INFO"
    rolling_window_days: int = DEFAULT_ROLLING_WINDOW_DAYS
    page_size: int = DEFAULT_PAGE_SIZE
    hide_from_charts: bool = True


def _positive_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


def _flag(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``EXPENSE_TRACKER_*`` variables."""

    env = os.environ if environ is None else environ
    return Settings(
        log_level=(env.get("EXPENSE_TRACKER_LOG_LEVEL") or "INFO").strip().upper(),
        rolling_window_days=_positive_int(
            env.get("EXPENSE_TRACKER_ROLLING_WINDOW_DAYS"), DEFAULT_ROLLING_WINDOW_DAYS
        ),
        page_size=_positive_int(env.get("EXPENSE_TRACKER_PAGE_SIZE"), DEFAULT_PAGE_SIZE),
        hide_from_charts=_flag(env.get("EXPENSE_TRACKER_HIDE_FROM_CHARTS"), True),
    )


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_ROLLING_WINDOW_DAYS",
    "SETTLEMENT_CURRENCY",
    "Settings",
    "load_settings",
]
