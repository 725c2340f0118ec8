import os
import logging
from pathlib import Path
from typing import Optional

try:
    from dotenv import load_dotenv
except ImportError:
    logging.warning("python-dotenv not available; using environment variables only")
else:
    loaded = load_dotenv()
    if not loaded and Path(".env").exists():
        raise RuntimeError(".env file present but failed to load")

DEFAULT_USER_AGENT = "WebLearnBot/1.0 (+learning assistant)"

UNLIMITED_KEYWORDS = frozenset({"0", "-1", "unlimited", "infinity", "inf", "none"})
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_int(value, fallback: int) -> int:
    """Parse a non-negative integer, flooring floats and clamping negatives to 0."""
    if _is_blank(value) or isinstance(value, bool):
        return fallback
    try:
        num = float(value)
    except (TypeError, ValueError):
        return fallback
    if num != num or num in (float("inf"), float("-inf")):
        return fallback
    return max(0, int(num))


def parse_limit(value, fallback: Optional[int]) -> Optional[int]:
    """Parse a bound where 0, negatives and the unlimited keywords mean no bound.

    Returns None for "unbounded". Blank or unparsable input yields `fallback`.
    """
    if _is_blank(value) or isinstance(value, bool):
        return fallback
    normalized = str(value).strip().lower()
    if normalized in UNLIMITED_KEYWORDS:
        return None
    try:
        num = float(normalized)
    except ValueError:
        return fallback
    if num != num:
        return fallback
    if num <= 0 or num == float("inf"):
        return None
    return int(num)


def parse_bool(value, fallback: bool) -> bool:
    if _is_blank(value):
        return fallback
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return fallback


def get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw


def get_optional_str_env(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip()


def get_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return max(0, int(float(raw)))
    except (ValueError, OverflowError):
        logging.exception("Invalid %s: %r", name, raw)
        return default


def get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logging.exception("Invalid %s: %r", name, raw)
        return default


def get_bool_env(name: str, default: bool) -> bool:
    return parse_bool(os.getenv(name), default)


def get_limit_env(name: str, default: Optional[int]) -> Optional[int]:
    """Read a bound from the environment; see `parse_limit` for the sentinels."""
    return parse_limit(os.getenv(name), default)
