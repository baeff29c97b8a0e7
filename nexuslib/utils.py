import logging
import re
from datetime import datetime, timezone

SENSITIVE_KEYS = ("secret", "password", "token", "api_key", "apikey", "authorization")

LEVEL_COLORS = {
    "DEBUG": "\033[94m",
    "INFO": "\033[92m",
    "WARNING": "\033[93m",
    "ERROR": "\033[91m",
    "CRITICAL": "\033[95m",
}
RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name"""

    def format(self, record):
        original = record.levelname
        color = LEVEL_COLORS.get(original)
        if color:
            record.levelname = f"{color}{original}{RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers see the plain level name
            record.levelname = original


class FilterRemoveDateFromWerkzeugLogs(logging.Filter):
    """'127.0.0.1 - - [18/Oct/2026 10:00:00] "GET ..."' -> '127.0.0.1 - "GET ..."'"""

    pattern = re.compile(r' - - \[[^\]]+\] "')

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.pattern.sub(' - "', record.msg)
        return True


def _mask(value):
    if isinstance(value, str) and len(value) > 4:
        return f"{value[:2]}***{value[-2:]}"
    return "***" if value else value


def sanitize_sensitive_data(data, sensitive_keys=SENSITIVE_KEYS):
    """
    Copy of `data` with credential values masked, for logs and the settings
    endpoint. Keys match when they contain any of `sensitive_keys`.
    """
    if isinstance(data, dict):
        return {
            key: _mask(value)
            if any(s in str(key).lower() for s in sensitive_keys)
            else sanitize_sensitive_data(value, sensitive_keys)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [sanitize_sensitive_data(item, sensitive_keys) for item in data]
    return data


def now_utc():
    return datetime.now(timezone.utc)


def ensure_utc(value):
    """
    Aware UTC datetime from a datetime or ISO 8601 string. Naive values are
    taken as UTC (SQLite drops tzinfo). Anything unparseable gives None.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_datetime(value):
    """ISO representation in UTC, or None"""
    value = ensure_utc(value)
    return value.isoformat() if value else None
