"""Startup-time helpers for safe config logging."""

from momopay.common.config import CommonSettings
from momopay.common.logging import logger


_SECRET_MARKERS = ("key", "secret", "password", "token")


def _safe_value(name: str, value) -> str:
    """Return a printable setting value with redaction for secret-like names."""

    if value is None or value == "":
        return "<unset>"
    if any(marker in name.lower() for marker in _SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def startup_config_snapshot(config: CommonSettings, keys: list[str]) -> dict[str, str]:
    """Build the redacted view of selected settings fields."""

    snapshot = {"service": config.service_name}
    for key in keys:
        snapshot[key] = _safe_value(key, getattr(config, key, None))
    return snapshot


def log_startup_config(config: CommonSettings, keys: list[str]) -> None:
    """Log selected startup config keys for quick troubleshooting."""

    logger.info("startup_config=%s", startup_config_snapshot(config, keys))
