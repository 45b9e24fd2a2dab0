"""Structured logging for design-sync actions.

Every record carries ``feature="design_sync"`` and an ``action`` name plus
arbitrary JSON-serializable fields (operation_id, component_count,
duration_ms, status, ...). Values of credential-like keys are redacted
before they reach any sink.
"""

from loguru import logger

FEATURE_NAME = "design_sync"
REDACTED = "[REDACTED]"
SENSITIVE_KEYS = ("token", "secret", "password", "api_key", "authorization")


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def redact_fields(fields: dict[str, object]) -> dict[str, object]:
    """Return a copy of ``fields`` with sensitive values replaced.

    Nested dictionaries are redacted recursively.
    """
    redacted: dict[str, object] = {}
    for key, value in fields.items():
        if _is_sensitive(key):
            redacted[key] = REDACTED
        elif isinstance(value, dict):
            redacted[key] = redact_fields(value)
        else:
            redacted[key] = value
    return redacted


def log_sync_event(action: str, level: str = "info", **fields: object) -> None:
    """Emit one structured design-sync log record.

    Args:
        action: Dotted action name (e.g. "sync.execute", "undo")
        level: Loguru level name in lower case
        **fields: Extra structured fields bound to the record
    """
    payload = redact_fields(fields)
    bound = logger.bind(feature=FEATURE_NAME, action=action, **payload)
    getattr(bound, level)(action)
