"""Audit logging utilities for Syncope synchronisation events."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "sync-events.jsonl"
_secret_path_str = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")


def _get_signing_key() -> bytes:
    """Get the audit signing key (file first, then environment)."""
    if _secret_path_str:
        path = Path(_secret_path_str)
        if path.exists():
            try:
                return path.read_text(encoding="utf-8").strip().encode("utf-8")
            except OSError:
                pass
    return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")


EventType = Literal[
    "role_save", "role_delete",
    "account_create", "account_update", "account_delete", "account_login",
    "global_roles_set",
]


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_sync_event(
    event_type: EventType,
    subject: str,
    *,
    action: str = "",
    operator: str = "system",
    realm: str = "",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a synchronisation event to the audit trail.

    Args:
        event_type: Lifecycle event that triggered the sync
        subject: Account name or role id affected
        action: Remote action decided by the mapper (created, pushed, ...)
        operator: Who triggered the event
        realm: Syncope site realm
        details: Additional context
        success: Whether the sync succeeded
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "realm": realm,
        "subject": subject,
        "action": action,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_sync_event(event_type: EventType, subject: str, **kwargs: Any) -> bool:
    """Log a sync event, never raising.

    Audit failures must not break synchronisation; they are logged as
    warnings instead.

    Returns:
        True if event was logged successfully, False if logging failed
    """
    try:
        log_sync_event(event_type, subject, **kwargs)
        return True
    except Exception as e:
        logger.warning("[audit] Failed to log %s event for %s: %s", event_type, subject, e)
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
                stored_sig = event.pop("signature", "")
                if not stored_sig:
                    continue
                computed_sig = _sign_event(event)
                if hmac.compare_digest(stored_sig, computed_sig):
                    valid += 1
            except (json.JSONDecodeError, KeyError):
                continue

    return total, valid


if __name__ == "__main__":
    import sys
    total, valid = verify_audit_log()
    print(f"Audit log: {total} events, {valid} valid signatures")
    sys.exit(0 if total == valid else 1)
