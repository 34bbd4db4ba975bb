"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("[settings] Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("[settings] Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_flag(name: str, default: bool = False) -> bool:
    return os.environ.get(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AppConfig:
    """Application configuration container."""
    # Syncope connection
    syncope_endpoint: str
    syncope_site_realm: str
    syncope_username: str = "admin"
    syncope_password: str = ""
    syncope_domain: str = "Master"

    # Emergency switch: every mapper hook becomes a no-op
    syncope_client_disabled: bool = False

    # Durable state (realm and role UUID caches); empty means in-memory
    state_file: str = ""

    # Logging
    log_level: str = "INFO"

    # Flask
    secret_key: str = ""

    @property
    def state_path(self) -> Path | None:
        return Path(self.state_file) if self.state_file else None


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets.

    Raises:
        RuntimeError: If a required setting is missing while sync is enabled
    """
    disabled = _env_flag("SYNCOPE_CLIENT_DISABLED")

    endpoint = os.environ.get("SYNCOPE_ENDPOINT", "").strip()
    site_realm = os.environ.get("SYNCOPE_SITE_REALM", "").strip()
    if not disabled:
        missing = [
            var for var, value in (("SYNCOPE_ENDPOINT", endpoint), ("SYNCOPE_SITE_REALM", site_realm))
            if not value
        ]
        if missing:
            raise RuntimeError(f"Environment variable(s) {', '.join(missing)} required when Syncope sync is enabled.")

    password = _load_secret_from_file("syncope_password", "SYNCOPE_PASSWORD") or ""
    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY") or os.urandom(32).hex()

    log_level = os.environ.get("LOG_LEVEL", "INFO").strip().upper()

    cfg = AppConfig(
        syncope_endpoint=endpoint,
        syncope_site_realm=site_realm,
        syncope_username=os.environ.get("SYNCOPE_USERNAME", "admin"),
        syncope_password=password,
        syncope_domain=os.environ.get("SYNCOPE_DOMAIN", "Master"),
        syncope_client_disabled=disabled,
        state_file=os.environ.get("SYNCOPE_STATE_FILE", "").strip(),
        log_level=log_level,
        secret_key=secret_key,
    )

    logger.info(
        "[settings] endpoint=%s; domain=%s; site_realm=%s; user=%s; password=%s",
        cfg.syncope_endpoint, cfg.syncope_domain, cfg.syncope_site_realm,
        cfg.syncope_username, "***" if cfg.syncope_password else "EMPTY",
    )
    if disabled:
        logger.warning("[settings] SYNCOPE_CLIENT_DISABLED is set: remote synchronisation is off")

    return cfg


def configure_logging(cfg: AppConfig) -> None:
    """Configure root logging from the settings."""
    level = getattr(logging, cfg.log_level, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
