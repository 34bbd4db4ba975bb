"""Flask application factory and bootstrap.

This module provides the create_app() factory function wiring the
configuration, the Syncope directory client, the local store and the
provisioning service into a Flask application.
"""
from __future__ import annotations
from typing import Optional

from flask import Flask

from syncope_sync.config import AppConfig, configure_logging, load_settings
from syncope_sync.core.accounts import SUPERUSER_ID, Account, AccountStore
from syncope_sync.core.provisioning_service import ProvisioningService
from syncope_sync.core.state import JsonFileState, MemoryState
from syncope_sync.core.syncope import DirectoryClient


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, *, directory: Optional[DirectoryClient] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings (loaded from the environment when omitted)
        directory: Pre-built directory client (tests inject fakes here)
    """
    cfg = cfg or load_settings()
    configure_logging(cfg)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["SECRET_KEY"] = cfg.secret_key

    state = JsonFileState(cfg.state_path) if cfg.state_path else MemoryState()
    if directory is None:
        directory = DirectoryClient.from_settings(cfg, state)

    store = AccountStore()
    # The superuser exists from the start and is never mirrored in Syncope.
    store.save_account(Account(name="admin", id=SUPERUSER_ID))

    app.extensions["syncope_sync"] = ProvisioningService(store, directory, state)

    from syncope_sync.api import admin, errors, health

    app.register_blueprint(health.bp)
    app.register_blueprint(admin.bp, url_prefix="/admin")
    errors.register_error_handlers(app)

    app.logger.info(
        f"[flask_app] Syncope site realm={cfg.syncope_site_realm}; sync "
        f"{'disabled' if cfg.syncope_client_disabled else 'enabled'}"
    )
    return app
