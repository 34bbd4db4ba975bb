"""Health check endpoints."""
from flask import Blueprint, current_app

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness check: reports whether remote synchronisation is active."""
    service = current_app.extensions["syncope_sync"]
    state = "ready" if service.directory.is_enabled() else "ready (sync disabled)"
    return (state, 200, {"Content-Type": "text/plain"})
