"""Gunicorn configuration file with secret loading.

Secret Loading (post_fork hook):
/run/secrets (Docker secrets) are copied into the environment of each
worker before the application factory reads its settings, unless the
variable is already set.
"""
import os

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
wsgi_app = "syncope_sync.flask_app:create_app()"

SECRET_MAPPING = {
    "SYNCOPE_PASSWORD": "syncope_password",
    "FLASK_SECRET_KEY": "flask_secret_key",
    "AUDIT_LOG_SIGNING_KEY": "audit_log_signing_key",
}


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Loads Docker secrets into the worker environment so settings.py finds
    them even when the secrets directory is mounted read-only for the app.
    """
    from pathlib import Path
    secrets_dir = Path("/run/secrets")
    if not secrets_dir.is_dir():
        worker.log.info("No /run/secrets directory; using environment only")
        return

    for env_name, secret_name in SECRET_MAPPING.items():
        if os.environ.get(env_name):  # Skip if already set
            continue
        secret_file = secrets_dir / secret_name
        if not secret_file.is_file():
            continue
        try:
            os.environ[env_name] = secret_file.read_text().strip()
            worker.log.info(f"Loaded secret '{secret_name}' into {env_name}")
        except OSError as exc:
            worker.log.error(f"Failed to load secret '{secret_name}': {exc}")
