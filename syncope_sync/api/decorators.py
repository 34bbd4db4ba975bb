"""
Flask decorators for authorization.

Authentication happens upstream; the authenticated account id reaches the
application in the X-Account-Id header.
"""

import logging
from functools import wraps
from typing import Optional

from flask import request, abort, g

from syncope_sync.core.accounts import SUPERUSER_ID

logger = logging.getLogger(__name__)

ACCOUNT_HEADER = "X-Account-Id"


def current_account_id() -> Optional[int]:
    """Return the caller's account id from the request header, if valid."""
    raw = request.headers.get(ACCOUNT_HEADER, "").strip()
    if not raw.isdigit():
        return None
    return int(raw)


def superuser_required(func):
    """Restrict an endpoint to the superuser account.

    Role CRUD must only be possible for the superuser because every role
    change is mirrored as a group in the shared directory.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        account_id = current_account_id()
        if account_id != SUPERUSER_ID:
            logger.warning(f"Role management denied for account {account_id} on {request.path}")
            abort(403)
        g.account_id = account_id
        return func(*args, **kwargs)

    return wrapper
