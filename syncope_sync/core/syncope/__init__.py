"""Syncope REST API client library.

This package provides a modular, testable interface to the Syncope
operations needed to mirror local roles and accounts.

Architecture:
- client.py: HTTP client with basic auth and transport error translation
- realm.py: Site realm lookup and realm UUID caching
- groups.py: Group lifecycle (create, read, idempotent delete)
- users.py: OeUser any objects (create, update, search, global roles)
- directory.py: Facade used by the mappers
- models.py: Value objects (Realm, Group, User)
- exceptions.py: Typed exceptions for error handling

Usage:
    from syncope_sync.core.syncope import DirectoryClient, SyncopeClient

    client = SyncopeClient("http://syncope:8080/syncope/rest", "admin", "password")
    directory = DirectoryClient(client, "sitea", state=state)
    user = directory.get_user("kevin", IdentifierKind.USERNAME)
"""
from .client import SyncopeClient, REQUEST_TIMEOUT
from .directory import DirectoryClient
from .exceptions import (
    DirectoryError,
    DirectoryUnavailableError,
    DirectoryAPIError,
    GroupError,
    GroupNotFoundError,
    UserError,
    UserNotFoundError,
)
from .groups import GroupService
from .models import (
    Destination,
    Group,
    IdentifierKind,
    Realm,
    RealmContext,
    User,
    local_group_name,
    remote_group_name,
)
from .realm import RealmService
from .users import UserService

__all__ = [
    # Client
    "SyncopeClient",
    "DirectoryClient",
    "REQUEST_TIMEOUT",

    # Exceptions
    "DirectoryError",
    "DirectoryUnavailableError",
    "DirectoryAPIError",
    "GroupError",
    "GroupNotFoundError",
    "UserError",
    "UserNotFoundError",

    # Services
    "RealmService",
    "GroupService",
    "UserService",

    # Models
    "Destination",
    "Group",
    "IdentifierKind",
    "Realm",
    "RealmContext",
    "User",
    "local_group_name",
    "remote_group_name",
]
