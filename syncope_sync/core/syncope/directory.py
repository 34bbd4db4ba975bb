"""Typed facade over the Syncope services.

This is the only object the mappers talk to; no caller issues HTTP
requests directly.
"""
from __future__ import annotations
import logging
from typing import Iterable, Optional

from .client import SyncopeClient
from .groups import GroupService
from .models import Destination, Group, IdentifierKind, Realm, RealmContext, User
from .realm import RealmService
from .users import UserService

logger = logging.getLogger(__name__)


class DirectoryClient:
    """Remote directory client for one site realm.

    Usage:
        directory = DirectoryClient(SyncopeClient(url, "admin", "pw"), "sitea", state=state)
        group = directory.create_group("site_manager")
        user = directory.get_user("kevin", IdentifierKind.USERNAME)
    """

    def __init__(
        self,
        client: SyncopeClient,
        site_realm: str,
        *,
        state=None,
        realm_context: Optional[RealmContext] = None,
        enabled: bool = True,
    ):
        """Initialize the directory client.

        Args:
            client: Configured Syncope HTTP client
            site_realm: Name of the realm that maps to this site
            state: Durable key/value state caching the realm UUIDs
            realm_context: Pre-resolved realm UUIDs (skips the lookup entirely)
            enabled: False turns every mapper hook into a no-op
        """
        self.client = client
        self.site_realm = site_realm
        self.state = state
        self.enabled = enabled
        self._realm_context = realm_context

        self.realms = RealmService(client, site_realm)
        self.groups = GroupService(client, site_realm)
        self.users = UserService(client, site_realm, self.groups, self.realm_context)

    @classmethod
    def from_settings(cls, cfg, state=None) -> "DirectoryClient":
        """Build a directory client from the application configuration."""
        client = SyncopeClient(
            cfg.syncope_endpoint,
            cfg.syncope_username,
            cfg.syncope_password,
            domain=cfg.syncope_domain,
        )
        return cls(client, cfg.syncope_site_realm, state=state, enabled=not cfg.syncope_client_disabled)

    def is_enabled(self) -> bool:
        """Check if calls to Syncope are enabled (kill switch)."""
        return self.enabled

    def realm_context(self) -> RealmContext:
        """Return the site/root realm UUIDs, resolving them once if needed."""
        if self._realm_context is None:
            if self.state is None:
                realm = self.realms.get_site_realm()
                self._realm_context = RealmContext(site_uuid=realm.uuid, root_uuid=realm.parent)
            else:
                self._realm_context = self.realms.resolve_context(self.state)
        return self._realm_context

    # Realms
    def resolve_site_realm(self) -> Realm:
        return self.realms.get_site_realm()

    # Groups
    def create_group(self, local_name: str) -> Group:
        return self.groups.create_group(local_name)

    def get_group(self, identifier: str, kind: IdentifierKind = IdentifierKind.UUID) -> Group:
        return self.groups.get_group(identifier, kind)

    def delete_group(self, uuid: str) -> None:
        self.groups.delete_group(uuid)

    # Users
    def create_user(self, user: User, destination: Destination = Destination.SITE) -> User:
        return self.users.create_user(user, destination)

    def update_user(self, user: User) -> User:
        return self.users.update_user(user)

    def get_user(self, identifier: str, kind: IdentifierKind = IdentifierKind.UUID) -> User:
        return self.users.get_user(identifier, kind)

    def get_all_users(self, external_id: str, realms: Optional[Iterable[str]] = None) -> list[User]:
        return self.users.get_all_users(external_id, realms)

    def get_all_user_groups(self, external_id: str, realms: Optional[Iterable[str]] = None) -> list[Group]:
        """Resolve the memberships of every user carrying the external login."""
        groups = []
        for user in self.get_all_users(external_id, realms):
            for uuid in user.groups:
                groups.append(self.get_group(uuid))
        return groups

    def delete_user(self, identifier: str) -> None:
        self.users.delete_user(identifier)

    def get_root_user(self, external_id: str) -> Optional[User]:
        return self.users.get_root_user(external_id)

    def set_global_roles(self, external_id: str, roles: Iterable[str]) -> User:
        return self.users.set_global_roles(external_id, roles)
