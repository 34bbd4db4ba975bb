"""Role to Syncope group mapping.

A role is either unmapped or mapped to one group UUID kept in the durable
state. Global and default roles stay unmapped forever.
"""
from __future__ import annotations
import logging
from typing import Iterable, Optional

from .accounts import AUTHENTICATED_ROLE, Account, AccountStore, Role
from .results import SyncAction
from .syncope import DirectoryClient, GroupNotFoundError, IdentifierKind

logger = logging.getLogger(__name__)

ROLE_UUID_KEY = "syncope.role_uuid.{}"


class RoleMapper:
    """Keeps local roles and Syncope groups in a one-to-one mapping."""

    def __init__(self, directory: DirectoryClient, store: AccountStore, state):
        """Initialize the role mapper.

        Args:
            directory: Syncope directory client
            store: Local role storage
            state: Durable key/value state holding role -> group UUIDs
        """
        self.directory = directory
        self.store = store
        self.state = state

    def on_save(self, role: Role) -> SyncAction:
        """Make sure a saved role has a Syncope group.

        Global roles are created during provisioning or directly in
        Syncope, so they are never mapped. Neither are the default roles.
        """
        if not self.directory.is_enabled():
            return SyncAction.SKIPPED
        if role.is_global or role.is_default:
            return SyncAction.SKIPPED

        uuid = self.get_role_uuid(role.id)
        try:
            if uuid:
                group = self.directory.get_group(uuid)
                self.set_role_uuid(role.id, group.uuid)
                return SyncAction.ADOPTED

            # The group may already exist without a stored link.
            group = self.directory.get_group(role.id, IdentifierKind.NAME)
            self.set_role_uuid(role.id, group.uuid)
            return SyncAction.ADOPTED
        except GroupNotFoundError:
            group = self.directory.create_group(role.id)
            self.set_role_uuid(role.id, group.uuid)
            return SyncAction.CREATED

    def on_delete(self, role: Role) -> SyncAction:
        """Delete the Syncope group of a role and forget the mapping."""
        if not self.directory.is_enabled():
            return SyncAction.SKIPPED

        uuid = self.get_role_uuid(role.id)
        if not uuid:
            logger.info("A role was deleted but had no UUID to delete its Syncope counterpart: %s", role.id)
            return SyncAction.SKIPPED

        self.directory.delete_group(uuid)
        self.state.delete(ROLE_UUID_KEY.format(role.id))
        return SyncAction.DELETED

    def get_role_uuid(self, role_id: str) -> Optional[str]:
        return self.state.get(ROLE_UUID_KEY.format(role_id))

    def set_role_uuid(self, role_id: str, uuid: str) -> None:
        self.state.set(ROLE_UUID_KEY.format(role_id), uuid)

    def get_roles_for_user(self, account: Account) -> list[str]:
        """Return the group UUIDs for the account's mapped roles."""
        groups = []
        for role in self.store.load_roles(account.roles):
            uuid = self.get_role_uuid(role.id)
            if uuid:
                groups.append(uuid)
        return groups

    def map_groups_to_roles(self, group_uuids: Iterable[str]) -> list[str]:
        """Translate Syncope memberships back into local role ids.

        The implicit authenticated role always comes first.
        """
        roles = [AUTHENTICATED_ROLE]
        for uuid in group_uuids:
            name = self.directory.get_group(uuid).local_name
            if name not in roles:
                roles.append(name)
        return roles

    def get_roles_from_directory(self, account: Account) -> list[str]:
        """Compute an account's roles from all its Syncope records.

        Errors propagate; the caller decides how to degrade.
        """
        roles = [AUTHENTICATED_ROLE]
        for group in self.directory.get_all_user_groups(account.name):
            if group.local_name not in roles:
                roles.append(group.local_name)
        return roles
