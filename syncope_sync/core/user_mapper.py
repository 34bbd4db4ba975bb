"""Account to Syncope user reconciliation.

Writes fail closed: any unexpected directory error propagates so the
caller aborts the local mutation. Reads fail open toward least privilege:
when the directory cannot be consulted the account keeps only the
authenticated role.
"""
from __future__ import annotations
import logging

from .accounts import AUTHENTICATED_ROLE, Account, AccountStore
from .results import SyncAction
from .role_mapper import RoleMapper
from .syncope import (
    DirectoryClient,
    DirectoryError,
    IdentifierKind,
    User,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class UserMapper:
    """Lifecycle hooks mirroring local accounts as Syncope site users."""

    def __init__(self, directory: DirectoryClient, role_mapper: RoleMapper, store: AccountStore):
        self.directory = directory
        self.role_mapper = role_mapper
        self.store = store

    def on_create(self, account: Account) -> SyncAction:
        """Link a new account to a Syncope user, creating one if needed.

        A user provisioned out-of-band under the same login is adopted and
        its memberships are merged into the account's roles. Any error
        other than "not found" propagates and must block the local save.
        """
        if not self.directory.is_enabled():
            return SyncAction.SKIPPED
        if account.is_superuser:
            return SyncAction.SKIPPED

        action = SyncAction.ADOPTED
        try:
            remote = self.directory.get_user(account.name, IdentifierKind.USERNAME)
            for role_id in self.role_mapper.map_groups_to_roles(remote.groups):
                account.add_role(role_id)
        except UserNotFoundError:
            groups = self.role_mapper.get_roles_for_user(account)
            remote = self.directory.create_user(User(uuid="", name=account.name, groups=groups))
            action = SyncAction.CREATED

        account.syncope_uuid = remote.uuid
        account.syncope_updated = remote.updated
        return action

    def on_update(self, account: Account) -> SyncAction:
        """Reconcile an existing account with its Syncope user.

        If the remote record has not changed since the last sync, local
        roles are pushed. Otherwise the remote memberships win and are
        copied onto the account without writing back.
        """
        if not self.directory.is_enabled():
            return SyncAction.SKIPPED

        uuid = account.syncope_uuid
        if not uuid:
            logger.info("The user cannot be updated in Syncope because it has no UUID mapped: %s", account.id)
            return SyncAction.SKIPPED

        try:
            remote = self.directory.get_user(uuid)
        except UserNotFoundError:
            logger.info("The user cannot be updated in Syncope because it doesn't exist there: %s", account.id)
            return SyncAction.SKIPPED

        if remote.updated == account.syncope_updated:
            groups = self.role_mapper.get_roles_for_user(account)
            remote = self.directory.update_user(User(uuid=uuid, name=account.name, groups=groups))
            account.syncope_updated = remote.updated
            return SyncAction.PUSHED

        logger.info(
            "Syncope user %s changed remotely (%s != %s); pulling its roles",
            uuid, remote.updated, account.syncope_updated,
        )
        account.roles = self.role_mapper.map_groups_to_roles(remote.groups)
        account.syncope_updated = remote.updated
        return SyncAction.PULLED

    def on_delete(self, account: Account) -> SyncAction:
        """Delete the Syncope user of an account.

        A remote user that is already gone lets the local delete proceed;
        any other failure propagates and blocks it.
        """
        if not self.directory.is_enabled():
            return SyncAction.SKIPPED

        uuid = account.syncope_uuid
        if not uuid:
            return SyncAction.SKIPPED

        try:
            self.directory.get_user(uuid)
        except UserNotFoundError:
            return SyncAction.SKIPPED

        self.directory.delete_user(uuid)
        return SyncAction.DELETED

    def on_load(self, account: Account) -> SyncAction:
        """Recompute the in-memory roles of an account from Syncope.

        Memberships of every realm (site and root) are merged. Directory
        failures never propagate: the account is left with the
        authenticated role only.
        """
        if not self.directory.is_enabled():
            return SyncAction.SKIPPED
        if not account.syncope_uuid:
            return SyncAction.SKIPPED

        try:
            account.roles = self.role_mapper.get_roles_from_directory(account)
        except DirectoryError as e:
            logger.info("The roles of user %s could not be loaded from Syncope: %s", account.id, e)
            account.roles = [AUTHENTICATED_ROLE]
            return SyncAction.DEGRADED
        return SyncAction.REFRESHED

    def on_login(self, account: Account) -> SyncAction:
        """Reload and re-save an account so fresh grants reach the session.

        Login is never blocked: if the save cannot be reconciled the
        account keeps only the authenticated role for this session.
        """
        if not self.directory.is_enabled():
            return SyncAction.SKIPPED
        if account.is_superuser:
            return SyncAction.SKIPPED

        stored = self.store.get_account(account.id) if account.id is not None else None
        if stored is not None:
            account.roles = stored.roles
            account.syncope_uuid = stored.syncope_uuid
            account.syncope_updated = stored.syncope_updated

        if self.on_load(account) == SyncAction.DEGRADED:
            return SyncAction.DEGRADED

        try:
            self.on_update(account)
        except DirectoryError as e:
            logger.warning("Roles of user %s could not be saved at login: %s", account.id, e)
            account.roles = [AUTHENTICATED_ROLE]
            return SyncAction.DEGRADED

        self.store.save_account(account)
        return SyncAction.REFRESHED
