"""
Provisioning Service Layer: local mutations with Syncope reconciliation

This module owns every change to local accounts and roles. Each write runs
the matching mapper hook first and only persists locally when the hook
succeeded, so an account never exists locally without a reconciliation
attempt. Results are returned as SyncOk / SyncFailed values.

Architecture:
    Admin API (/admin/*) ──┐
                           ├──> provisioning_service.py ──> mappers ──> DirectoryClient ──> Syncope
    Operator CLI ──────────┘
"""

from __future__ import annotations
import logging
import re
from typing import Iterable, Optional

from scripts import audit

from .accounts import AUTHENTICATED_ROLE, Account, AccountStore, EntityNotFoundError, Role
from .global_roles import GlobalRoleService
from .results import SyncAction, SyncFailed, SyncOk, SyncResult
from .role_mapper import RoleMapper
from .syncope import DirectoryClient, DirectoryError
from .user_mapper import UserMapper

logger = logging.getLogger(__name__)

# Account names are the external login and end up in "<name>@<realm>".
ACCOUNT_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]{1,64}$")
ROLE_ID_PATTERN = re.compile(r"^[a-z0-9_]{1,64}$")


def validate_account_name(name: str) -> None:
    """Validate an account name (1-64 chars, alphanumeric + .-_, no '@')."""
    if not name or not ACCOUNT_NAME_PATTERN.match(name):
        raise ValueError("name must be 1-64 characters, alphanumeric with .-_ allowed")


def validate_role_id(role_id: str) -> None:
    """Validate a role machine name (lowercase, digits and underscores)."""
    if not role_id or not ROLE_ID_PATTERN.match(role_id):
        raise ValueError("role id must be 1-64 lowercase letters, digits or underscores")


class ProvisioningService:
    """Local account and role operations kept in sync with Syncope."""

    def __init__(self, store: AccountStore, directory: DirectoryClient, state, operator: str = "system"):
        self.store = store
        self.directory = directory
        self.state = state
        self.operator = operator
        self.role_mapper = RoleMapper(directory, store, state)
        self.user_mapper = UserMapper(directory, self.role_mapper, store)
        self.global_roles = GlobalRoleService(directory)

    # ─────────────────────────────────────────────────────────────────────
    # Accounts
    # ─────────────────────────────────────────────────────────────────────

    def create_account(self, name: str, roles: Iterable[str] = ()) -> SyncResult[Account]:
        """Create an account; nothing is stored if Syncope cannot be reconciled."""
        validate_account_name(name)
        self._ensure_name_available(name)
        account = Account(name=name, roles=[AUTHENTICATED_ROLE])
        for role_id in roles:
            account.add_role(role_id)
        # The superuser exemption is decided on the id the account will get.
        account.id = self.store.next_account_id()

        try:
            action = self.user_mapper.on_create(account)
        except DirectoryError as e:
            logger.error("Account %s was not created: %s", name, e)
            self._audit("account_create", name, None, success=False, error=e)
            return SyncFailed(e)

        self.store.save_account(account)
        self._audit("account_create", name, action, details={"uuid": account.syncope_uuid})
        return SyncOk(account, action)

    def update_account(
        self,
        account_id: int,
        *,
        name: Optional[str] = None,
        add_roles: Iterable[str] = (),
        remove_roles: Iterable[str] = (),
    ) -> SyncResult[Account]:
        """Rename an account and/or change its roles, then reconcile."""
        account = self._get_account(account_id)
        if name is not None:
            validate_account_name(name)
            self._ensure_name_available(name, account_id)
            account.name = name
        for role_id in add_roles:
            account.add_role(role_id)
        for role_id in remove_roles:
            if role_id != AUTHENTICATED_ROLE:
                account.remove_role(role_id)

        try:
            action = self.user_mapper.on_update(account)
        except DirectoryError as e:
            logger.error("Account %s was not updated: %s", account_id, e)
            self._audit("account_update", account.name, None, success=False, error=e)
            return SyncFailed(e)

        self.store.save_account(account)
        self._audit("account_update", account.name, action, details={"roles": account.roles})
        return SyncOk(account, action)

    def delete_account(self, account_id: int) -> SyncResult[Account]:
        """Delete an account; a failed remote delete keeps it locally."""
        account = self._get_account(account_id)
        try:
            action = self.user_mapper.on_delete(account)
        except DirectoryError as e:
            logger.error("Account %s was not deleted: %s", account_id, e)
            self._audit("account_delete", account.name, None, success=False, error=e)
            return SyncFailed(e)

        self.store.delete_account(account_id)
        self._audit("account_delete", account.name, action, details={"uuid": account.syncope_uuid})
        return SyncOk(account, action)

    def load_account(self, account_id: int) -> SyncResult[Account]:
        """Load an account with its roles refreshed from Syncope.

        The refreshed roles are not persisted. This never fails on directory
        errors; see UserMapper.on_load().
        """
        account = self._get_account(account_id)
        action = self.user_mapper.on_load(account)
        return SyncOk(account, action)

    def login(self, account_id: int) -> SyncResult[Account]:
        """Refresh and persist an account's roles at login."""
        account = self._get_account(account_id)
        action = self.user_mapper.on_login(account)
        self._audit("account_login", account.name, action, details={"roles": account.roles})
        return SyncOk(account, action)

    # ─────────────────────────────────────────────────────────────────────
    # Roles
    # ─────────────────────────────────────────────────────────────────────

    def save_role(self, role_id: str, label: str = "", is_global: bool = False) -> SyncResult[Role]:
        """Create or update a role and its Syncope group."""
        validate_role_id(role_id)
        role = self.store.get_role(role_id) or Role(id=role_id)
        role.label = label or role.label or role_id
        role.is_global = is_global

        try:
            action = self.role_mapper.on_save(role)
        except DirectoryError as e:
            logger.error("Role %s was not saved: %s", role_id, e)
            self._audit("role_save", role_id, None, success=False, error=e)
            return SyncFailed(e)

        self.store.save_role(role)
        self._audit("role_save", role_id, action, details={"uuid": self.role_mapper.get_role_uuid(role_id)})
        return SyncOk(role, action)

    def delete_role(self, role_id: str) -> SyncResult[Role]:
        """Delete a role and its Syncope group."""
        role = self.store.get_role(role_id)
        if role is None:
            raise EntityNotFoundError(f"Role {role_id} not found")

        try:
            action = self.role_mapper.on_delete(role)
        except DirectoryError as e:
            logger.error("Role %s was not deleted: %s", role_id, e)
            self._audit("role_delete", role_id, None, success=False, error=e)
            return SyncFailed(e)

        self.store.delete_role(role_id)
        self._audit("role_delete", role_id, action)
        return SyncOk(role, action)

    # ─────────────────────────────────────────────────────────────────────
    # Global roles
    # ─────────────────────────────────────────────────────────────────────

    def grant_global_role(self, external_id: str, role_id: str, provision: bool = False) -> SyncResult[list[str]]:
        """Add a global role to the root user of an external login.

        With provision=True the root user is created first when missing.
        """
        try:
            if provision:
                self.global_roles.provision_root_user(external_id)
            self.global_roles.add_global_role(external_id, role_id)
            roles = self.global_roles.get_global_roles(external_id)
        except DirectoryError as e:
            self._audit("global_roles_set", external_id, None, success=False, error=e)
            return SyncFailed(e)
        self._audit("global_roles_set", external_id, SyncAction.PUSHED, details={"roles": roles})
        return SyncOk(roles, SyncAction.PUSHED)

    def revoke_global_role(self, external_id: str, role_id: str) -> SyncResult[list[str]]:
        """Remove a global role from the root user of an external login."""
        try:
            self.global_roles.remove_global_role(external_id, role_id)
            roles = self.global_roles.get_global_roles(external_id)
        except DirectoryError as e:
            self._audit("global_roles_set", external_id, None, success=False, error=e)
            return SyncFailed(e)
        self._audit("global_roles_set", external_id, SyncAction.PUSHED, details={"roles": roles})
        return SyncOk(roles, SyncAction.PUSHED)

    # ─────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────

    def _get_account(self, account_id: int) -> Account:
        account = self.store.get_account(account_id)
        if account is None:
            raise EntityNotFoundError(f"Account {account_id} not found")
        return account

    def _ensure_name_available(self, name: str, account_id: Optional[int] = None) -> None:
        # Two accounts with one name would share a single remote user.
        existing = self.store.find_account(name)
        if existing is not None and existing.id != account_id:
            raise ValueError(f"account name {name} is already taken")

    def _audit(self, event_type, subject: str, action: Optional[SyncAction], *, success: bool = True,
               error: Optional[Exception] = None, details: Optional[dict] = None) -> None:
        details = dict(details or {})
        if error is not None:
            details["error"] = str(error)
        audit.safe_log_sync_event(
            event_type,
            subject,
            action=action.value if action else "",
            operator=self.operator,
            realm=self.directory.site_realm,
            details=details,
            success=success,
        )
