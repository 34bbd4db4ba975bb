"""Global roles held by the root realm counterpart of a user.

The root user and the site user are independent records sharing only the
external login. Every operation here checks that the root user exists;
none of them creates it implicitly except provision_root_user().
"""
from __future__ import annotations
import logging
from typing import Iterable

from .syncope import Destination, DirectoryClient, User, UserError

logger = logging.getLogger(__name__)


class GlobalRoleService:
    """Grant and revoke roles that apply across every site realm."""

    def __init__(self, directory: DirectoryClient):
        self.directory = directory

    def provision_root_user(self, external_id: str) -> User:
        """Create the root realm user for an external login if missing."""
        existing = self.directory.get_root_user(external_id)
        if existing is not None:
            logger.info("Root user for %s already exists (uuid=%s)", external_id, existing.uuid)
            return existing
        return self.directory.create_user(User(uuid="", name=external_id), Destination.ROOT)

    def get_root_user(self, external_id: str) -> User:
        """Return the root realm user or raise UserError if there is none."""
        root_user = self.directory.get_root_user(external_id)
        if root_user is None:
            raise UserError(f"The root user is missing for {external_id}.")
        return root_user

    def get_global_roles(self, external_id: str) -> list[str]:
        """Return the local names of the root user's groups."""
        root_user = self.get_root_user(external_id)
        return [self.directory.get_group(uuid).local_name for uuid in root_user.groups]

    def set_global_roles(self, external_id: str, roles: Iterable[str]) -> User:
        """Replace the full set of global roles."""
        roles = _unique(roles)
        logger.info("Setting global roles of %s to %s", external_id, roles)
        return self.directory.set_global_roles(external_id, roles)

    def add_global_role(self, external_id: str, role: str) -> User:
        """Grant one global role, keeping the ones already held."""
        current = self.get_global_roles(external_id)
        return self.set_global_roles(external_id, current + [role])

    def remove_global_role(self, external_id: str, role: str) -> User:
        """Revoke one global role, keeping the others."""
        current = self.get_global_roles(external_id)
        return self.set_global_roles(external_id, [r for r in current if r != role])


def _unique(roles: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for role in roles:
        if role not in seen:
            seen.append(role)
    return seen
