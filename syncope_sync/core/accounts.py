"""Local account and role entities with an in-memory store."""
from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Optional

AUTHENTICATED_ROLE = "authenticated"
ANONYMOUS_ROLE = "anonymous"
DEFAULT_ROLES = (ANONYMOUS_ROLE, AUTHENTICATED_ROLE)
SUPERUSER_ID = 1


@dataclass
class Role:
    """A local role. Global roles are never linked to a site group."""
    id: str
    label: str = ""
    is_global: bool = False

    @property
    def is_default(self) -> bool:
        return self.id in DEFAULT_ROLES


@dataclass
class Account:
    """A local user account.

    The name doubles as the external login identifier. syncope_uuid and
    syncope_updated are the denormalised link to the remote site user.
    """
    name: str
    roles: list[str] = field(default_factory=lambda: [AUTHENTICATED_ROLE])
    id: Optional[int] = None
    syncope_uuid: Optional[str] = None
    syncope_updated: Optional[int] = None

    @property
    def is_new(self) -> bool:
        return self.id is None

    @property
    def is_superuser(self) -> bool:
        return self.id == SUPERUSER_ID

    def add_role(self, role_id: str) -> None:
        if role_id not in self.roles:
            self.roles.append(role_id)

    def remove_role(self, role_id: str) -> None:
        if role_id in self.roles:
            self.roles.remove(role_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "roles": list(self.roles),
            "syncope_uuid": self.syncope_uuid,
            "syncope_updated": self.syncope_updated,
        }


class AccountStore:
    """In-memory storage for accounts and roles.

    Entities are copied on the way in and out so unsaved changes never leak
    into the store.
    """

    def __init__(self):
        self._accounts: dict[int, Account] = {}
        self._roles: dict[str, Role] = {}
        self._next_id = SUPERUSER_ID

    def next_account_id(self) -> int:
        return self._next_id

    def save_account(self, account: Account) -> Account:
        if account.id is None:
            account.id = self._next_id
        self._next_id = max(self._next_id, account.id + 1)
        self._accounts[account.id] = deepcopy(account)
        return account

    def get_account(self, account_id: int) -> Optional[Account]:
        account = self._accounts.get(account_id)
        return deepcopy(account) if account else None

    def find_account(self, name: str) -> Optional[Account]:
        for account in self._accounts.values():
            if account.name == name:
                return deepcopy(account)
        return None

    def delete_account(self, account_id: int) -> None:
        self._accounts.pop(account_id, None)

    def list_accounts(self) -> list[Account]:
        return [deepcopy(a) for a in self._accounts.values()]

    def save_role(self, role: Role) -> Role:
        self._roles[role.id] = deepcopy(role)
        return role

    def get_role(self, role_id: str) -> Optional[Role]:
        role = self._roles.get(role_id)
        return deepcopy(role) if role else None

    def delete_role(self, role_id: str) -> None:
        self._roles.pop(role_id, None)
        for account in self._accounts.values():
            account.remove_role(role_id)

    def load_roles(self, role_ids: list[str]) -> list[Role]:
        return [deepcopy(self._roles[r]) for r in role_ids if r in self._roles]


class EntityNotFoundError(LookupError):
    """No local account or role with the given id."""
    pass
