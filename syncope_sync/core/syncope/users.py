"""Syncope user (any object) management operations."""
from __future__ import annotations
import logging
from typing import Callable, Iterable, Optional
from urllib.parse import quote

from .client import SyncopeClient
from .exceptions import DirectoryAPIError, UserError, UserNotFoundError
from .groups import GroupService
from .models import (
    ANY_OBJECT_TYPE,
    LOGIN_ATTRIBUTE,
    Destination,
    IdentifierKind,
    RealmContext,
    User,
    any_object_payload,
    user_from_payload,
)

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 5


class UserService:
    """Service for managing the OeUser any objects that mirror local accounts."""

    def __init__(
        self,
        client: SyncopeClient,
        site_realm: str,
        groups: GroupService,
        realm_context: Callable[[], RealmContext],
    ):
        """Initialize user service.

        Args:
            client: Configured Syncope client
            site_realm: Name of the realm that maps to this site
            groups: Group service used to resolve global role names
            realm_context: Callable returning the resolved realm UUIDs
        """
        self.client = client
        self.site_realm = site_realm
        self.groups = groups
        self._realm_context = realm_context

    @property
    def site_realm_path(self) -> str:
        return f"/{self.site_realm}"

    def site_name(self, login: str) -> str:
        return f"{login}@{self.site_realm}"

    def create_user(self, user: User, destination: Destination = Destination.SITE) -> User:
        """Create a user in the site realm or in the root realm.

        The user's name is the external login; the remote name is suffixed
        with the site realm for site users and left bare for root users.

        Raises:
            UserError: If Syncope rejects the user or returns no entity
        """
        if destination == Destination.SITE:
            name, realm = self.site_name(user.name), self.site_realm_path
        else:
            name, realm = user.name, "/"

        payload = any_object_payload(realm, name, user.name, user.groups)
        try:
            resp = self.client.post("/anyObjects", json=payload)
        except DirectoryAPIError as e:
            logger.error("There was a problem creating the user %s: %s", user.name, e)
            raise UserError("There was a problem creating the user.") from e

        created = self._entity(resp, user.name, "creating")
        logger.info("User '%s' created in %s (uuid=%s)", name, realm, created.uuid)
        return created

    def update_user(self, user: User) -> User:
        """Overwrite a site user's name, memberships and login attribute.

        Raises:
            UserError: If the UUID is missing or the update fails
        """
        if not user.uuid:
            logger.error("The user %s could not be updated because the UUID is missing.", user.name)
            raise UserError("Missing UUID for updating the user.")

        payload = any_object_payload(self.site_realm_path, self.site_name(user.name), user.name, user.groups, user.uuid)
        return self._put(user.uuid, payload, user.name)

    def get_user(self, identifier: str, kind: IdentifierKind = IdentifierKind.UUID) -> User:
        """Retrieve a site user by UUID or by login name.

        Objects of another type, or living in another realm, are reported as
        not found so identifiers cannot collide across realms.

        Raises:
            UserNotFoundError: If no matching site user exists
            UserError: On any other HTTP failure
        """
        if kind in (IdentifierKind.USERNAME, IdentifierKind.NAME):
            identifier = self.site_name(identifier)

        data = self._read(identifier)
        if data.get("type") != ANY_OBJECT_TYPE:
            raise UserNotFoundError("The user was not found.")
        if data.get("realm") != self.site_realm_path:
            raise UserNotFoundError("The user was found but is in the wrong realm.")
        return self._to_user(data)

    def get_all_users(self, external_id: str, realms: Optional[Iterable[str]] = None) -> list[User]:
        """Return every user carrying the given external login, across realms.

        Args:
            external_id: External login identifier
            realms: Realm UUIDs to search (root and site realm by default)

        Raises:
            UserNotFoundError: If nothing matches
            UserError: If the search itself fails
        """
        scopes = list(realms) if realms else self._realm_context().scopes()
        realm_filter = ",".join(f"realm=={realm}" for realm in scopes)
        fiql = f"$type=={ANY_OBJECT_TYPE};{LOGIN_ATTRIBUTE}=={external_id};({realm_filter})"

        try:
            resp = self.client.get("/anyObjects", params={"page": 1, "size": SEARCH_PAGE_SIZE, "fiql": fiql})
        except DirectoryAPIError as e:
            raise UserError(f"There was a problem querying the user {external_id}: {e.message}") from e

        results = self._body(resp, external_id).get("result") or []
        if not results:
            raise UserNotFoundError(
                f"The user could not be found by the login ID {external_id} in these realms: {', '.join(scopes)}."
            )
        return [self._to_user(item) for item in results]

    def delete_user(self, identifier: str) -> None:
        """Delete a user by UUID (idempotent).

        Raises:
            UserError: If the delete itself fails
        """
        try:
            self._read(identifier)
        except UserNotFoundError:
            logger.error("The Syncope user could not be deleted because it does not exist: %s", identifier)
            return

        try:
            self.client.delete(f"/anyObjects/{quote(identifier)}")
        except DirectoryAPIError as e:
            logger.error("There was a problem deleting the user %s: %s", identifier, e)
            raise UserError("There was a problem deleting the user.") from e
        logger.info("User %s deleted", identifier)

    def get_root_user(self, external_id: str) -> Optional[User]:
        """Return the root realm counterpart of an external login, if any."""
        try:
            users = self.get_all_users(external_id)
        except UserNotFoundError:
            return None
        for user in users:
            if user.is_root_user:
                return user
        return None

    def set_global_roles(self, external_id: str, roles: Iterable[str]) -> User:
        """Replace the root user's memberships with the given global roles.

        This is a full replace: callers wanting to add a single role must
        pass the union of the current and new roles.

        Raises:
            UserError: If the root user does not exist or the update fails
            GroupNotFoundError: If a role has no group in Syncope
        """
        root_user = self.get_root_user(external_id)
        if root_user is None:
            raise UserError("The root user is missing. We cannot add a global role.")

        group_uuids = []
        for role in roles:
            group_uuids.append(self.groups.get_group(role).uuid)

        payload = any_object_payload("/", root_user.name, root_user.name, group_uuids, root_user.uuid)
        return self._put(root_user.uuid, payload, root_user.name)

    def _read(self, identifier: str) -> dict:
        try:
            resp = self.client.get(f"/anyObjects/{quote(identifier)}")
        except DirectoryAPIError as e:
            if e.status_code == 404:
                raise UserNotFoundError("The user was not found.") from e
            raise UserError(f"There was a problem retrieving the user {identifier}: {e.message}") from e
        return self._body(resp, identifier)

    def _put(self, uuid: str, payload: dict, name: str) -> User:
        try:
            resp = self.client.put(f"/anyObjects/{quote(uuid)}", json=payload)
        except DirectoryAPIError as e:
            logger.error("There was a problem updating the user %s: %s", name, e)
            raise UserError("There was a problem updating the user.") from e
        return self._entity(resp, name, "updating")

    def _entity(self, resp, name: str, operation: str) -> User:
        entity = self._body(resp, name).get("entity")
        if not entity:
            logger.error("There was a problem %s the user %s: no entity returned", operation, name)
            raise UserError(f"There was a problem {operation} the user.")
        return self._to_user(entity)

    @staticmethod
    def _body(resp, name: str) -> dict:
        try:
            return resp.json() or {}
        except ValueError as e:
            logger.error("Syncope returned a malformed response for the user %s: %s", name, e)
            raise UserError("Syncope returned a malformed user response.") from e

    @staticmethod
    def _to_user(data: dict) -> User:
        try:
            return user_from_payload(data)
        except ValueError as e:
            logger.error("Syncope returned a malformed user %s: %s", data.get("key"), e)
            raise UserError("Syncope returned a malformed user.") from e
