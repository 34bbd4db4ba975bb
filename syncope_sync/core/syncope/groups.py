"""Syncope group management operations."""
from __future__ import annotations
import logging
from urllib.parse import quote

from .client import SyncopeClient
from .exceptions import DirectoryAPIError, GroupError, GroupNotFoundError
from .models import (
    GROUP_CLASS,
    Group,
    IdentifierKind,
    local_group_name,
    remote_group_name,
)

logger = logging.getLogger(__name__)


class GroupService:
    """Service for managing Syncope groups scoped to the site realm."""

    def __init__(self, client: SyncopeClient, site_realm: str):
        """Initialize group service.

        Args:
            client: Configured Syncope client
            site_realm: Name of the realm that maps to this site
        """
        self.client = client
        self.site_realm = site_realm

    def create_group(self, local_name: str) -> Group:
        """Create the group backing a local role.

        Args:
            local_name: Local role id, e.g. "site_manager"

        Returns:
            The created group with its Syncope UUID

        Raises:
            GroupError: If Syncope rejects the group or returns no entity
        """
        group_name = remote_group_name(local_name, self.site_realm)
        payload = {
            "@class": GROUP_CLASS,
            "realm": f"/{self.site_realm}",
            "name": group_name,
        }
        try:
            resp = self.client.post("/groups", json=payload)
        except DirectoryAPIError as e:
            logger.error("There was a problem creating the group %s: %s", group_name, e)
            raise GroupError("There was a problem creating the group.") from e

        entity = self._body(resp, group_name).get("entity")
        if not entity:
            logger.error("There was a problem creating the group %s: no entity returned", group_name)
            raise GroupError("There was a problem creating the group.")

        logger.info("Group '%s' created (uuid=%s)", group_name, entity.get("key"))
        return self._to_group(entity)

    def get_group(self, identifier: str, kind: IdentifierKind = IdentifierKind.UUID) -> Group:
        """Retrieve a group by UUID or by local role name.

        Syncope resolves either the group key or the group name on the same
        endpoint, so a bare name (a global group in the root realm) can also
        be passed with the UUID kind.

        Raises:
            GroupNotFoundError: If Syncope answers 404
            GroupError: On any other HTTP failure
        """
        if kind == IdentifierKind.NAME:
            identifier = remote_group_name(identifier, self.site_realm)

        try:
            resp = self.client.get(f"/groups/{quote(identifier)}")
        except DirectoryAPIError as e:
            if e.status_code == 404:
                raise GroupNotFoundError("The group was not found.") from e
            logger.error("There was a problem retrieving the group %s: %s", identifier, e)
            raise GroupError("There was a problem retrieving the group.") from e

        return self._to_group(self._body(resp, identifier))

    def delete_group(self, uuid: str) -> None:
        """Delete a group (idempotent).

        A group that no longer exists is logged and treated as deleted.

        Raises:
            GroupError: If the delete itself fails
        """
        try:
            self.get_group(uuid)
        except GroupNotFoundError:
            logger.error("The Syncope group could not be deleted because it does not exist: %s", uuid)
            return

        try:
            self.client.delete(f"/groups/{quote(uuid)}")
        except DirectoryAPIError as e:
            logger.error("There was a problem deleting the group %s: %s", uuid, e)
            raise GroupError("There was a problem deleting the group.") from e
        logger.info("Group %s deleted", uuid)

    @staticmethod
    def _body(resp, name: str) -> dict:
        try:
            return resp.json() or {}
        except ValueError as e:
            logger.error("Syncope returned a malformed response for the group %s: %s", name, e)
            raise GroupError("Syncope returned a malformed group response.") from e

    def _to_group(self, data: dict) -> Group:
        name = data.get("name", "")
        return Group(
            uuid=data.get("key", ""),
            remote_name=name,
            local_name=local_group_name(name, self.site_realm),
        )
