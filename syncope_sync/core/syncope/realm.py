"""Syncope realm lookup and realm UUID caching."""
from __future__ import annotations
import logging
from urllib.parse import quote

from .client import SyncopeClient
from .exceptions import DirectoryAPIError, DirectoryError
from .models import Realm, RealmContext

logger = logging.getLogger(__name__)

SITE_REALM_UUID_KEY = "syncope.site_realm_uuid"
ROOT_REALM_UUID_KEY = "syncope.root_realm_uuid"


class RealmService:
    """Service for reading Syncope realms."""

    def __init__(self, client: SyncopeClient, site_realm: str):
        """Initialize realm service.

        Args:
            client: Configured Syncope client
            site_realm: Name of the realm that maps to this site
        """
        self.client = client
        self.site_realm = site_realm

    def get_site_realm(self) -> Realm:
        """Return the realm configured as this site's realm.

        Raises:
            DirectoryUnavailableError: If Syncope cannot be reached
            DirectoryError: On any other failure (including an empty result)
        """
        try:
            resp = self.client.get(f"/realms/{quote(self.site_realm)}")
        except DirectoryAPIError as e:
            logger.error("The site realm %s could not be retrieved from Syncope: %s", self.site_realm, e)
            raise DirectoryError(f"There was a problem getting the site realm from Syncope: {e.message}") from e

        try:
            realms = resp.json() or []
        except ValueError as e:
            logger.error("Syncope returned a malformed realm response for %s: %s", self.site_realm, e)
            raise DirectoryError("Syncope returned a malformed realm response.") from e
        if isinstance(realms, dict):
            realms = [realms]
        if not realms:
            logger.error("Syncope returned no realm named %s", self.site_realm)
            raise DirectoryError(f"The site realm {self.site_realm} does not exist in Syncope.")

        data = realms[0]
        return Realm(
            uuid=data.get("key", ""),
            name=data.get("name", ""),
            path=data.get("fullPath", ""),
            parent=data.get("parent") or "",
        )

    def resolve_context(self, state) -> RealmContext:
        """Return the site/root realm UUIDs, using the durable state as a cache.

        The remote lookup only happens when either UUID is missing from the
        state; both are persisted afterwards. There is no automatic
        invalidation, see clear_context().
        """
        site_uuid = state.get(SITE_REALM_UUID_KEY)
        root_uuid = state.get(ROOT_REALM_UUID_KEY)
        if site_uuid and root_uuid:
            return RealmContext(site_uuid=site_uuid, root_uuid=root_uuid)

        realm = self.get_site_realm()
        state.set(SITE_REALM_UUID_KEY, realm.uuid)
        state.set(ROOT_REALM_UUID_KEY, realm.parent)
        logger.info("Resolved Syncope realm %s (uuid=%s, root=%s)", realm.name, realm.uuid, realm.parent)
        return RealmContext(site_uuid=realm.uuid, root_uuid=realm.parent)

    @staticmethod
    def clear_context(state) -> None:
        """Forget the cached realm UUIDs (needed after realms are reconfigured)."""
        state.delete(SITE_REALM_UUID_KEY)
        state.delete(ROOT_REALM_UUID_KEY)
