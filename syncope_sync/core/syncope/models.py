"""Value objects returned by the Syncope directory services."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

ANY_OBJECT_TYPE = "OeUser"
LOGIN_ATTRIBUTE = "eulogin_id"
GROUP_CLASS = "org.apache.syncope.common.lib.to.GroupTO"
ANY_OBJECT_CLASS = "org.apache.syncope.common.lib.to.AnyObjectTO"


class IdentifierKind(str, Enum):
    """How a lookup identifier should be interpreted."""
    UUID = "uuid"
    NAME = "name"
    USERNAME = "username"


class Destination(str, Enum):
    """Realm a new user is created in."""
    SITE = "site"
    ROOT = "root"


@dataclass(frozen=True)
class Realm:
    """A node of the Syncope realm hierarchy."""
    uuid: str
    name: str
    path: str
    parent: str = ""

    @property
    def is_root(self) -> bool:
        return self.parent in ("", "/")


@dataclass(frozen=True)
class RealmContext:
    """Resolved UUIDs of the site realm and its root realm."""
    site_uuid: str
    root_uuid: str

    def scopes(self) -> list[str]:
        return [self.root_uuid, self.site_uuid]


@dataclass(frozen=True)
class Group:
    """A Syncope group, the remote counterpart of a local role."""
    uuid: str
    remote_name: str
    local_name: str


@dataclass
class User:
    """A realm-scoped any object representing one local account.

    Attributes:
        uuid: Syncope key (empty until the user exists remotely)
        name: Remote name ("kevin@sitea" in a site realm, "kevin" at root)
        groups: Group UUIDs the user is a member of
        updated: POSIX timestamp of the last remote change
    """
    uuid: str
    name: str
    groups: list[str] = field(default_factory=list)
    updated: Optional[int] = None

    @property
    def is_root_user(self) -> bool:
        return "@" not in self.name


def remote_group_name(local_name: str, site_realm: str) -> str:
    """Build the realm-qualified group name used in Syncope."""
    return f"{local_name}@{site_realm}"


def local_group_name(remote_name: str, site_realm: str) -> str:
    """Strip the realm suffix from a Syncope group name.

    Names without the suffix (global groups in the root realm) are
    returned unchanged.
    """
    suffix = f"@{site_realm}"
    if remote_name.endswith(suffix):
        return remote_name[: -len(suffix)]
    return remote_name


def parse_change_date(value: Any) -> Optional[int]:
    """Convert a Syncope lastChangeDate into a POSIX timestamp."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        # Epoch milliseconds.
        return int(value) // 1000
    text = str(value)
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z"):
        try:
            return int(datetime.strptime(text, fmt).timestamp())
        except ValueError:
            continue
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def user_from_payload(payload: dict) -> User:
    """Build a User from an AnyObjectTO representation."""
    memberships = payload.get("memberships") or []
    return User(
        uuid=payload.get("key", ""),
        name=payload.get("name", ""),
        groups=[m["groupKey"] for m in memberships if m.get("groupKey")],
        updated=parse_change_date(payload.get("lastChangeDate") or payload.get("creationDate")),
    )


def any_object_payload(realm: str, name: str, login: str, groups: list[str], key: str = "") -> dict:
    """Build an AnyObjectTO ready to be sent to Syncope."""
    payload: dict[str, Any] = {
        "@class": ANY_OBJECT_CLASS,
        "type": ANY_OBJECT_TYPE,
        "realm": realm,
        "name": name,
        "memberships": [{"groupKey": uuid} for uuid in groups],
        "plainAttrs": [{"schema": LOGIN_ATTRIBUTE, "values": [login]}],
    }
    if key:
        payload["key"] = key
    return payload
