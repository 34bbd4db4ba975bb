"""Pytest shared fixtures: an in-memory Syncope REST server and wired services."""
import json
import pathlib
import sys
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import unquote

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from scripts import audit
from syncope_sync.core.accounts import SUPERUSER_ID, Account, AccountStore
from syncope_sync.core.provisioning_service import ProvisioningService
from syncope_sync.core.state import MemoryState
from syncope_sync.core.syncope import DirectoryClient, SyncopeClient

BASE_URL = "http://syncope.test/syncope/rest"
SITE_REALM = "sitea"
SITE_REALM_UUID = "realm-site-0001"
ROOT_REALM_UUID = "realm-root-0001"
GLOBAL_GROUPS = ("support_engineer", "system_admin")


class _StubResponse:
    def __init__(self, payload, status_code: int = 200, url: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload) if payload is not None else ""
        self.headers = {}
        self.reason = "" if status_code < 400 else "Error"
        self.url = url

    def json(self):
        return self._payload


class _HtmlResponse(_StubResponse):
    """A 200 answer from something in front of Syncope, e.g. a login page."""

    def __init__(self, url: str = ""):
        super().__init__(None, 200, url)
        self.text = "<html><body>Please log in</body></html>"

    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


class FakeSyncope:
    """Just enough of the Syncope REST API to exercise the client.

    Attributes:
        down: When True every request raises requests.ConnectionError
        failures: (METHOD, path prefix) -> HTTP status to return instead
        garbled: (METHOD, path prefix) answered with a 200 HTML page
        calls: (METHOD, path) of every request received
    """

    def __init__(self):
        self.down = False
        self.failures: dict[tuple[str, str], int] = {}
        self.garbled: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []
        self.last_request: dict = {}
        self.realms = {
            "/": {"key": ROOT_REALM_UUID, "name": "/", "fullPath": "/", "parent": None},
            f"/{SITE_REALM}": {
                "key": SITE_REALM_UUID,
                "name": SITE_REALM,
                "fullPath": f"/{SITE_REALM}",
                "parent": ROOT_REALM_UUID,
            },
        }
        self.groups: dict[str, dict] = {}
        self.any_objects: dict[str, dict] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for name in GLOBAL_GROUPS:
            key = str(uuid.uuid4())
            self.groups[key] = {"key": key, "name": name, "realm": "/"}

    # ─────────────────────────────────────────────────────────────────────
    # Helpers used by tests
    # ─────────────────────────────────────────────────────────────────────

    def tick(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.strftime("%Y-%m-%dT%H:%M:%S.000+0000")

    def group_by_name(self, name: str) -> Optional[dict]:
        return next((g for g in self.groups.values() if g["name"] == name), None)

    def object_by_name(self, name: str) -> Optional[dict]:
        return next((o for o in self.any_objects.values() if o["name"] == name), None)

    def count(self, method: str, prefix: str) -> int:
        return sum(1 for m, p in self.calls if m == method and p.startswith(prefix))

    def touch(self, key: str, groups: Optional[list] = None) -> None:
        """Simulate an administrator editing a user directly in Syncope."""
        obj = self.any_objects[key]
        if groups is not None:
            obj["memberships"] = [{"groupKey": g} for g in groups]
        obj["lastChangeDate"] = self.tick()

    # ─────────────────────────────────────────────────────────────────────
    # requests.request replacement
    # ─────────────────────────────────────────────────────────────────────

    def request(self, method, url, headers=None, auth=None, timeout=None, params=None, json=None, **kwargs):
        if self.down:
            raise requests.ConnectionError("connection refused")
        path = url[len(BASE_URL):]
        self.calls.append((method, path))
        self.last_request = {"method": method, "path": path, "headers": headers, "auth": auth,
                             "params": params, "json": json, "timeout": timeout}
        for (fail_method, prefix), status in self.failures.items():
            if fail_method == method and path.startswith(prefix):
                return _StubResponse({"message": "injected failure"}, status, url)
        for garbled_method, prefix in self.garbled:
            if garbled_method == method and path.startswith(prefix):
                return _HtmlResponse(url)

        parts = [unquote(p) for p in path.strip("/").split("/")]
        resource, ident = parts[0], (parts[1] if len(parts) > 1 else None)
        handler = getattr(self, f"_{method.lower()}_{resource.lower()}", None)
        if handler is None:
            return _StubResponse(None, 404, url)
        payload, status = handler(ident, params=params, body=json)
        return _StubResponse(payload, status, url)

    def _get_realms(self, ident, **_):
        realm = self.realms.get(f"/{ident}")
        if realm is None:
            return [], 200
        return [dict(realm)], 200

    def _post_groups(self, ident, body=None, **_):
        if self.group_by_name(body["name"]):
            return {"message": "EntityExists"}, 409
        key = str(uuid.uuid4())
        group = {"key": key, "name": body["name"], "realm": body["realm"]}
        self.groups[key] = group
        return {"entity": dict(group), "propagationStatuses": []}, 201

    def _get_groups(self, ident, **_):
        group = self.groups.get(ident) or self.group_by_name(ident)
        if group is None:
            return {"message": "NotFound"}, 404
        return dict(group), 200

    def _delete_groups(self, ident, **_):
        if self.groups.pop(ident, None) is None:
            return {"message": "NotFound"}, 404
        for obj in self.any_objects.values():
            obj["memberships"] = [m for m in obj["memberships"] if m["groupKey"] != ident]
        return {}, 200

    def _post_anyobjects(self, ident, body=None, **_):
        if self.object_by_name(body["name"]):
            return {"message": "EntityExists"}, 409
        key = str(uuid.uuid4())
        obj = dict(body, key=key, creationDate=self.tick())
        obj["lastChangeDate"] = obj["creationDate"]
        self.any_objects[key] = obj
        return {"entity": dict(obj), "propagationStatuses": []}, 201

    def _put_anyobjects(self, ident, body=None, **_):
        if ident not in self.any_objects:
            return {"message": "NotFound"}, 404
        obj = dict(body, key=ident, lastChangeDate=self.tick())
        self.any_objects[ident] = obj
        return {"entity": dict(obj), "propagationStatuses": []}, 200

    def _get_anyobjects(self, ident, params=None, **_):
        if ident is None:
            return self._search(params or {}), 200
        obj = self.any_objects.get(ident) or self.object_by_name(ident)
        if obj is None:
            return {"message": "NotFound"}, 404
        return dict(obj), 200

    def _delete_anyobjects(self, ident, **_):
        if self.any_objects.pop(ident, None) is None:
            return {"message": "NotFound"}, 404
        return {}, 200

    def _search(self, params):
        # $type==OeUser;eulogin_id==kevin;(realm==a,realm==b)
        type_part, attr_part, realm_part = params["fiql"].split(";", 2)
        wanted_type = type_part.split("==", 1)[1]
        schema, login = attr_part.split("==", 1)
        realm_keys = [r.split("==", 1)[1] for r in realm_part.strip("()").split(",")]
        paths = {r["fullPath"] for r in self.realms.values() if r["key"] in realm_keys}

        result = []
        for obj in self.any_objects.values():
            attrs = {a["schema"]: a["values"] for a in obj.get("plainAttrs", [])}
            if obj.get("type") == wanted_type and login in attrs.get(schema, []) and obj["realm"] in paths:
                result.append(dict(obj))
        return {"result": result[: int(params.get("size", 5))], "page": 1, "totalCount": len(result)}


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def temp_audit_dir(monkeypatch, tmp_path):
    """Keep audit events out of the working tree."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "sync-events.jsonl")
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    return audit_dir


@pytest.fixture
def fake_syncope(monkeypatch):
    fake = FakeSyncope()
    monkeypatch.setattr("syncope_sync.core.syncope.client.requests.request", fake.request)
    return fake


@pytest.fixture
def state():
    return MemoryState()


@pytest.fixture
def directory(fake_syncope, state):
    client = SyncopeClient(BASE_URL, "admin", "password")
    return DirectoryClient(client, SITE_REALM, state=state)


@pytest.fixture
def store():
    store = AccountStore()
    store.save_account(Account(name="admin", id=SUPERUSER_ID))
    return store


@pytest.fixture
def service(store, directory, state):
    return ProvisioningService(store, directory, state, operator="pytest")
