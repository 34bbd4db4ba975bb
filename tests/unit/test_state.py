"""Durable key/value state and the local account store."""
import json

from syncope_sync.core.accounts import Account, AccountStore, Role
from syncope_sync.core.state import JsonFileState, MemoryState


def test_memory_state_basic_operations():
    state = MemoryState({"a": 1})
    state.set("syncope.role_uuid.editor", "g-1")
    state.set("syncope.role_uuid.author", "g-2")
    state.delete("a")
    state.delete("missing")

    assert state.get("a") is None
    assert state.get("a", "default") == "default"
    assert state.keys("syncope.role_uuid.") == ["syncope.role_uuid.author", "syncope.role_uuid.editor"]


def test_json_file_state_survives_reload(tmp_path):
    path = tmp_path / "state" / "syncope.json"
    state = JsonFileState(path)
    state.set("syncope.site_realm_uuid", "realm-site")
    state.set("syncope.root_realm_uuid", "realm-root")
    state.delete("syncope.root_realm_uuid")

    reloaded = JsonFileState(path)

    assert reloaded.get("syncope.site_realm_uuid") == "realm-site"
    assert reloaded.get("syncope.root_realm_uuid") is None
    assert json.loads(path.read_text()) == {"syncope.site_realm_uuid": "realm-site"}
    assert path.stat().st_mode & 0o777 == 0o600


def test_json_file_state_accepts_empty_file(tmp_path):
    path = tmp_path / "syncope.json"
    path.write_text("")

    assert JsonFileState(path).keys() == []


def test_store_assigns_ids_after_superuser():
    store = AccountStore()
    admin = store.save_account(Account(name="admin"))
    kevin = store.save_account(Account(name="kevin"))

    assert admin.is_superuser
    assert kevin.id == 2
    assert store.next_account_id() == 3


def test_store_returns_copies():
    store = AccountStore()
    account = store.save_account(Account(name="kevin"))

    loaded = store.get_account(account.id)
    loaded.add_role("editor")

    assert store.get_account(account.id).roles == ["authenticated"]
    assert store.find_account("kevin").id == account.id
    assert store.find_account("mark") is None


def test_deleting_role_removes_it_from_accounts():
    store = AccountStore()
    store.save_role(Role(id="editor"))
    account = store.save_account(Account(name="kevin", roles=["authenticated", "editor"]))

    store.delete_role("editor")

    assert store.get_role("editor") is None
    assert store.get_account(account.id).roles == ["authenticated"]


def test_load_roles_ignores_unknown_ids():
    store = AccountStore()
    store.save_role(Role(id="editor"))

    assert [r.id for r in store.load_roles(["authenticated", "editor", "ghost"])] == ["editor"]


def test_default_roles():
    assert Role(id="authenticated").is_default
    assert Role(id="anonymous").is_default
    assert not Role(id="editor").is_default
