"""End-to-end account lifecycles against the in-memory Syncope server.

These tests drive the provisioning service exactly as the admin API does
and then inspect the remote side through the directory client.
"""
import pytest

from syncope_sync.core.results import SyncAction
from syncope_sync.core.syncope import IdentifierKind, User, UserNotFoundError


def test_account_lifecycle_create_assign_rename_delete(service, directory):
    # Create: a site user with no memberships
    created = service.create_account("kevin")
    account = created.value
    assert created.action == SyncAction.CREATED
    remote = directory.get_user(account.syncope_uuid)
    assert remote.name == "kevin@sitea"
    assert remote.groups == []

    # Assign a role: its group is created and the user becomes a member
    service.save_role("site_manager")
    group = directory.get_group("site_manager", IdentifierKind.NAME)
    assert group.remote_name == "site_manager@sitea"

    service.update_account(account.id, add_roles=["site_manager"])
    assert directory.get_user(account.syncope_uuid).groups == [group.uuid]

    # Rename: remote name follows, memberships unchanged
    renamed = service.update_account(account.id, name="mark")
    assert renamed.action == SyncAction.PUSHED
    remote = directory.get_user(account.syncope_uuid)
    assert remote.name == "mark@sitea"
    assert remote.groups == [group.uuid]

    # Delete: the stored uuid no longer resolves
    service.delete_account(account.id)
    with pytest.raises(UserNotFoundError):
        directory.get_user(account.syncope_uuid)


def test_pre_existing_remote_user_is_adopted(service, directory, fake_syncope):
    service.save_role("site_manager")
    group = directory.get_group("site_manager", IdentifierKind.NAME)
    existing = directory.create_user(User(uuid="", name="kevin", groups=[group.uuid]))

    result = service.create_account("kevin")

    assert result.action == SyncAction.ADOPTED
    assert result.value.syncope_uuid == existing.uuid
    assert "site_manager" in result.value.roles
    assert fake_syncope.count("POST", "/anyObjects") == 1
    assert len(directory.get_all_users("kevin")) == 1


def test_global_role_lives_on_a_separate_root_user(service, directory):
    service.create_account("kevin")

    service.grant_global_role("kevin", "support_engineer", provision=True)

    users = directory.get_all_users("kevin")
    assert len(users) == 2
    root = next(u for u in users if u.is_root_user)
    site = next(u for u in users if not u.is_root_user)
    assert root.name == "kevin"
    assert [directory.get_group(g).local_name for g in root.groups] == ["support_engineer"]
    assert site.name == "kevin@sitea"
    assert site.groups == []


def test_global_role_replace_semantics(service, directory):
    service.global_roles.provision_root_user("kevin")

    service.global_roles.set_global_roles("kevin", ["support_engineer"])
    service.global_roles.set_global_roles("kevin", ["system_admin"])

    assert service.global_roles.get_global_roles("kevin") == ["system_admin"]


def test_remote_edit_wins_over_stale_local_roles(service, directory, fake_syncope, store):
    service.save_role("editor")
    service.save_role("reviewer")
    account = service.create_account("kevin", roles=["editor"]).value
    reviewer = directory.get_group("reviewer", IdentifierKind.NAME)

    # An administrator changes the memberships directly in Syncope.
    fake_syncope.touch(account.syncope_uuid, groups=[reviewer.uuid])

    result = service.update_account(account.id, add_roles=["editor"])

    assert result.action == SyncAction.PULLED
    assert store.get_account(account.id).roles == ["authenticated", "reviewer"]
    assert directory.get_user(account.syncope_uuid).groups == [reviewer.uuid]

    # The next update starts from the pulled timestamp and pushes again.
    pushed = service.update_account(account.id, add_roles=["editor"])
    assert pushed.action == SyncAction.PUSHED
    editor = directory.get_group("editor", IdentifierKind.NAME)
    assert sorted(directory.get_user(account.syncope_uuid).groups) == sorted([reviewer.uuid, editor.uuid])


def test_deleting_a_role_removes_its_group_and_membership(service, directory, store):
    service.save_role("editor")
    account = service.create_account("kevin", roles=["editor"]).value
    group_uuid = service.role_mapper.get_role_uuid("editor")

    service.delete_role("editor")

    assert "editor" not in store.get_account(account.id).roles
    assert group_uuid not in directory.get_user(account.syncope_uuid).groups


def test_syncope_outage_blocks_writes_but_not_reads(service, fake_syncope, store):
    service.save_role("editor")
    account = service.create_account("kevin", roles=["editor"]).value
    fake_syncope.down = True

    assert not service.create_account("mark").ok
    assert not service.update_account(account.id, name="mark").ok
    assert not service.delete_account(account.id).ok

    loaded = service.load_account(account.id)
    assert loaded.ok
    assert loaded.value.roles == ["authenticated"]
    login = service.login(account.id)
    assert login.action == SyncAction.DEGRADED

    assert store.find_account("mark") is None
    assert store.get_account(account.id).name == "kevin"
