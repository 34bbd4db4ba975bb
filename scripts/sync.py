"""Operator commands for the Syncope synchronisation.

This module serves as a CLI wrapper around syncope_sync.core services:
realm cache maintenance, user inspection and global role management.
"""
from __future__ import annotations
import argparse
import os
import sys
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from syncope_sync.core.global_roles import GlobalRoleService
from syncope_sync.core.state import JsonFileState
from syncope_sync.core.syncope import (
    DirectoryClient,
    DirectoryError,
    RealmService,
    SyncopeClient,
)
from syncope_sync.core.syncope.realm import ROOT_REALM_UUID_KEY, SITE_REALM_UUID_KEY
from scripts import audit


def build_directory(args, state) -> DirectoryClient:
    client = SyncopeClient(args.endpoint, args.username, args.password, domain=args.domain)
    return DirectoryClient(client, args.site_realm, state=state)


def main() -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Syncope sync operator helper")
    parser.add_argument("--endpoint", default=os.environ.get("SYNCOPE_ENDPOINT", "http://localhost:9080/syncope/rest"))
    parser.add_argument("--domain", default=os.environ.get("SYNCOPE_DOMAIN", "Master"))
    parser.add_argument("--site-realm", default=os.environ.get("SYNCOPE_SITE_REALM"))
    parser.add_argument("--username", default=os.environ.get("SYNCOPE_USERNAME", "admin"))
    parser.add_argument("--password", default=os.environ.get("SYNCOPE_PASSWORD"))
    parser.add_argument("--state-file", default=os.environ.get("SYNCOPE_STATE_FILE", ".runtime/syncope-state.json"))
    parser.add_argument("--operator", default="cli",
                        help="Operator identifier for audit logs (default: cli)")

    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("show-realms", help="Print the cached realm UUIDs, resolving them if needed")
    sub.add_parser("clear-realm-cache", help="Forget the cached realm UUIDs")

    su = sub.add_parser("show-user", help="List the Syncope records of an external login")
    su.add_argument("--login", required=True)

    pr = sub.add_parser("provision-root-user", help="Create the root realm user of an external login")
    pr.add_argument("--login", required=True)

    gg = sub.add_parser("grant-global-role")
    gg.add_argument("--login", required=True)
    gg.add_argument("--role", required=True)

    rg = sub.add_parser("revoke-global-role")
    rg.add_argument("--login", required=True)
    rg.add_argument("--role", required=True)

    sg = sub.add_parser("set-global-roles", help="Replace every global role of a login")
    sg.add_argument("--login", required=True)
    sg.add_argument("--roles", nargs="*", default=[])

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        return

    state = JsonFileState(args.state_file)

    if args.cmd == "clear-realm-cache":
        RealmService.clear_context(state)
        print("[realms] Cached realm UUIDs cleared")
        return

    if not args.site_realm:
        parser.error("Missing --site-realm (or SYNCOPE_SITE_REALM)")
    if not args.password:
        parser.error("Missing Syncope password (or SYNCOPE_PASSWORD)")

    directory = build_directory(args, state)
    global_roles = GlobalRoleService(directory)

    try:
        if args.cmd == "show-realms":
            context = directory.realm_context()
            print(f"site={context.site_uuid} root={context.root_uuid}")
            print(f"cached: {state.get(SITE_REALM_UUID_KEY)} / {state.get(ROOT_REALM_UUID_KEY)}")
        elif args.cmd == "show-user":
            for user in directory.get_all_users(args.login):
                scope = "root" if user.is_root_user else "site"
                groups = [directory.get_group(uuid).local_name for uuid in user.groups]
                print(f"{scope}\t{user.uuid}\t{user.name}\t{','.join(groups)}")
        elif args.cmd == "provision-root-user":
            user = global_roles.provision_root_user(args.login)
            print(f"[root-user] {user.name} (uuid={user.uuid})")
        elif args.cmd in ("grant-global-role", "revoke-global-role", "set-global-roles"):
            if args.cmd == "grant-global-role":
                global_roles.add_global_role(args.login, args.role)
            elif args.cmd == "revoke-global-role":
                global_roles.remove_global_role(args.login, args.role)
            else:
                global_roles.set_global_roles(args.login, args.roles)
            roles = global_roles.get_global_roles(args.login)
            audit.log_sync_event(
                "global_roles_set",
                args.login,
                action="pushed",
                operator=args.operator,
                realm=args.site_realm,
                details={"command": args.cmd, "roles": roles},
            )
            print(f"[global-roles] {args.login}: {', '.join(roles) or '(none)'}")
    except DirectoryError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        if args.cmd.endswith("global-role") or args.cmd == "set-global-roles":
            audit.log_sync_event(
                "global_roles_set",
                args.login,
                operator=args.operator,
                realm=args.site_realm,
                details={"command": args.cmd, "error": str(e)},
                success=False,
            )
        sys.exit(1)


if __name__ == "__main__":
    main()
