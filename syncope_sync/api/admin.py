"""Admin endpoints for accounts and roles.

Every mutation goes through the provisioning service; a failed Syncope
reconciliation blocks the request with the error message.
"""
from __future__ import annotations

from flask import Blueprint, abort, current_app, jsonify, request

from syncope_sync.core.results import SyncFailed, SyncOk
from .decorators import superuser_required
from .errors import directory_error_response

bp = Blueprint("admin", __name__)


def _service():
    return current_app.extensions["syncope_sync"]


def _payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, "JSON object expected")
    return data


def _string_list(data: dict, key: str) -> list[str]:
    values = data.get(key) or []
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        abort(400, f"{key} must be a list of strings")
    return values


def _respond(result, status: int = 200):
    if isinstance(result, SyncFailed):
        current_app.logger.warning(f"Syncope reconciliation failed: {result.message}")
        return directory_error_response(result.error)
    if isinstance(result, SyncOk):
        value = result.value
        body = value.to_dict() if hasattr(value, "to_dict") else {"value": value}
        body["sync"] = result.action.value
        return jsonify(body), status
    raise TypeError(f"Unexpected sync result {result!r}")


# ─────────────────────────────────────────────────────────────────────────────
# Accounts
# ─────────────────────────────────────────────────────────────────────────────

@bp.route("/accounts", methods=["POST"])
def create_account():
    data = _payload()
    name = data.get("name")
    if not isinstance(name, str):
        abort(400, "name is required")
    return _respond(_service().create_account(name, _string_list(data, "roles")), 201)


@bp.route("/accounts/<int:account_id>", methods=["GET"])
def get_account(account_id: int):
    return _respond(_service().load_account(account_id))


@bp.route("/accounts/<int:account_id>", methods=["PATCH"])
def update_account(account_id: int):
    data = _payload()
    name = data.get("name")
    if name is not None and not isinstance(name, str):
        abort(400, "name must be a string")
    result = _service().update_account(
        account_id,
        name=name,
        add_roles=_string_list(data, "add_roles"),
        remove_roles=_string_list(data, "remove_roles"),
    )
    return _respond(result)


@bp.route("/accounts/<int:account_id>", methods=["DELETE"])
def delete_account(account_id: int):
    result = _service().delete_account(account_id)
    if isinstance(result, SyncOk):
        return ("", 204)
    return _respond(result)


@bp.route("/accounts/<int:account_id>/login", methods=["POST"])
def login(account_id: int):
    return _respond(_service().login(account_id))


# ─────────────────────────────────────────────────────────────────────────────
# Roles (superuser only)
# ─────────────────────────────────────────────────────────────────────────────

@bp.route("/roles/<role_id>", methods=["PUT"])
@superuser_required
def save_role(role_id: str):
    data = _payload()
    result = _service().save_role(
        role_id,
        label=str(data.get("label") or ""),
        is_global=bool(data.get("global", False)),
    )
    if isinstance(result, SyncOk):
        role = result.value
        body = {"id": role.id, "label": role.label, "global": role.is_global, "sync": result.action.value}
        return jsonify(body), 200
    return _respond(result)


@bp.route("/roles/<role_id>", methods=["DELETE"])
@superuser_required
def delete_role(role_id: str):
    result = _service().delete_role(role_id)
    if isinstance(result, SyncOk):
        return ("", 204)
    return _respond(result)


# ─────────────────────────────────────────────────────────────────────────────
# Global roles (superuser only)
# ─────────────────────────────────────────────────────────────────────────────

@bp.route("/global-roles/<external_id>/<role_id>", methods=["PUT"])
@superuser_required
def grant_global_role(external_id: str, role_id: str):
    provision = request.args.get("provision", "false").lower() == "true"
    result = _service().grant_global_role(external_id, role_id, provision=provision)
    if isinstance(result, SyncOk):
        return jsonify({"external_id": external_id, "roles": result.value}), 200
    return _respond(result)


@bp.route("/global-roles/<external_id>/<role_id>", methods=["DELETE"])
@superuser_required
def revoke_global_role(external_id: str, role_id: str):
    result = _service().revoke_global_role(external_id, role_id)
    if isinstance(result, SyncOk):
        return jsonify({"external_id": external_id, "roles": result.value}), 200
    return _respond(result)
