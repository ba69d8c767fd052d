from flask import Blueprint, current_app, g, request, jsonify
from pydantic import ValidationError

from ..auth import check_access, require_admin, require_authentication
from ..http import allow, client_ip, jerror
from ..schemas import RegisterUserRequest, UpdateUserRequest
from ..services import users as service
from ..services.reservations import list_reservations_for_user, serialize_reservation

bp = Blueprint("users", __name__)


def _resolve(user_ref) -> int:
    """`me` stands for the signed-in user."""
    return g.session.user_id if user_ref == "me" else user_ref


@bp.post("")
def register():
    ip = client_ip()
    if not allow(f"register:{ip}"):
        current_app.logger.warning("Registration rate limit hit for %s", ip)
        return jerror(429, "RATE_LIMITED", "Too many requests. Try again shortly.")

    payload = request.get_json(silent=True)
    if not payload:
        return jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")

    try:
        data = RegisterUserRequest.model_validate(payload)
    except ValidationError as e:
        return jerror(422, "VALIDATION_ERROR", "Invalid input.", details=e.errors(include_url=False, include_context=False))

    token = service.register(data.username, data.email, data.password)
    return jsonify(token=token), 201


@bp.get("")
@require_authentication
@require_admin
def list_users():
    return jsonify(items=[service.serialize_user(u) for u in service.list_users()])


@bp.get("/<user_ref:user_ref>")
@require_authentication
def get_user(user_ref):
    user_id = _resolve(user_ref)
    check_access(user_id)
    return jsonify(service.serialize_user(service.get_user(user_id)))


@bp.put("/<user_ref:user_ref>")
@require_authentication
def update_user(user_ref):
    user_id = _resolve(user_ref)
    check_access(user_id)
    payload = request.get_json(silent=True)
    if not payload:
        return jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")

    try:
        data = UpdateUserRequest.model_validate(payload)
    except ValidationError as e:
        return jerror(422, "VALIDATION_ERROR", "Invalid input.", details=e.errors(include_url=False, include_context=False))

    user = service.update_user(user_id, data.model_dump(exclude_none=True))
    return jsonify(service.serialize_user(user))


@bp.delete("/<user_ref:user_ref>")
@require_authentication
@require_admin
def delete_user(user_ref):
    user_id = _resolve(user_ref)
    check_access(user_id)
    service.delete_user(user_id)
    return "", 204


@bp.get("/<user_ref:user_ref>/reservations")
@require_authentication
def user_reservations(user_ref):
    user_id = _resolve(user_ref)
    check_access(user_id)
    rows = list_reservations_for_user(user_id)
    return jsonify(items=[serialize_reservation(r) for r in rows])
