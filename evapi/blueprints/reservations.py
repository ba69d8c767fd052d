from flask import Blueprint, request, jsonify, g
from pydantic import ValidationError

from ..auth import require_authentication
from ..http import jerror
from ..schemas import ReservationRequest
from ..services import reservations as service

bp = Blueprint("reservations", __name__)


def _reservation_payload():
    payload = request.get_json(silent=True)
    if not payload:
        return None, jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")
    try:
        return ReservationRequest.model_validate(payload), None
    except ValidationError as e:
        return None, jerror(422, "VALIDATION_ERROR", "Invalid input.", details=e.errors(include_url=False, include_context=False))


@bp.get("")
@require_authentication
def list_reservations():
    """
    Admins get every reservation, users their own.
    Query: ?page=1&page_size=20
    """
    page = max(request.args.get("page", 1, type=int), 1)
    page_size = min(max(request.args.get("page_size", 20, type=int), 1), 100)

    rows, total = service.list_reservations(g.session, page=page, page_size=page_size)
    return jsonify(
        page=page,
        pageSize=page_size,
        total=total,
        items=[service.serialize_reservation(r) for r in rows],
    )


@bp.post("")
@require_authentication
def create_reservation():
    data, error = _reservation_payload()
    if error:
        return error

    reservation = service.evaluate_and_admit(
        data.charging_station_id,
        g.session.user_id,
        data.start_reservation,
        data.end_reservation,
    )
    return jsonify(service.serialize_reservation(reservation)), 201


@bp.get("/<int:reservation_id>")
@require_authentication
def get_reservation(reservation_id: int):
    reservation = service.get_reservation(reservation_id, g.session)
    return jsonify(service.serialize_reservation(reservation))


@bp.put("/<int:reservation_id>")
@require_authentication
def update_reservation(reservation_id: int):
    data, error = _reservation_payload()
    if error:
        return error

    reservation = service.update_reservation(
        reservation_id,
        g.session,
        data.charging_station_id,
        data.start_reservation,
        data.end_reservation,
    )
    return jsonify(service.serialize_reservation(reservation))


@bp.delete("/<int:reservation_id>")
@require_authentication
def delete_reservation(reservation_id: int):
    service.delete_reservation(reservation_id, g.session)
    return "", 204
