from flask import Blueprint, request, jsonify
from pydantic import ValidationError

from ..auth import require_admin, require_authentication
from ..http import jerror
from ..schemas import AvailabilityQuery, ChargingStationRequest
from ..services import stations as service

bp = Blueprint("charging_stations", __name__)


def _station_payload():
    payload = request.get_json(silent=True)
    if payload is None:
        return None, jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")
    try:
        return ChargingStationRequest.model_validate(payload), None
    except ValidationError as e:
        return None, jerror(422, "VALIDATION_ERROR", "Invalid input.", details=e.errors(include_url=False, include_context=False))


@bp.get("")
@require_authentication
def list_stations():
    return jsonify(items=[service.serialize_station(s) for s in service.list_stations()])


@bp.get("/<int:station_id>")
@require_authentication
def get_station(station_id: int):
    return jsonify(service.serialize_station(service.get_station(station_id)))


@bp.get("/<int:station_id>/availability")
@require_authentication
def availability(station_id: int):
    start = request.args.get("start")
    end = request.args.get("end")
    if not start or not end:
        return jerror(400, "MISSING_INTERVAL", "Missing 'start' or 'end' query parameter.")
    try:
        query = AvailabilityQuery.model_validate({"start": start, "end": end})
    except ValidationError as e:
        return jerror(422, "BAD_TIME", "Invalid time format, expected ISO 8601.", details=e.errors(include_url=False, include_context=False))

    return jsonify(service.station_availability(station_id, query.start, query.end))


@bp.post("")
@require_authentication
@require_admin
def create_station():
    data, error = _station_payload()
    if error:
        return error
    station = service.create_station(data.address_id, data.number_of_spaces)
    return jsonify(service.serialize_station(station)), 201


@bp.put("/<int:station_id>")
@require_authentication
@require_admin
def update_station(station_id: int):
    data, error = _station_payload()
    if error:
        return error
    # only fields present in the body are changed, an explicit null clears the capacity
    changes = data.model_dump(include=data.model_fields_set)
    station = service.update_station(station_id, changes)
    return jsonify(service.serialize_station(station))


@bp.delete("/<int:station_id>")
@require_authentication
@require_admin
def delete_station(station_id: int):
    service.delete_station(station_id)
    return "", 204
