from flask import Blueprint, request, jsonify, current_app
from pydantic import ValidationError

from ..http import allow, client_ip, jerror
from ..schemas import LoginRequest
from ..services import users as service

bp = Blueprint("sessions", __name__)

@bp.post("")
def login():
    ip = client_ip()
    if not allow(f"login:{ip}"):
        current_app.logger.warning("Login rate limit hit for %s", ip)
        return jerror(429, "RATE_LIMITED", "Too many requests. Try again shortly.")

    payload = request.get_json(silent=True)
    if not payload:
        return jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")

    try:
        data = LoginRequest.model_validate(payload)
    except ValidationError as e:
        return jerror(422, "VALIDATION_ERROR", "Invalid input.", details=e.errors(include_url=False, include_context=False))

    token = service.login(data.email, data.password)
    return jsonify(token=token), 200
