import threading
from datetime import datetime, timezone

from flask import current_app, jsonify, request
from werkzeug.routing import BaseConverter

def jerror(status: int, code: str, message: str, details=None):
    payload = {"code": code, "message": message}
    if details:
        payload["details"] = details
    return jsonify(payload), status


class UserRefConverter(BaseConverter):
    """Matches a numeric user id or the literal ``me``."""
    regex = r"(?:\d+|me)"

    def to_python(self, value):
        return value if value == "me" else int(value)

    def to_url(self, value):
        return str(value)


_rate_state: dict[str, tuple[int, int]] = {}
_rate_guard = threading.Lock()


def allow(key: str) -> bool:
    """Fixed-window counter per key; entries from earlier windows are dropped."""
    window_seconds = current_app.config["AUTH_RATE_WINDOW"]
    now = int(datetime.now(tz=timezone.utc).timestamp())
    window = now // window_seconds
    with _rate_guard:
        for stale in [k for k, (_, win) in _rate_state.items() if win != window]:
            del _rate_state[stale]
        count, _ = _rate_state.get(key, (0, window))
        count += 1
        _rate_state[key] = (count, window)
    return count <= current_app.config["AUTH_RATE_MAX"]


def client_ip() -> str:
    fwd = request.headers.get("X-Forwarded-For")
    return (fwd.split(",")[0].strip() if fwd else request.remote_addr or "0.0.0.0")
