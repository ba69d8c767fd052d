import platform

from flask import Blueprint, jsonify, current_app

bp = Blueprint("health", __name__)


@bp.get("/ping")
def ping():
    return jsonify(pong=True)


@bp.get("/version")
def version():
    return jsonify(
        env=current_app.config["APP_ENV"],
        version=current_app.config["APP_VERSION"],
        python=platform.python_version(),
    )
