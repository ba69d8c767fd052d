import random
from datetime import datetime, timedelta, timezone
import click
from flask import Flask, jsonify, request
from flask.cli import with_appcontext
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from .extensions import db, migrate
from .config import Config
from .errors import ServiceError
from .http import jerror
from .blueprints.health import bp as health_bp
from .blueprints.reservations import bp as reservations_bp
from .blueprints.sessions import bp as sessions_bp
from .blueprints.stations import bp as stations_bp
from .blueprints.users import bp as users_bp
from .http import UserRefConverter
from .models import ChargingStation, Reservation, Role, User


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def handle_service_error(e: ServiceError):
        app.logger.info("%s %s -> %s %s", request.method, request.path, e.status, e.code)
        return jerror(e.status, e.code, e.message, e.details)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        if e.code == 404:
            return jerror(404, "NOT_FOUND", f"Unknown resource: {request.path}")
        return jerror(e.code or 500, e.name.upper().replace(" ", "_"), e.description or e.name)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        app.logger.exception("Error occurred while handling %s %s", request.method, request.path)
        db.session.rollback()
        message = "Unexpected error occurred. Please try again later."
        if app.config["APP_ENV"] != "production":
            message = str(e) or message
        return jerror(500, "INTERNAL_SERVER_ERROR", message)


def _register_request_logging(app: Flask) -> None:
    @app.before_request
    def log_request():
        app.logger.debug("-> %s %s", request.method, request.path)

    @app.after_request
    def log_response(response):
        app.logger.info("%s %s %s", request.method, response.status_code, request.path)
        return response


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config["LOG_LEVEL"])

    CORS(
        app,
        origins=app.config["CORS_ORIGINS"],
        allow_headers=["Accept", "Content-Type", "Authorization"],
        max_age=app.config["CORS_MAX_AGE"],
    )

    db.init_app(app)
    migrate.init_app(app, db)

    _register_error_handlers(app)
    _register_request_logging(app)

    app.url_map.converters["user_ref"] = UserRefConverter
    app.register_blueprint(health_bp, url_prefix="/api/health")
    app.register_blueprint(sessions_bp, url_prefix="/api/sessions")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(stations_bp, url_prefix="/api/chargingStations")
    app.register_blueprint(reservations_bp, url_prefix="/api/reservations")

    @app.get("/health")
    def health():
        return jsonify(status="ok")

    @click.command("seed")
    @with_appcontext
    def seed_command():
        """Creates sample data for the database."""
        from .services.reservations import evaluate_and_admit
        from .services.users import create_user

        db.session.query(Reservation).delete()
        db.session.query(ChargingStation).delete()
        db.session.query(User).delete()
        db.session.commit()
        click.echo("Cleared existing data.")

        admin = create_user("admin", "admin@example.com", "admin-password", roles=[Role.ADMIN, Role.USER])
        users = [admin] + [
            create_user(f"driver{i+1}", f"driver{i+1}@example.com", "driver-password")
            for i in range(5)
        ]
        click.echo(f"Created {len(users)} users.")

        stations = [ChargingStation(address_id=None, number_of_spaces=n) for n in (1, 2, 4, None)]
        db.session.add_all(stations)
        db.session.commit()
        click.echo(f"Created {len(stations)} charging stations.")

        created = rejected = 0
        today = datetime.now(timezone.utc).replace(tzinfo=None, minute=0, second=0, microsecond=0)
        for _ in range(30):
            station = random.choice(stations)
            start = today + timedelta(days=random.randint(1, 3), hours=random.randint(0, 10))
            end = start + timedelta(minutes=random.choice([30, 60, 90, 120]))
            try:
                evaluate_and_admit(station.id, random.choice(users).id, start, end)
                created += 1
            except ServiceError as e:
                if e.code != "CAPACITY_EXCEEDED":
                    raise
                rejected += 1

        click.echo(f"Created {created} reservations, {rejected} rejected for capacity.")
        click.echo("Database seeded!")

    app.cli.add_command(seed_command)

    return app
