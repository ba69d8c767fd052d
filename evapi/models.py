
from sqlalchemy import CheckConstraint, Index, func
from .extensions import db


class Role:
    USER = "USER"
    ADMIN = "ADMIN"


class User(db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(120), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    roles = db.Column(db.JSON, nullable=False, default=lambda: [Role.USER])
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    reservations = db.relationship("Reservation", back_populates="user", cascade="all, delete-orphan")


class ChargingStation(db.Model):
    __tablename__ = "charging_stations"
    id = db.Column(db.Integer, primary_key=True)
    address_id = db.Column(db.Integer, nullable=True)
    # NULL means the station takes any number of reservations.
    number_of_spaces = db.Column(db.Integer, nullable=True)

    reservations = db.relationship("Reservation", back_populates="charging_station")

    __table_args__ = (
        CheckConstraint(
            "number_of_spaces IS NULL OR number_of_spaces > 0",
            name="ck_charging_station_spaces_positive",
        ),
    )


class Reservation(db.Model):
    __tablename__ = "reservations"
    id = db.Column(db.Integer, primary_key=True)
    charging_station_id = db.Column(
        db.Integer, db.ForeignKey("charging_stations.id"), nullable=False, index=True
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # naive UTC
    start_reservation = db.Column(db.DateTime, nullable=False)
    end_reservation = db.Column(db.DateTime, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    charging_station = db.relationship("ChargingStation", back_populates="reservations")
    user = db.relationship("User", back_populates="reservations")

    __table_args__ = (
        Index(
            "ix_reservations_station_interval",
            "charging_station_id",
            "start_reservation",
            "end_reservation",
        ),
    )
