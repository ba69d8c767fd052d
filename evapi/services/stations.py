from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..admission import can_admit, check_interval
from ..errors import ServiceError
from ..extensions import db
from ..models import ChargingStation
from ..utils.time import api_iso_z
from .reservations import count_overlapping


def serialize_station(station: ChargingStation) -> dict:
    return {
        "id": station.id,
        "address_id": station.address_id,
        "numberOfSpaces": station.number_of_spaces,
    }


def list_stations() -> list[ChargingStation]:
    return db.session.execute(select(ChargingStation).order_by(ChargingStation.id)).scalars().all()


def get_station(station_id: int) -> ChargingStation:
    station = db.session.get(ChargingStation, station_id)
    if station is None:
        raise ServiceError.not_found(f"There is no chargingStation with id {station_id}.")
    return station


def create_station(address_id: int | None, number_of_spaces: int | None) -> ChargingStation:
    station = ChargingStation(address_id=address_id, number_of_spaces=number_of_spaces)
    db.session.add(station)
    db.session.commit()
    current_app.logger.info("Created charging station %s with %s spaces", station.id, number_of_spaces)
    return station


def update_station(station_id: int, changes: dict) -> ChargingStation:
    station = get_station(station_id)
    for attr in ("address_id", "number_of_spaces"):
        if attr in changes:
            setattr(station, attr, changes[attr])
    db.session.commit()
    return station


def delete_station(station_id: int) -> None:
    station = get_station(station_id)
    if station.reservations:
        raise ServiceError.conflict(
            f"chargingStation {station_id} is still linked to reservations"
        )
    db.session.delete(station)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ServiceError.conflict(f"chargingStation {station_id} could not be deleted", details=str(e.orig))


def station_availability(station_id: int, start, end) -> dict:
    station = get_station(station_id)
    check_interval(start, end, start_field="start", end_field="end")
    booked = count_overlapping(station_id, start, end)
    decision = can_admit(station.number_of_spaces, booked)
    return {
        "chargingStation_id": station.id,
        "numberOfSpaces": station.number_of_spaces,
        "booked": booked,
        "available": decision.available,
        "admissible": decision.admitted,
        "start": api_iso_z(start),
        "end": api_iso_z(end),
    }
