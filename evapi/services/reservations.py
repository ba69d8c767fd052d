"""Reservation store and the admission flow around it.

Creating (or moving) a reservation is a read-decide-write sequence: count the
reservations overlapping the requested interval, compare with the station's
capacity, insert. For one station that sequence must not interleave with
another writer, otherwise two requests can both see a free space and both
insert. Two things enforce that:

* :data:`station_locks` serializes admissions per station inside one process;
* the station row is read ``FOR UPDATE`` so databases with row locks
  (PostgreSQL) serialize admissions across processes too. SQLite ignores the
  clause and relies on the process-local lock.

The lock is held until the insert is committed or the request is rejected.
"""
import threading
from contextlib import contextmanager
from datetime import datetime

from flask import current_app
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ..admission import can_admit, check_interval
from ..errors import ServiceError
from ..extensions import db
from ..models import ChargingStation, Reservation
from ..utils.time import api_iso_z
from .users import check_user_exists


class StationLocks:
    """One lock per charging station id, created on first use."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def _lock_for(self, station_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(station_id)
            if lock is None:
                lock = self._locks[station_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, station_id: int):
        lock = self._lock_for(station_id)
        with lock:
            yield


station_locks = StationLocks()


def serialize_reservation(reservation: Reservation) -> dict:
    return {
        "id": reservation.id,
        "chargingStation_id": reservation.charging_station_id,
        "user_id": reservation.user_id,
        "user": {"username": reservation.user.username if reservation.user else None},
        "startReservation": api_iso_z(reservation.start_reservation),
        "endReservation": api_iso_z(reservation.end_reservation),
    }


def get_station_capacity(station_id: int, for_update: bool = False) -> int | None:
    stmt = (
        select(ChargingStation.number_of_spaces)
        .where(ChargingStation.id == station_id)
    )
    if for_update:
        stmt = stmt.with_for_update()
    row = db.session.execute(stmt).one_or_none()
    if row is None:
        raise ServiceError.not_found(f"There is no chargingStation with id {station_id}.")
    return row.number_of_spaces


def count_overlapping(station_id: int, start: datetime, end: datetime, exclude_id: int | None = None) -> int:
    """Count reservations at the station whose closed interval meets ``[start, end]``."""
    stmt = (
        select(func.count())
        .select_from(Reservation)
        .where(
            Reservation.charging_station_id == station_id,
            Reservation.start_reservation <= end,
            Reservation.end_reservation >= start,
        )
    )
    if exclude_id is not None:
        stmt = stmt.where(Reservation.id != exclude_id)
    return int(db.session.execute(stmt).scalar_one())


def insert_reservation(station_id: int, user_id: int, start: datetime, end: datetime) -> Reservation:
    reservation = Reservation(
        charging_station_id=station_id,
        user_id=user_id,
        start_reservation=start,
        end_reservation=end,
    )
    db.session.add(reservation)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ServiceError.conflict(
            "The reservation could not be stored, the user or chargingStation no longer exists",
            details=str(e.orig),
        )
    return reservation


def _admit(station_id: int, start: datetime, end: datetime, exclude_id: int | None = None):
    """Run the capacity check; caller must hold the station lock."""
    capacity = get_station_capacity(station_id, for_update=True)
    overlapping = 0 if capacity is None else count_overlapping(station_id, start, end, exclude_id)
    decision = can_admit(capacity, overlapping)
    if not decision.admitted:
        db.session.rollback()
        current_app.logger.info(
            "Rejected reservation at station %s for %s - %s (%s/%s spaces taken)",
            station_id, start, end, overlapping, capacity,
        )
        raise ServiceError.capacity_exceeded(
            f"No available spaces at chargingStation {station_id} for this reservation",
            details={"numberOfSpaces": capacity, "overlapping": overlapping},
        )
    return decision


def evaluate_and_admit(station_id: int, user_id: int, start: datetime, end: datetime) -> Reservation:
    # existence first, so a missing user or station is a 404 whatever the interval
    check_user_exists(user_id)
    get_station_capacity(station_id)
    check_interval(start, end)
    with station_locks.hold(station_id):
        decision = _admit(station_id, start, end)
        reservation = insert_reservation(station_id, user_id, start, end)
    current_app.logger.info(
        "Admitted reservation %s at station %s (%s overlapping, capacity %s)",
        reservation.id, station_id, decision.overlapping, decision.capacity,
    )
    return reservation


def list_reservations(session, page: int = 1, page_size: int = 20) -> tuple[list[Reservation], int]:
    q = db.session.query(Reservation)
    if not session.is_admin:
        q = q.filter(Reservation.user_id == session.user_id)
    q = q.order_by(Reservation.start_reservation.asc(), Reservation.id.asc())
    total = q.count()
    rows = q.limit(page_size).offset((page - 1) * page_size).all()
    return rows, total


def list_reservations_for_user(user_id: int) -> list[Reservation]:
    check_user_exists(user_id)
    return db.session.execute(
        select(Reservation)
        .where(Reservation.user_id == user_id)
        .order_by(Reservation.start_reservation.asc())
    ).scalars().all()


def get_reservation(reservation_id: int, session) -> Reservation:
    reservation = db.session.get(Reservation, reservation_id)
    # Someone else's reservation is reported as missing.
    if reservation is None or not session.can_access(reservation.user_id):
        raise ServiceError.not_found("No reservation with this id exists")
    return reservation


def update_reservation(reservation_id: int, session, station_id: int, start: datetime, end: datetime) -> Reservation:
    """Replace station and interval of a reservation.

    The owner is kept. The new interval goes through the same capacity check
    as a new booking, with the reservation itself left out of the count.
    """
    reservation = get_reservation(reservation_id, session)
    check_user_exists(reservation.user_id)
    get_station_capacity(station_id)
    check_interval(start, end)
    with station_locks.hold(station_id):
        _admit(station_id, start, end, exclude_id=reservation.id)
        reservation.charging_station_id = station_id
        reservation.start_reservation = start
        reservation.end_reservation = end
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise ServiceError.conflict("The reservation could not be updated", details=str(e.orig))
    return reservation


def delete_reservation(reservation_id: int, session) -> None:
    reservation = get_reservation(reservation_id, session)
    db.session.delete(reservation)
    db.session.commit()
