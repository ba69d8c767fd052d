from dataclasses import dataclass
from datetime import datetime

from .errors import ServiceError


@dataclass(frozen=True)
class Decision:
    admitted: bool
    capacity: int | None
    overlapping: int

    @property
    def available(self) -> int | None:
        if self.capacity is None:
            return None
        return max(self.capacity - self.overlapping, 0)


def check_interval(start: datetime, end: datetime, start_field: str = "startReservation", end_field: str = "endReservation") -> None:
    if start >= end:
        raise ServiceError.validation_failed(
            f"{end_field} must be later than {start_field}",
            details={start_field: start.isoformat(), end_field: end.isoformat()},
        )


def intervals_overlap(existing_start: datetime, existing_end: datetime, start: datetime, end: datetime) -> bool:
    """Return True when an existing reservation competes with ``[start, end]``.

    Both intervals are closed, so a reservation ending at 12:00 and one
    starting at 12:00 overlap. This is the same predicate the store uses in
    :func:`evapi.services.reservations.count_overlapping`.
    """
    return existing_start <= end and existing_end >= start


def can_admit(capacity: int | None, overlapping: int) -> Decision:
    """Decide whether one more reservation fits next to ``overlapping`` others.

    A station without a configured capacity admits everything.
    """
    if capacity is None:
        return Decision(admitted=True, capacity=None, overlapping=overlapping)
    return Decision(admitted=overlapping < capacity, capacity=capacity, overlapping=overlapping)
