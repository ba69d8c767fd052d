from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .utils.time import db_utc_naive, utcnow_naive


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterUserRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("username cannot be blank")
        return v


class UpdateUserRequest(BaseModel):
    username: str | None = Field(None, min_length=1, max_length=120)
    email: EmailStr | None = None


class ChargingStationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address_id: int | None = None
    number_of_spaces: int | None = Field(None, alias="numberOfSpaces")

    @field_validator("number_of_spaces")
    @classmethod
    def validate_spaces(cls, v: int | None):
        if v is None:
            return v
        if v == 0:
            raise ValueError("numberOfSpaces cannot be 0")
        if v < 0:
            raise ValueError("numberOfSpaces cannot be negative")
        return v


class ReservationRequest(BaseModel):
    """Body of POST and PUT on /api/reservations.

    The owner is never taken from the body; the handler uses the session.
    """
    model_config = ConfigDict(populate_by_name=True)

    charging_station_id: int = Field(..., alias="chargingStation_id")
    start_reservation: datetime = Field(..., alias="startReservation")
    end_reservation: datetime = Field(..., alias="endReservation")

    @field_validator("start_reservation", "end_reservation")
    @classmethod
    def validate_future(cls, v: datetime):
        v = db_utc_naive(v)
        if v <= utcnow_naive():
            raise ValueError("must be a valid ISO date in the future")
        return v


class AvailabilityQuery(BaseModel):
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def normalize(cls, v: datetime):
        return db_utc_naive(v)
