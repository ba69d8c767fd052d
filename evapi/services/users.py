from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from ..auth import generate_jwt
from ..errors import ServiceError
from ..extensions import db
from ..models import Role, User


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "roles": list(user.roles or []),
    }


def _handle_integrity_error(e: IntegrityError) -> ServiceError:
    db.session.rollback()
    message = str(e.orig).lower()
    if "email" in message:
        return ServiceError.validation_failed("There is already a user with this email address")
    if "username" in message:
        return ServiceError.validation_failed("There is already a user with this username")
    return ServiceError.validation_failed("This item already exists")


def list_users() -> list[User]:
    return db.session.execute(select(User).order_by(User.id)).scalars().all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise ServiceError.not_found(f"There is no user with id {user_id}.")
    return user


def check_user_exists(user_id: int) -> None:
    get_user(user_id)


def create_user(username: str, email: str, password: str, roles: list[str] | None = None) -> User:
    user = User(
        username=username,
        email=email.lower(),
        password_hash=generate_password_hash(password),
        roles=roles or [Role.USER],
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as e:
        raise _handle_integrity_error(e)
    return user


def register(username: str, email: str, password: str) -> str:
    user = create_user(username, email, password)
    current_app.logger.info("Registered user %s", user.id)
    return generate_jwt(user)


def login(email: str, password: str) -> str:
    user = db.session.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()
    # same message for unknown email and wrong password
    if user is None or not check_password_hash(user.password_hash, password):
        raise ServiceError.unauthorized("The given email and password do not match")
    return generate_jwt(user)


def update_user(user_id: int, changes: dict) -> User:
    user = get_user(user_id)
    if changes.get("username") is not None:
        user.username = changes["username"].strip()
    if changes.get("email") is not None:
        user.email = changes["email"].lower()
    try:
        db.session.commit()
    except IntegrityError as e:
        raise _handle_integrity_error(e)
    return user


def delete_user(user_id: int) -> None:
    user = get_user(user_id)
    db.session.delete(user)
    db.session.commit()
