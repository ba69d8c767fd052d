from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request

from .errors import ServiceError
from .models import Role


@dataclass(frozen=True)
class Session:
    user_id: int
    roles: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles

    def can_access(self, owner_id: int) -> bool:
        """Admins may touch everything, everyone else only what they own."""
        return self.is_admin or self.user_id == owner_id


def generate_jwt(user) -> str:
    cfg = current_app.config
    now = datetime.now(tz=timezone.utc)
    claims = {
        "sub": str(user.id),
        "roles": list(user.roles or []),
        "aud": cfg["JWT_AUDIENCE"],
        "iss": cfg["JWT_ISSUER"],
        "iat": now,
        "exp": now + timedelta(seconds=cfg["JWT_EXPIRATION_SECONDS"]),
    }
    return jwt.encode(claims, cfg["JWT_SECRET"], algorithm="HS256")


def verify_jwt(token: str) -> dict:
    cfg = current_app.config
    return jwt.decode(
        token,
        cfg["JWT_SECRET"],
        algorithms=["HS256"],
        audience=cfg["JWT_AUDIENCE"],
        issuer=cfg["JWT_ISSUER"],
        options={"require": ["exp", "sub"]},
    )


def check_and_parse_session(auth_header: str | None) -> Session:
    if not auth_header:
        raise ServiceError.unauthorized("You need to be signed in")

    auth_header = auth_header.strip()
    if not auth_header.lower().startswith("bearer "):
        raise ServiceError.unauthorized("Invalid authentication token")

    token = auth_header[7:].strip()
    try:
        claims = verify_jwt(token)
    except jwt.ExpiredSignatureError:
        raise ServiceError.unauthorized("The token has expired")
    except jwt.InvalidTokenError as e:
        current_app.logger.warning("Rejected token: %s", e)
        raise ServiceError.unauthorized(f"Invalid authentication token: {e}")

    return Session(user_id=int(claims["sub"]), roles=list(claims.get("roles") or []))


def check_role(role: str, roles: list[str]) -> None:
    if role not in roles:
        raise ServiceError.forbidden("You are not allowed to view this part of the application")


def require_authentication(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.session = check_and_parse_session(request.headers.get("Authorization"))
        return view(*args, **kwargs)
    return wrapper


def require_role(role: str):
    """Must be stacked below :func:`require_authentication`."""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            check_role(role, g.session.roles)
            return view(*args, **kwargs)
        return wrapper
    return decorator


require_admin = require_role(Role.ADMIN)


def check_access(owner_id: int) -> None:
    if not g.session.can_access(owner_id):
        raise ServiceError.forbidden("You are not allowed to access this resource")
