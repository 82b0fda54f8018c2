from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from taskboard.core.config import settings
from taskboard.core.errors import UnauthenticatedError
from taskboard.models.user import UserRole


@dataclass(frozen=True)
class Actor:
    """The caller every guard and service call is evaluated for.

    Built from verified token claims only, so resolving it never needs a
    round trip to the store.
    """

    id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(
    user_id: int,
    role: UserRole,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {"sub": str(user_id), "role": role.value, "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Actor:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise UnauthenticatedError("Could not validate credentials") from exc

    subject = payload.get("sub")
    role = payload.get("role")
    if not isinstance(subject, str) or not subject.isdigit():
        raise UnauthenticatedError("Invalid token payload")
    try:
        user_role = UserRole(role)
    except ValueError as exc:
        raise UnauthenticatedError("Invalid token payload") from exc
    return Actor(id=int(subject), role=user_role)
