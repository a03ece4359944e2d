from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union, cast

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError
from passlib.context import CryptContext
from pydantic import ValidationError

from ..models.user import UserRole
from ..schemas.user import TokenPayload
from .exceptions import TokenExpired, TokenMalformed, TokenSignatureInvalid
from .settings import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.security.BCRYPT_ROUNDS,
)

ALGORITHM = settings.security.JWT_ALGORITHM


def create_access_token(
    user_id: Union[int, str],
    username: str,
    email: str,
    role: Union[UserRole, str],
    expires_delta: Optional[timedelta] = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.security.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "email": email,
        "role": role.value if isinstance(role, UserRole) else role,
        "iat": now,
        "exp": expire,
    }
    encoded_jwt = jwt.encode(
        to_encode, settings.security.JWT_SECRET_KEY, algorithm=ALGORITHM
    )
    return cast(str, encoded_jwt)


def decode_access_token(token: str) -> TokenPayload:
    """Verify a token and return its claims.

    Raises TokenMalformed when the token cannot be parsed or carries bad
    claims, TokenSignatureInvalid when it was not signed with our key, and
    TokenExpired once its 24h window has passed.
    """
    try:
        jwt.get_unverified_claims(token)
    except JWTError:
        raise TokenMalformed()

    try:
        payload = jwt.decode(
            token, settings.security.JWT_SECRET_KEY, algorithms=[ALGORITHM]
        )
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTClaimsError:
        raise TokenMalformed()
    except JWTError:
        raise TokenSignatureInvalid()

    try:
        return TokenPayload(**payload)
    except ValidationError:
        raise TokenMalformed()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return cast(bool, pwd_context.verify(plain_password, hashed_password))
    except ValueError:
        # Stored hash is not one passlib recognises
        return False


def dummy_verify() -> None:
    """Spend the same time as a real verification for unknown usernames."""
    pwd_context.dummy_verify()


def get_password_hash(password: str) -> str:
    return cast(str, pwd_context.hash(password))
