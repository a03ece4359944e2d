from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..core import security
from ..core.database_manager import db_manager
from ..core.exceptions import Forbidden, NotFound, Unauthorized
from ..crud import user as user_crud
from ..models.user import User, UserRole
from ..schemas.user import TokenPayload

# auto_error is off so a missing header becomes our 401, not FastAPI's
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.get_session() as session:
        yield session


def get_token_payload(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenPayload:
    """Verify the bearer token and attach its claims to the request"""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access token required")

    payload = security.decode_access_token(credentials.credentials)
    request.state.claims = payload
    return payload


def require_admin(
    payload: TokenPayload = Depends(get_token_payload),
) -> TokenPayload:
    """Require the admin role"""
    if payload.role != UserRole.ADMIN:
        raise Forbidden("Admin access required")
    return payload


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    payload: TokenPayload = Depends(get_token_payload),
) -> User:
    user = await user_crud.get(db, id=payload.sub)
    if not user:
        raise NotFound("User not found")
    return user
