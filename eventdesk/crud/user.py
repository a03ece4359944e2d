import logging
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.db_utils import db_transaction
from ..core.exceptions import DuplicateIdentity
from ..core.security import dummy_verify, get_password_hash, verify_password
from ..models.user import User, UserRole

logger = logging.getLogger(__name__)


async def get(db: AsyncSession, id: Any) -> Optional[User]:
    result = await db.execute(select(User).filter(User.id == id))
    first: Optional[User] = result.scalars().first()
    return first


async def get_by_username(db: AsyncSession, *, username: str) -> Optional[User]:
    result = await db.execute(select(User).filter(User.username == username))
    first: Optional[User] = result.scalars().first()
    return first


async def get_by_email(db: AsyncSession, *, email: str) -> Optional[User]:
    result = await db.execute(select(User).filter(User.email == email))
    first: Optional[User] = result.scalars().first()
    return first


async def create_user(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    # Hash before opening the transaction so the write lock is held briefly
    hashed_password = get_password_hash(password)

    try:
        async with db_transaction(db):
            existing = await db.execute(
                select(User.id).filter(
                    or_(User.username == username, User.email == email)
                )
            )
            if existing.first() is not None:
                raise DuplicateIdentity()

            db_obj = User(
                username=username,
                email=email,
                hashed_password=hashed_password,
                role=role,
            )
            db.add(db_obj)
            await db.flush()
    except IntegrityError:
        # Lost a race against a concurrent sign-up with the same identity
        raise DuplicateIdentity()

    logger.info("User %s created with role %s", db_obj.id, role.value)
    return db_obj


async def authenticate(
    db: AsyncSession, *, username: str, password: str
) -> Optional[User]:
    user = await get_by_username(db, username=username)
    # Release the read transaction (and SQLite's write lock) before hashing
    await db.commit()
    if not user:
        dummy_verify()
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
