"""Schema creation and first-startup provisioning."""

import logging

from ..crud import user as user_crud
from ..models.user import UserRole
from .database_manager import DatabaseManager
from .settings import settings

logger = logging.getLogger(__name__)


async def init_db(manager: DatabaseManager) -> None:
    await manager.create_all()

    async with manager.get_session() as session:
        admin = await user_crud.get_by_username(
            session, username=settings.FIRST_ADMIN_USERNAME
        )
        # create_user hashes outside its own transaction; end the lookup first
        await session.commit()
        if admin is not None:
            return

        await user_crud.create_user(
            session,
            username=settings.FIRST_ADMIN_USERNAME,
            email=settings.FIRST_ADMIN_EMAIL,
            password=settings.FIRST_ADMIN_PASSWORD,
            role=UserRole.ADMIN,
        )
        # Fixed, documented credentials: override FIRST_ADMIN_* before deploying
        logger.warning(
            "Default administrator '%s' provisioned from FIRST_ADMIN_* settings",
            settings.FIRST_ADMIN_USERNAME,
        )
