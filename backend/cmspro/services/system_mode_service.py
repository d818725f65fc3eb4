"""
System Mode Service - the online/offline flag

The flag lives in the ``system_settings`` row keyed ``system.online``. The row
is created on first read. Toggling it publishes ``systemStatusUpdate`` on the
injected broadcast channel once the change is committed.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from datetime import datetime
import logging

from cmspro.models.system_setting import SystemSetting, SYSTEM_ONLINE_KEY
from cmspro.models.user import User
from cmspro.modules.auth.permissions import Capability, ensure_capability
from cmspro.schemas.system import SystemMode
from cmspro.services.broadcast import BroadcastChannel, SYSTEM_STATUS_EVENT

logger = logging.getLogger(__name__)


class SystemModeService:
    """Reads and flips the system online flag"""

    def __init__(self, channel: BroadcastChannel):
        self.channel = channel

    async def _get_or_create(self, db: AsyncSession, for_update: bool = False) -> SystemSetting:
        query = select(SystemSetting).where(SystemSetting.key == SYSTEM_ONLINE_KEY)
        if for_update:
            query = query.with_for_update()

        setting = await db.scalar(query)
        if setting is not None:
            return setting

        setting = SystemSetting(
            key=SYSTEM_ONLINE_KEY,
            value=True,
            description="Whether submitters may create, edit and delete complaints",
        )
        db.add(setting)
        try:
            await db.commit()
        except IntegrityError:
            # Another request created the row first
            await db.rollback()
            setting = await db.scalar(query)
        else:
            logger.info("[SystemMode] Initialised system mode (online)")

        return setting

    @staticmethod
    def _to_mode(setting: SystemSetting) -> SystemMode:
        return SystemMode(
            is_system_online=bool(setting.value),
            updated_by=setting.updated_by,
            updated_at=setting.updated_at,
        )

    async def get_mode(self, db: AsyncSession) -> SystemMode:
        setting = await self._get_or_create(db)
        return self._to_mode(setting)

    async def is_online(self, db: AsyncSession) -> bool:
        return (await self.get_mode(db)).is_system_online

    async def toggle(self, db: AsyncSession, user: User) -> SystemMode:
        """
        Flip the flag (administrators only) and broadcast the new value.

        Concurrent toggles are last-write-wins where the backend has no row
        locks; every committed value is broadcast, so clients converge.
        """
        ensure_capability(user, Capability.TOGGLE_SYSTEM_MODE)

        setting = await self._get_or_create(db, for_update=True)
        setting.value = not bool(setting.value)
        setting.updated_by = user.id
        setting.updated_at = datetime.utcnow()
        await db.commit()

        mode = self._to_mode(setting)
        logger.info(
            f"[SystemMode] {user.email} set system {'online' if mode.is_system_online else 'offline'}"
        )

        await self.channel.publish(SYSTEM_STATUS_EVENT, mode.is_system_online)
        return mode
