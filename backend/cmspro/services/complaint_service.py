"""
Complaint Service - Business logic for the complaint lifecycle

Handles:
- Filing, listing and reading complaints
- Administrative transitions (status, priority, resolution)
- Owner edits, allowed only while a complaint is Pending
- Aggregate statistics for the admin dashboard

Writes by non-administrators are refused while the system is offline.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime
from enum import Enum
from typing import Dict, List, Type

from cmspro.core.exceptions import (
    ComplaintNotFoundError,
    ForbiddenError,
    InvalidStateError,
    SystemOfflineError,
)
from cmspro.core.logging_config import logger, set_complaint_id
from cmspro.core.types import is_valid_uuid
from cmspro.models.complaint import (
    Complaint,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
)
from cmspro.models.user import User
from cmspro.modules.auth.permissions import Capability, ensure_capability, has_capability
from cmspro.schemas.complaint import (
    ComplaintCreate,
    ComplaintOwnerUpdate,
    ComplaintAdminUpdate,
    ComplaintStats,
)
from cmspro.services.system_mode_service import SystemModeService


class ComplaintService:
    """Complaint lifecycle manager"""

    def __init__(self, mode_service: SystemModeService):
        self.mode_service = mode_service

    async def _ensure_writable(self, db: AsyncSession, user: User) -> None:
        if has_capability(user, Capability.BYPASS_OFFLINE_MODE):
            return
        if not await self.mode_service.is_online(db):
            logger.warning(f"[Complaint] Write by {user.email} refused: system offline")
            raise SystemOfflineError()

    async def _load(self, db: AsyncSession, complaint_id: str) -> Complaint:
        if not is_valid_uuid(complaint_id):
            raise ComplaintNotFoundError(complaint_id)

        complaint = await db.scalar(select(Complaint).where(Complaint.id == complaint_id))
        if complaint is None:
            raise ComplaintNotFoundError(complaint_id)

        set_complaint_id(str(complaint.id))
        return complaint

    # ==================== CREATE / READ ====================

    async def create(self, db: AsyncSession, user: User, data: ComplaintCreate) -> Complaint:
        ensure_capability(user, Capability.FILE_COMPLAINT)
        await self._ensure_writable(db, user)

        complaint = Complaint(
            title=data.title,
            description=data.description,
            category=data.category,
            priority=data.priority,
            status=ComplaintStatus.PENDING,
            user_id=user.id,
        )
        complaint.owner = user
        db.add(complaint)
        await db.commit()

        set_complaint_id(str(complaint.id))
        logger.log_complaint_event("created", str(complaint.id), owner=str(user.id))
        return complaint

    async def list_for(self, db: AsyncSession, user: User) -> List[Complaint]:
        """Administrators see every complaint, everyone else only their own"""
        query = select(Complaint).order_by(Complaint.created_at.desc())
        if not has_capability(user, Capability.VIEW_ALL_COMPLAINTS):
            query = query.where(Complaint.user_id == user.id)

        result = await db.execute(query)
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, user: User, complaint_id: str) -> Complaint:
        complaint = await self._load(db, complaint_id)
        if not complaint.is_owned_by(user.id) and not has_capability(user, Capability.VIEW_ALL_COMPLAINTS):
            raise ForbiddenError("Not authorized to view this complaint")
        return complaint

    # ==================== MUTATIONS ====================

    async def admin_transition(
        self,
        db: AsyncSession,
        user: User,
        complaint_id: str,
        data: ComplaintAdminUpdate
    ) -> Complaint:
        """Set status, priority and/or resolution; any status may follow any other"""
        ensure_capability(user, Capability.TRANSITION_COMPLAINT)
        complaint = await self._load(db, complaint_id)

        previous = complaint.status
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(complaint, field, value)
        complaint.updated_at = datetime.utcnow()
        await db.commit()

        logger.log_complaint_event(
            "transitioned",
            str(complaint.id),
            from_status=previous.value,
            to_status=complaint.status.value,
            fields=sorted(changes),
        )
        return complaint

    async def owner_edit(
        self,
        db: AsyncSession,
        user: User,
        complaint_id: str,
        data: ComplaintOwnerUpdate
    ) -> Complaint:
        """Owner changes title/description/category/priority while still Pending"""
        complaint = await self._load(db, complaint_id)

        if not complaint.is_owned_by(user.id):
            raise ForbiddenError("Not authorized to update this complaint")

        await self._ensure_writable(db, user)

        if complaint.status != ComplaintStatus.PENDING:
            raise InvalidStateError(
                "Cannot update complaint that is already being processed",
                current_state=complaint.status.value,
            )

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(complaint, field, value)
        complaint.updated_at = datetime.utcnow()
        await db.commit()

        logger.log_complaint_event("edited", str(complaint.id), fields=sorted(changes))
        return complaint

    async def delete(self, db: AsyncSession, user: User, complaint_id: str) -> None:
        """Owner or administrator; allowed in every status"""
        complaint = await self._load(db, complaint_id)

        if not complaint.is_owned_by(user.id) and not has_capability(user, Capability.DELETE_ANY_COMPLAINT):
            raise ForbiddenError("Not authorized to delete this complaint")

        await self._ensure_writable(db, user)

        await db.delete(complaint)
        await db.commit()
        logger.log_complaint_event("deleted", complaint_id, by=str(user.id))

    # ==================== STATS ====================

    @staticmethod
    async def _count_by(db: AsyncSession, column, enum_cls: Type[Enum]) -> Dict[str, int]:
        counts = {member.value: 0 for member in enum_cls}
        result = await db.execute(
            select(column, func.count(Complaint.id)).group_by(column)
        )
        for value, count in result.all():
            counts[enum_cls(value).value] = count
        return counts

    async def stats(self, db: AsyncSession, user: User) -> ComplaintStats:
        ensure_capability(user, Capability.VIEW_STATS)

        total = await db.scalar(select(func.count(Complaint.id)))
        return ComplaintStats(
            total=total or 0,
            status=await self._count_by(db, Complaint.status, ComplaintStatus),
            priority=await self._count_by(db, Complaint.priority, ComplaintPriority),
            category=await self._count_by(db, Complaint.category, ComplaintCategory),
        )
