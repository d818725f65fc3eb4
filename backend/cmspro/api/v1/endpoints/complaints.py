from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cmspro.api.v1.deps import get_complaint_service
from cmspro.core.database import get_db
from cmspro.models.user import User
from cmspro.modules.auth.dependencies import get_current_user, get_current_admin
from cmspro.schemas.complaint import (
    ComplaintCreate,
    ComplaintOwnerUpdate,
    ComplaintAdminUpdate,
    ComplaintResponse,
    ComplaintEnvelope,
    ComplaintListResponse,
    ComplaintStatsResponse,
)
from cmspro.services.complaint_service import ComplaintService

router = APIRouter()


@router.get("", response_model=ComplaintListResponse)
async def list_complaints(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    complaints: ComplaintService = Depends(get_complaint_service)
):
    """Administrators get every complaint, newest first; submitters only their own"""
    items = await complaints.list_for(db, current_user)
    return ComplaintListResponse(
        count=len(items),
        data=[ComplaintResponse.model_validate(c) for c in items],
    )


@router.post("", response_model=ComplaintEnvelope, status_code=status.HTTP_201_CREATED)
async def create_complaint(
    complaint_data: ComplaintCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    complaints: ComplaintService = Depends(get_complaint_service)
):
    complaint = await complaints.create(db, current_user, complaint_data)
    return ComplaintEnvelope(data=ComplaintResponse.model_validate(complaint))


# Must be registered before /{complaint_id}
@router.get("/stats", response_model=ComplaintStatsResponse)
async def complaint_stats(
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    complaints: ComplaintService = Depends(get_complaint_service)
):
    """Counts by status, priority and category (administrators only)"""
    stats = await complaints.stats(db, current_user)
    return ComplaintStatsResponse(data=stats)


@router.get("/{complaint_id}", response_model=ComplaintEnvelope)
async def get_complaint(
    complaint_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    complaints: ComplaintService = Depends(get_complaint_service)
):
    complaint = await complaints.get(db, current_user, complaint_id)
    return ComplaintEnvelope(data=ComplaintResponse.model_validate(complaint))


@router.put("/{complaint_id}", response_model=ComplaintEnvelope)
async def transition_complaint(
    complaint_id: str,
    update: ComplaintAdminUpdate,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    complaints: ComplaintService = Depends(get_complaint_service)
):
    """Administrative status/priority/resolution update"""
    complaint = await complaints.admin_transition(db, current_user, complaint_id, update)
    return ComplaintEnvelope(data=ComplaintResponse.model_validate(complaint))


@router.put("/{complaint_id}/update", response_model=ComplaintEnvelope)
async def edit_own_complaint(
    complaint_id: str,
    update: ComplaintOwnerUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    complaints: ComplaintService = Depends(get_complaint_service)
):
    """Owner edit, only while the complaint is still Pending"""
    complaint = await complaints.owner_edit(db, current_user, complaint_id, update)
    return ComplaintEnvelope(data=ComplaintResponse.model_validate(complaint))


@router.delete("/{complaint_id}")
async def delete_complaint(
    complaint_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    complaints: ComplaintService = Depends(get_complaint_service)
):
    await complaints.delete(db, current_user, complaint_id)
    return {"success": True, "message": "Complaint removed"}
