from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cmspro.api.v1.deps import get_system_mode_service
from cmspro.core.database import get_db
from cmspro.models.user import User
from cmspro.modules.auth.dependencies import get_current_admin
from cmspro.schemas.system import SystemModeResponse
from cmspro.services.system_mode_service import SystemModeService

router = APIRouter()


@router.get("/status", response_model=SystemModeResponse)
async def get_system_status(
    db: AsyncSession = Depends(get_db),
    mode_service: SystemModeService = Depends(get_system_mode_service)
):
    """Public read of the online flag"""
    return SystemModeResponse(data=await mode_service.get_mode(db))


@router.put("/toggle", response_model=SystemModeResponse)
async def toggle_system_status(
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    mode_service: SystemModeService = Depends(get_system_mode_service)
):
    """Flip the online flag and notify connected clients (administrators only)"""
    return SystemModeResponse(data=await mode_service.toggle(db, current_user))
