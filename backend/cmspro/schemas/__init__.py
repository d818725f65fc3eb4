# Pydantic schemas
from cmspro.schemas.auth import (
    UserRegister,
    UserLogin,
    ProfileUpdate,
    PublicProfile,
    UserResponse,
    LoginResponse,
    RegisterResponse,
    UserListResponse,
)
from cmspro.schemas.complaint import (
    ComplaintCreate,
    ComplaintOwnerUpdate,
    ComplaintAdminUpdate,
    ComplaintResponse,
    ComplaintEnvelope,
    ComplaintListResponse,
    ComplaintStats,
    ComplaintStatsResponse,
)
from cmspro.schemas.system import SystemMode, SystemModeResponse
