# Re-export all models for convenient imports
from cmspro.models.user import User, UserRole, AccountStatus
from cmspro.models.complaint import (
    Complaint,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
)
from cmspro.models.system_setting import SystemSetting, SYSTEM_ONLINE_KEY

__all__ = [
    # User
    "User",
    "UserRole",
    "AccountStatus",
    # Complaint
    "Complaint",
    "ComplaintCategory",
    "ComplaintPriority",
    "ComplaintStatus",
    # System
    "SystemSetting",
    "SYSTEM_ONLINE_KEY",
]
