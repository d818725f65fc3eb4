from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON
from datetime import datetime

from cmspro.core.database import Base
from cmspro.core.types import GUID, generate_uuid

# Key of the singleton row holding the online/offline flag
SYSTEM_ONLINE_KEY = "system.online"


class SystemSetting(Base):
    """Key/value system settings changed by administrators"""
    __tablename__ = "system_settings"

    id = Column(GUID, primary_key=True, default=generate_uuid)

    # Setting key (unique identifier)
    key = Column(String(100), unique=True, nullable=False, index=True)

    # Setting value (stored as JSON for flexibility)
    value = Column(JSON, nullable=False)

    description = Column(Text, nullable=True)

    # Audit trail
    updated_by = Column(GUID, ForeignKey("users.id"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<SystemSetting {self.key}={self.value!r}>"
