from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from cmspro.core.database import Base
from cmspro.core.types import GUID, generate_uuid


class ComplaintCategory(str, enum.Enum):
    GENERAL = "General"
    TECHNICAL = "Technical"
    HOSTEL = "Hostel"
    ACADEMIC = "Academic"
    OTHER = "Other"


class ComplaintPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ComplaintStatus(str, enum.Enum):
    """Pending is the only state in which the owner may still edit"""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    REJECTED = "Rejected"


TITLE_MAX_LENGTH = 100


class Complaint(Base):
    """Complaint filed by an account"""
    __tablename__ = "complaints"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False)

    category = Column(SQLEnum(ComplaintCategory), nullable=False)
    priority = Column(SQLEnum(ComplaintPriority), default=ComplaintPriority.MEDIUM, nullable=False)
    status = Column(SQLEnum(ComplaintStatus), default=ComplaintStatus.PENDING, nullable=False, index=True)

    # Set once at creation, never reassigned
    user_id = Column(GUID, ForeignKey("users.id"), nullable=False, index=True)
    resolution = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Joined so async serializers never trigger a lazy load
    owner = relationship("User", lazy="joined")

    def is_owned_by(self, user_id: str) -> bool:
        return str(self.user_id) == str(user_id)

    def __repr__(self):
        return f"<Complaint {self.id} [{self.status.value if self.status else '?'}]>"
