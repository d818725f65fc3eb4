from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from datetime import datetime
import enum

from cmspro.core.database import Base
from cmspro.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """Account tiers"""
    SUBMITTER = "submitter"
    ADMINISTRATOR = "administrator"


class AccountStatus(str, enum.Enum):
    """Approval state of an account"""
    PENDING = "pending"
    APPROVED = "approved"


class User(Base):
    """Registered account"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(SQLEnum(UserRole), default=UserRole.SUBMITTER, nullable=False)
    status = Column(SQLEnum(AccountStatus), default=AccountStatus.PENDING, nullable=False)

    # Administrator approval (sha256 of the emailed token, never the token itself)
    approval_token_hash = Column(String(64), unique=True, index=True, nullable=True)
    approval_token_expires = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_approved(self) -> bool:
        return self.status == AccountStatus.APPROVED

    def __repr__(self):
        return f"<User {self.email} ({self.role.value if self.role else '?'})>"
