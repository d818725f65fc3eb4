"""
Account Service - registration, approval and login

Handles:
- Registration (submitters are approved at once, administrators wait for
  the super admin unless they are the super admin)
- Approval by emailed single-use token
- Login with auto-approval of accounts that never need a review
- Profile reads/updates and the administrator account listing
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update
from datetime import datetime
from typing import List, Optional, Tuple

from cmspro.core.config import settings
from cmspro.core.exceptions import (
    DependencyFailureError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    PendingApprovalError,
)
from cmspro.core.logging_config import logger
from cmspro.core.security import (
    create_access_token,
    generate_approval_token,
    get_password_hash,
    hash_approval_token,
    verify_password,
)
from cmspro.models.user import User, UserRole, AccountStatus
from cmspro.modules.auth.permissions import Capability, ensure_capability
from cmspro.schemas.auth import UserRegister
from cmspro.services.email_service import EmailService


def build_approval_url(base_url: str, token: str) -> str:
    """Link embedded in the approval email"""
    return f"{base_url.rstrip('/')}{settings.API_PREFIX}/auth/approve/{token}"


def issue_session_token(user: User) -> str:
    return create_access_token(data={"sub": str(user.id)})


class AccountService:
    """Account lifecycle manager"""

    def __init__(self, email_service: EmailService):
        self.email_service = email_service

    # ==================== REGISTRATION ====================

    async def register(
        self,
        db: AsyncSession,
        user_data: UserRegister,
        base_url: str
    ) -> Tuple[User, Optional[str]]:
        """
        Create an account.

        Returns:
            (user, session token) - the token is None while the account is pending

        Raises:
            DuplicateIdentityError: email already registered
            DependencyFailureError: approval email could not be sent; the
                account stays pending without an approval token
        """
        existing = await db.scalar(select(User.id).where(User.email == user_data.email))
        if existing is not None:
            logger.log_auth_event("register", False, user_data.email, "Email already registered")
            raise DuplicateIdentityError(user_data.email)

        needs_review = (
            user_data.role == UserRole.ADMINISTRATOR
            and not settings.is_super_admin(user_data.email)
        )

        user = User(
            name=user_data.name,
            email=user_data.email,
            hashed_password=get_password_hash(user_data.password),
            role=user_data.role,
            status=AccountStatus.PENDING if needs_review else AccountStatus.APPROVED,
        )

        raw_token = None
        if needs_review:
            raw_token, token_hash, expires = generate_approval_token()
            user.approval_token_hash = token_hash
            user.approval_token_expires = expires

        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            await db.rollback()
            logger.log_auth_event("register", False, user_data.email, "Email already registered")
            raise DuplicateIdentityError(user_data.email)

        if not needs_review:
            logger.log_auth_event("register", True, user.email, role=user.role.value)
            return user, issue_session_token(user)

        await self._request_approval(db, user, build_approval_url(base_url, raw_token))
        logger.log_auth_event("register", True, user.email, role=user.role.value, status="pending")
        return user, None

    async def _request_approval(self, db: AsyncSession, user: User, approval_url: str) -> None:
        """Email the super admin; on failure revoke the token and raise"""
        recipient = settings.super_admin_email
        sent = False

        if not recipient:
            logger.error("[Account] SUPER_ADMIN_EMAIL is not configured, cannot request approval")
        else:
            try:
                sent = await self.email_service.send_admin_approval_request(
                    to_email=recipient,
                    name=user.name,
                    email=user.email,
                    role=user.role.value,
                    approval_url=approval_url,
                )
            except Exception as e:
                logger.log_error_with_context(e, "approval email", user_email=user.email)

        if sent:
            return

        user.approval_token_hash = None
        user.approval_token_expires = None
        await db.commit()
        raise DependencyFailureError("Email could not be sent", dependency="email")

    # ==================== APPROVAL ====================

    async def approve_by_token(self, db: AsyncSession, token: str) -> User:
        """
        Claim an approval token.

        A single conditional UPDATE both checks and consumes the token, so of
        two concurrent claims only one can match the row.
        """
        if not token:
            raise InvalidOrExpiredTokenError()

        now = datetime.utcnow()
        result = await db.execute(
            update(User)
            .where(
                User.approval_token_hash == hash_approval_token(token),
                User.approval_token_expires > now,
            )
            .values(
                status=AccountStatus.APPROVED,
                approval_token_hash=None,
                approval_token_expires=None,
                updated_at=now,
            )
            .returning(User.id)
            .execution_options(synchronize_session=False)
        )
        user_id = result.scalar_one_or_none()

        if user_id is None:
            await db.rollback()
            logger.log_auth_event("approve", False, reason="Invalid or expired token")
            raise InvalidOrExpiredTokenError()

        await db.commit()

        user = await db.get(User, user_id, populate_existing=True)
        logger.log_auth_event("approve", True, user.email)

        if not await self.email_service.send_account_approved_email(user.email, user.name):
            logger.warning(f"[Account] Could not notify {user.email} about approval")

        return user

    # ==================== LOGIN ====================

    async def login(self, db: AsyncSession, email: str, password: str) -> Tuple[User, str]:
        """
        Verify credentials and issue a session token.

        Accounts that never need review (submitters, the super admin) are
        approved here if they are somehow still pending.
        """
        user = await db.scalar(select(User).where(User.email == email))

        if not user:
            logger.log_auth_event("login", False, email, "Unknown email")
            raise InvalidCredentialsError()

        if not user.is_approved and (
            settings.is_super_admin(user.email) or user.role == UserRole.SUBMITTER
        ):
            user.status = AccountStatus.APPROVED
            await db.commit()
            logger.log_auth_event("auto_approve", True, user.email)

        if not user.is_approved:
            logger.log_auth_event("login", False, email, "Pending approval")
            raise PendingApprovalError()

        if not verify_password(password, user.hashed_password):
            logger.log_auth_event("login", False, email, "Invalid password")
            raise InvalidCredentialsError()

        logger.log_auth_event("login", True, email)
        return user, issue_session_token(user)

    # ==================== PROFILE ====================

    async def update_profile(self, db: AsyncSession, user: User, name: str) -> User:
        """Change the caller's display name (the only self-editable field)"""
        user.name = name
        user.updated_at = datetime.utcnow()
        await db.commit()
        logger.info(f"[Account] Profile updated for {user.email}")
        return user

    async def list_users(self, db: AsyncSession, user: User) -> List[User]:
        ensure_capability(user, Capability.LIST_ACCOUNTS)
        result = await db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())
