from fastapi import APIRouter, Depends, status, Request
from fastapi.responses import HTMLResponse
from html import escape
from sqlalchemy.ext.asyncio import AsyncSession

from cmspro.api.v1.deps import get_account_service
from cmspro.core.database import get_db
from cmspro.core.rate_limiter import limiter, LOGIN_LIMIT, REGISTER_LIMIT
from cmspro.models.user import User
from cmspro.modules.auth.dependencies import get_current_user, get_current_admin
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
from cmspro.services.account_service import AccountService

router = APIRouter()

PENDING_MESSAGE = "Registration successful. Your account is pending admin approval. You will be notified once activated."

APPROVED_PAGE = """
<div style="font-family: sans-serif; text-align: center; padding: 50px;">
    <h1 style="color: #10b981;">Account Approved!</h1>
    <p>The user <strong>{name}</strong> has been activated successfully.</p>
    <p>They can now log in to the portal.</p>
</div>
"""


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_account_service)
):
    """Register a new account; administrators wait for super admin approval"""
    user, token = await accounts.register(db, user_data, base_url=str(request.base_url))

    if token is None:
        return RegisterResponse(message=PENDING_MESSAGE, status=user.status)

    return RegisterResponse(
        token=token,
        user=PublicProfile.model_validate(user),
        status=user.status,
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_account_service)
):
    """Login and get a session token"""
    user, token = await accounts.login(db, credentials.email, credentials.password)
    return LoginResponse(token=token, user=PublicProfile.model_validate(user))


@router.get("/approve/{token}", response_class=HTMLResponse)
async def approve_user(
    token: str,
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_account_service)
):
    """Approval link from the super admin's email"""
    user = await accounts.approve_by_token(db, token)
    return HTMLResponse(APPROVED_PAGE.format(name=escape(user.name)))


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information"""
    return UserResponse.model_validate(current_user)


@router.put("/update-profile", response_model=UserResponse)
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_account_service)
):
    """Change the caller's display name"""
    user = await accounts.update_profile(db, current_user, profile.name)
    return UserResponse.model_validate(user)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_account_service)
):
    """List every account (administrators only)"""
    users = await accounts.list_users(db, current_user)
    return UserListResponse(count=len(users), data=[UserResponse.model_validate(u) for u in users])
