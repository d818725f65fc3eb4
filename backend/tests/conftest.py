"""
CMS Pro - Test Configuration and Fixtures
"""
import os
import re
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['SUPER_ADMIN_EMAIL'] = 'superadmin@example.com'
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''
os.environ['LOG_LEVEL'] = 'WARNING'

# Stale file from an interrupted run would keep old rows around
Path('./test.db').unlink(missing_ok=True)

from cmspro.main import app
from cmspro.api.v1.deps import get_broadcast_channel, get_email_service
from cmspro.core.database import Base, get_db
from cmspro.core.security import get_password_hash, create_access_token
from cmspro.models.user import User, UserRole, AccountStatus
from cmspro.services.email_service import EmailService

fake = Faker()

SUPER_ADMIN_EMAIL = 'superadmin@example.com'
DEFAULT_PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)

APPROVAL_LINK = re.compile(r"/auth/approve/([0-9a-f]{40})")


class FakeEmailService(EmailService):
    """Records outgoing mail instead of talking to SMTP"""

    def __init__(self):
        super().__init__()
        self.sent: List[Dict[str, Any]] = []
        self.fail = False
        self.error: Optional[Exception] = None

    async def send_email(self, to_email, subject, html_content, text_content=None) -> bool:
        if self.error is not None:
            raise self.error
        if self.fail:
            return False
        self.sent.append({
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content,
        })
        return True

    def last_approval_token(self) -> str:
        for mail in reversed(self.sent):
            match = APPROVAL_LINK.search(mail["text"] or "")
            if match:
                return match.group(1)
        raise AssertionError("no approval email was sent")


class FakeBroadcastChannel:
    """Collects published events"""

    def __init__(self):
        self.events: List[Tuple[str, Any]] = []

    async def publish(self, event: str, payload: Any) -> None:
        self.events.append((event, payload))


async def create_user(
    session: AsyncSession,
    role: UserRole = UserRole.SUBMITTER,
    status: AccountStatus = AccountStatus.APPROVED,
    email: Optional[str] = None,
    password: str = DEFAULT_PASSWORD,
) -> User:
    user = User(
        name=fake.name(),
        email=email or fake.unique.email(),
        hashed_password=get_password_hash(password),
        role=role,
        status=status,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


def bearer(user: User) -> dict:
    token = create_access_token({'sub': str(user.id)})
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def fake_email() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def fake_channel() -> FakeBroadcastChannel:
    return FakeBroadcastChannel()


@pytest.fixture
async def client(
    db_session: AsyncSession,
    fake_email: FakeEmailService,
    fake_channel: FakeBroadcastChannel
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database, email and broadcast overrides"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: fake_email
    app.dependency_overrides[get_broadcast_channel] = lambda: fake_channel

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def submitter(db_session: AsyncSession) -> User:
    """Approved submitter"""
    return await create_user(db_session)


@pytest.fixture
async def other_submitter(db_session: AsyncSession) -> User:
    return await create_user(db_session)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Approved administrator"""
    return await create_user(db_session, role=UserRole.ADMINISTRATOR)


@pytest.fixture
async def pending_admin(db_session: AsyncSession) -> User:
    return await create_user(db_session, role=UserRole.ADMINISTRATOR, status=AccountStatus.PENDING)


@pytest.fixture
def auth_headers(submitter: User) -> dict:
    """Generate authentication headers for the submitter"""
    return bearer(submitter)


@pytest.fixture
def other_auth_headers(other_submitter: User) -> dict:
    return bearer(other_submitter)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Generate authentication headers for the administrator"""
    return bearer(admin_user)


@pytest.fixture
def complaint_data() -> dict:
    return {
        'title': fake.sentence(nb_words=5)[:100],
        'description': fake.paragraph(),
        'category': 'Technical',
        'priority': 'High',
    }
