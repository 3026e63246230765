"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test database, client, email outbox, Redis fake and authentication
fixtures.

==============================================================================
"""

import fnmatch
import os
import tempfile

# Settings are cached on first use, so the environment is prepared before
# any splitter module is imported.
_TEST_DIR = tempfile.mkdtemp(prefix="splitter-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'app.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-splitter-tests"
os.environ["EMAIL_SUPPRESS_SEND"] = "true"
os.environ["REDIS_ENABLED"] = "false"
os.environ["GOOGLE_TRANSLATE_API_KEY"] = ""
os.environ["AZURE_TRANSLATE_SUBSCRIPTION_KEY"] = ""
os.environ["DEEPL_API_KEY"] = ""

import pytest
import redis
from typing import Callable, Dict, Generator, List, Optional, Tuple
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from splitter.main import app
from splitter.db.database import Base
from splitter.db.init_db import DatabaseInitializer
from splitter.db.models import SystemRole, User
from splitter.core.exceptions import EmailException, ErrorCodes
from splitter.core.rate_limit import get_otp_rate_limiter
from splitter.core.security import get_security_manager
from splitter.core.dependencies import get_db
from splitter.repositories.user_repository import RoleRepository
from splitter.services.email_service import get_email_service
from splitter.services.cache_service import RedisCache


PASSWORD = "Secret@123"


# ============================================================================
# EMAIL FAKE
# ============================================================================

class FakeEmailService:
    """Collects messages instead of sending them."""

    def __init__(self):
        self.outbox: List[Tuple[str, str, str]] = []
        self.fail = False

    def send_email(self, to, subject: str, body: str, is_html: bool = False) -> None:
        if self.fail:
            raise EmailException(
                "Could not connect to the email server.",
                ErrorCodes.SMTP_CONNECTION_ERROR
            )
        self.outbox.append((to, subject, body))

    def send_bulk(self, recipients, subject: str, body: str, is_html: bool = False) -> None:
        for recipient in recipients:
            self.send_email(recipient, subject, body, is_html)

    def last_to(self, email: str) -> Optional[Tuple[str, str, str]]:
        for message in reversed(self.outbox):
            if message[0] == email:
                return message
        return None


# ============================================================================
# REDIS FAKE
# ============================================================================

class FakeRedis:
    """In-memory stand-in for the redis.Redis calls RedisCache makes."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.expiry: Dict[str, Optional[int]] = {}
        self.published: List[Tuple[str, str]] = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("redis is down")

    def ping(self):
        self._check()
        return True

    def get(self, key):
        self._check()
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self._check()
        self.store[key] = value
        self.expiry[key] = ex
        return True

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    def exists(self, key):
        self._check()
        return int(key in self.store)

    def scan_iter(self, match="*"):
        self._check()
        return [key for key in list(self.store) if fnmatch.fnmatchcase(key, match)]

    def mget(self, keys):
        self._check()
        return [self.store.get(key) for key in keys]

    def pipeline(self):
        return self

    def execute(self):
        return []

    def publish(self, channel, message):
        self._check()
        self.published.append((channel, message))
        return 1

    def close(self):
        pass


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def redis_cache(fake_redis: FakeRedis) -> RedisCache:
    return RedisCache(client=fake_redis, instance_name="test")


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

# In-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh, seeded database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    DatabaseInitializer(session=session).seed()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def email_outbox() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture(scope="function")
def client(db: Session, email_outbox: FakeEmailService) -> Generator[TestClient, None, None]:
    """Create test client with database and email overrides."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_outbox
    get_otp_rate_limiter().reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory creating users with the given roles."""
    security = get_security_manager()
    roles = RoleRepository(db)

    def _make(
        email: str,
        password: str = PASSWORD,
        role_names: Tuple[str, ...] = (SystemRole.USER.value,),
        confirmed: bool = True,
        first_name: str = "Test",
        last_name: str = "User"
    ) -> User:
        user = User(
            email=email,
            password_hash=security.hash_password(password),
            first_name=first_name,
            last_name=last_name,
            email_confirmed=confirmed,
            is_active=True
        )
        for name in role_names:
            user.roles.append(roles.get_by_name(name))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def alice(make_user) -> User:
    return make_user("alice@example.com", first_name="Alice", last_name="Anders")


@pytest.fixture
def bob(make_user) -> User:
    return make_user("bob@example.com", first_name="Bob", last_name="Baker")


@pytest.fixture
def carol(make_user) -> User:
    return make_user("carol@example.com", first_name="Carol", last_name="Clark")


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user(
        "admin@example.com",
        role_names=(SystemRole.USER.value, SystemRole.ADMIN.value),
        first_name="Ada",
        last_name="Admin"
    )


@pytest.fixture
def superadmin_user(db: Session) -> User:
    """The super admin seeded at startup."""
    return db.query(User).filter(User.email == "superadmin@splitter.com").one()


# ============================================================================
# TOKEN FIXTURES
# ============================================================================

def token_for(user: User) -> str:
    return get_security_manager().create_access_token({
        "sub": user.id,
        "userId": user.id,
        "email": user.email,
        "roles": user.role_names
    })


def headers_for(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user)}"}


# ============================================================================
# HEADER FIXTURES
# ============================================================================

@pytest.fixture
def alice_headers(alice: User) -> Dict[str, str]:
    return headers_for(alice)


@pytest.fixture
def bob_headers(bob: User) -> Dict[str, str]:
    return headers_for(bob)


@pytest.fixture
def carol_headers(carol: User) -> Dict[str, str]:
    return headers_for(carol)


@pytest.fixture
def admin_headers(admin_user: User) -> Dict[str, str]:
    """Authorization headers for admin user."""
    return headers_for(admin_user)


@pytest.fixture
def superadmin_headers(superadmin_user: User) -> Dict[str, str]:
    """Authorization headers for the seeded super admin."""
    return headers_for(superadmin_user)
