import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

from app.main import app
from app.core.config import PortalConfig, get_portal_config
from app.core.database import get_db
from app.core.dependencies import get_portal_client
from app.core.security import get_current_user
from app.models import Base, User
from app.services.portal_client import PortalClient, SyncResult

PORTAL_KEY = "test-portal-key"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def staff_user(db):
    user = User(
        id="staff-1",
        email="staff@bandoffice.test",
        hashed_password="not-used",
        first_name="Test",
        last_name="Staff",
        department="FINANCE",
        role="STAFF",
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def portal_config():
    return PortalConfig(portal_base_url="https://portal.test", api_key=PORTAL_KEY)


@pytest.fixture
def portal():
    fake = MagicMock(spec=PortalClient)
    fake.publish.return_value = SyncResult(success=True, remote_id="portal-1")
    fake.update.return_value = SyncResult(success=True, remote_id="portal-1")
    fake.retract.return_value = SyncResult(success=True)
    fake.list_submissions.return_value = []
    fake.push_bulletin.return_value = SyncResult(success=True)
    fake.upload_poster.return_value = "https://portal.test/bulletinboard/poster.jpg"
    return fake


@pytest.fixture
def client(db, staff_user, portal, portal_config):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: staff_user
    app.dependency_overrides[get_portal_client] = lambda: portal
    app.dependency_overrides[get_portal_config] = lambda: portal_config

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
