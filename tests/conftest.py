import os
import uuid

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-portal-tokens")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pricing_portal.core.errors import ExternalServiceError
from pricing_portal.core.security import create_access_token
from pricing_portal.database.connection import Base, get_db
from pricing_portal.dependencies.providers import get_identity_provider
from pricing_portal.enums.statuses import AccountStatus, UserRole
from pricing_portal.main import app
from pricing_portal.models.product import Product
from pricing_portal.models.user_profile import UserProfile

TEST_DB_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# let pysqlite honour SAVEPOINT so service commits stay inside the test transaction
@event.listens_for(engine, "connect")
def _sqlite_autocommit_off(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    join_transaction_mode="create_savepoint",
)


@pytest.fixture(scope="session", autouse=True)
def create_test_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    connection = engine.connect()
    trans = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        trans.rollback()
        connection.close()


class FakeIdentityProvider:
    """In-memory stand-in for the identity provider admin API."""

    def __init__(self):
        self.users = {}
        self.created = []
        self.deleted = []
        self.emails_sent = []
        self.email_error = None
        self.fail_metadata_update = False

    def add_existing(self, email, user_metadata=None):
        user = {"id": str(uuid.uuid4()), "email": email, "user_metadata": user_metadata or {}}
        self.users[user["id"]] = user
        return user

    def find_user_by_email(self, email):
        for user in self.users.values():
            if user["email"].lower() == email.lower():
                return user
        return None

    def get_user(self, user_id):
        return self.users[user_id]

    def create_user(self, email, password, email_confirm=True, user_metadata=None):
        user = self.add_existing(email, user_metadata)
        user["email_confirmed"] = email_confirm
        self.created.append(user["id"])
        return user

    def update_user_metadata(self, user_id, user_metadata):
        if self.fail_metadata_update:
            raise ExternalServiceError("Failed to update user metadata")
        self.users[user_id]["user_metadata"] = user_metadata
        return self.users[user_id]

    def delete_user(self, user_id):
        self.users.pop(user_id, None)
        self.deleted.append(user_id)

    def send_password_setup_email(self, email, redirect_to=None):
        if self.email_error is not None:
            raise self.email_error
        self.emails_sent.append((email, redirect_to))

    def close(self):
        pass


@pytest.fixture()
def identity():
    return FakeIdentityProvider()


@pytest.fixture()
def client(db, identity):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def bearer(user_id, email=None, is_admin=False):
    token = create_access_token(user_id, email=email, user_metadata={"is_admin": is_admin})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers():
    return bearer(f"admin-{uuid.uuid4().hex[:8]}", "admin@altavista.test", is_admin=True)


@pytest.fixture()
def make_client(db):
    def _make(status=AccountStatus.approved.value, discount_tier=0.0, company="Optica Norte"):
        user_id = str(uuid.uuid4())
        profile = UserProfile(
            id=user_id,
            email=f"{user_id[:8]}@client.test",
            company_name=company,
            role=UserRole.client.value,
            status=status,
            discount_tier=discount_tier,
        )
        db.add(profile)
        db.commit()
        return profile
    return _make


@pytest.fixture()
def make_product(db):
    def _make(base_price=100.0, code=None, is_active=True):
        product = Product(
            code=code or f"FX-{uuid.uuid4().hex[:6].upper()}",
            name="Future-X 1.56 Blue Cut",
            base_price_usd=base_price,
            is_active=is_active,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture()
def client_headers():
    def _headers(profile):
        return bearer(profile.id, profile.email)
    return _headers
