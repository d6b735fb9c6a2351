import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import fieldcrm.models  # noqa: F401
from fieldcrm.core.security import create_access_token
from fieldcrm.database import get_db
from fieldcrm.db.base import Base
from fieldcrm.main import app
from fieldcrm.models.lead import Lead, LeadStatus, PropertyType
from fieldcrm.models.user import AppUser, UserRole
from fieldcrm.services.lead_store import LeadStore

TEST_DATABASE_URL = "sqlite://"


class RecordingSink:
    """Notification sink that keeps every emitted event."""

    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)


class StatementCounter:
    def __init__(self):
        self.statements = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    @property
    def count(self):
        return len(self.statements)


@pytest.fixture
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return LeadStore(db)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def statement_counter(engine):
    counter = StatementCounter()
    event.listen(engine, "before_cursor_execute", counter)
    yield counter
    event.remove(engine, "before_cursor_execute", counter)


@pytest.fixture
def make_user(db):
    def _make_user(role=UserRole.SALESMAN, name=None, is_active=True):
        name = name or f"{role.value.replace('_', ' ').title()} {uuid.uuid4().hex[:4]}"
        user = AppUser(
            name=name,
            email=f"{uuid.uuid4().hex[:10]}@fieldcrm.io",
            phone="0700000000",
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user
    return _make_user


@pytest.fixture
def salesman(make_user):
    return make_user(UserRole.SALESMAN, name="Sam Seller")


@pytest.fixture
def operator(make_user):
    return make_user(UserRole.CALL_OPERATOR, name="Olive Operator")


@pytest.fixture
def technician(make_user):
    return make_user(UserRole.TECHNICIAN, name="Theo Technician")


@pytest.fixture
def team_lead(make_user):
    return make_user(UserRole.TEAM_LEAD, name="Tess Lead")


@pytest.fixture
def make_lead(db, salesman):
    def _make_lead(phone=None, status=LeadStatus.NEW, property_type=PropertyType.RESIDENTIAL, **fields):
        lead = Lead(
            customer_name=fields.pop("customer_name", "Jane Doe"),
            phone_number=phone or f"555-{uuid.uuid4().int % 10000:04d}",
            address=fields.pop("address", "12 Solar Way"),
            property_type=property_type,
            status=status,
            salesman_id=fields.pop("salesman_id", salesman.id),
            salesman_name=fields.pop("salesman_name", salesman.name),
            created_by=salesman.id,
            created_by_name=salesman.name,
            **fields,
        )
        db.add(lead)
        db.commit()
        return lead
    return _make_lead


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header():
    def _auth_header(user):
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}
    return _auth_header
