"""
Centralized Test Configuration.
"""

import pytest
from datetime import date
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool, Pool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.jwt import create_access_token, token_payload
from backend.app.core.security import get_password_hash
from backend.app.models.enums import UserRole, PartyType, VehicleStatus
from backend.app.models.party import Party
from backend.app.models.user import User
from backend.app.models.vehicle import Vehicle
from backend.app.services.settings_service import SettingsService

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Apply overrides once for the session."""
    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables and seed settings before each test function, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestingSessionLocal() as session:
        await SettingsService.seed_defaults(session)
        await session.commit()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def create_user(email: str, role: UserRole, password: str = "secret123", is_active: bool = True) -> User:
    async with TestingSessionLocal() as session:
        user = User(
            email=email,
            name=email.split("@")[0].title(),
            hashed_password=get_password_hash(password),
            role=role,
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def token_for(user: User) -> dict:
    token = create_access_token(token_payload(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def staff_user():
    return await create_user("staff@example.com", UserRole.STAFF)


@pytest.fixture
async def auth_headers(staff_user):
    """Headers for a STAFF user (bookings, bills, payments)."""
    return token_for(staff_user)


@pytest.fixture
async def admin_headers():
    """Headers for an OWNER (settings, cancellations)."""
    return token_for(await create_user("owner@example.com", UserRole.OWNER))


@pytest.fixture
async def readonly_headers():
    return token_for(await create_user("viewer@example.com", UserRole.READ_ONLY))


@pytest.fixture
async def parties():
    """Consignor, consignee (billed), and a vehicle owner."""
    async with TestingSessionLocal() as session:
        consignor = Party(type=PartyType.COMPANY, name="Shree Cement Ltd", city="Jaipur", state="Rajasthan")
        consignee = Party(type=PartyType.COMPANY, name="Build Well Traders", city="Delhi", state="Delhi")
        owner = Party(type=PartyType.VEHICLE_OWNER, name="Ramesh Transport", phone="9876543210")
        session.add_all([consignor, consignee, owner])
        await session.commit()
        return {"consignor": consignor.id, "consignee": consignee.id, "owner": owner.id}


@pytest.fixture
async def vehicle(parties):
    async with TestingSessionLocal() as session:
        truck = Vehicle(
            vehicle_number="RJ14GA1234",
            vehicle_type="TRUCK",
            capacity_tons=16,
            owner_id=parties["owner"],
            status=VehicleStatus.AVAILABLE,
        )
        session.add(truck)
        await session.commit()
        return truck.id


@pytest.fixture
def booking_payload(parties):
    """Minimal valid booking request without a vehicle."""
    return {
        "booking_date": date.today().isoformat(),
        "consignor_id": parties["consignor"],
        "consignee_id": parties["consignee"],
        "from_city": "Jaipur",
        "from_state": "Rajasthan",
        "to_city": "Delhi",
        "to_state": "Delhi",
        "description": "Cement bags",
        "freight_amount": 25000,
        "payment_type": "TBB",
    }


@pytest.fixture
def session_factory():
    """Sessionmaker for tests that need several independent sessions."""
    return TestingSessionLocal


@pytest.fixture
def make_user():
    """Factory: await make_user(email, role, ...) -> (user, headers)."""
    async def _make(email: str, role: UserRole, password: str = "secret123", is_active: bool = True):
        user = await create_user(email, role, password=password, is_active=is_active)
        return user, token_for(user)
    return _make
