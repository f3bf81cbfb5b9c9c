"""
Shared pytest fixtures for the payroll backend tests.

Uses SQLite in-memory with StaticPool so all sessions share one connection,
meaning data written in one session is visible to others (important for HTTP client tests).
QuickBooks is replaced by FakeQuickBooks behind an httpx.MockTransport.
"""
import itertools
import json
import re
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

import app.models  # noqa – registers all SQLAlchemy models with Base.metadata
from app.api.deps import get_quickbooks_client
from app.core.database import Base, get_db
from app.core.security import hash_password, create_access_token
from app.main import app
from app.models.employee import Employee
from app.models.pay_period import PayPeriod
from app.models.quickbooks_connection import QuickBooksConnection
from app.models.tenant import Tenant
from app.models.user import User
from app.services.quickbooks_client import QuickBooksClient

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
QB_BASE_URL = "https://qb.test"
REALM_ID = "9130350000000001"


# ── Fake QuickBooks ───────────────────────────────────────────────────────────

_RANGE = re.compile(r"TxnDate >= '([\d-]+)' AND TxnDate <= '([\d-]+)'")
_EMPLOYEE_DAY = re.compile(r"EmployeeRef = '([^']+)' AND TxnDate = '([\d-]+)'")
_DISPLAY_NAME = re.compile(r"DisplayName = '((?:[^'\\]|\\.)*)'")


class FakeQuickBooks:
    """In-memory stand-in for the QuickBooks Online REST API."""

    def __init__(self):
        self.employees: list[dict] = []
        self.time_activities: list[dict] = []
        self.requests: list[httpx.Request] = []
        self.fail_status: int | None = None
        self._ids = itertools.count(100)

    def add_employee(self, display_name: str, bill_rate=20, active=True, **extra) -> dict:
        given, _, family = display_name.partition(" ")
        employee = {
            "Id": str(next(self._ids)),
            "GivenName": given,
            "FamilyName": family,
            "DisplayName": display_name,
            "BillRate": bill_rate,
            "Active": active,
            **extra,
        }
        self.employees.append(employee)
        return employee

    def add_activity(self, employee: dict, day: str, hours, minutes=0, **extra) -> dict:
        activity = {
            "Id": str(next(self._ids)),
            "TxnDate": day,
            "NameOf": "Employee",
            "EmployeeRef": {"value": employee["Id"], "name": employee["DisplayName"]},
            "Hours": hours,
            "Minutes": minutes,
            **extra,
        }
        self.time_activities.append(activity)
        return activity

    def _query(self, statement: str) -> dict:
        if "FROM Employee" in statement:
            found = self.employees
            name = _DISPLAY_NAME.search(statement)
            if name:
                wanted = name.group(1).replace("\\'", "'")
                found = [e for e in found if e["DisplayName"] == wanted]
            if "Active = true" in statement:
                found = [e for e in found if e.get("Active", True)]
            return {"Employee": found} if found else {}

        if "FROM TimeActivity" in statement:
            found = self.time_activities
            window = _RANGE.search(statement)
            if window:
                found = [a for a in found if window.group(1) <= a["TxnDate"] <= window.group(2)]
            employee_day = _EMPLOYEE_DAY.search(statement)
            if employee_day:
                found = [
                    a for a in found
                    if a["EmployeeRef"]["value"] == employee_day.group(1)
                    and a["TxnDate"] == employee_day.group(2)
                ]
            return {"TimeActivity": found} if found else {}
        return {}

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status:
            return httpx.Response(
                self.fail_status,
                json={"Fault": {"Error": [{"Message": "Simulated failure"}]}},
            )
        if not request.headers.get("Authorization", "").startswith("Bearer "):
            return httpx.Response(401, json={"Fault": {"Error": [{"Message": "No token"}]}})

        path = request.url.path
        if request.method == "GET" and path.endswith("/query"):
            return httpx.Response(200, json={"QueryResponse": self._query(request.url.params["query"])})
        if request.method == "POST" and path.endswith("/employee"):
            body = json.loads(request.content)
            employee = {"Id": str(next(self._ids)), "Active": True, **body}
            self.employees.append(employee)
            return httpx.Response(200, json={"Employee": employee})
        if request.method == "POST" and path.endswith("/timeactivity"):
            body = json.loads(request.content)
            activity = {"Id": str(next(self._ids)), **body}
            self.time_activities.append(activity)
            return httpx.Response(200, json={"TimeActivity": activity})
        return httpx.Response(404, json={"Fault": {"Error": [{"Message": f"Unknown path {path}"}]}})


@pytest.fixture
def qb() -> FakeQuickBooks:
    return FakeQuickBooks()


@pytest_asyncio.fixture
async def qb_client(qb) -> QuickBooksClient:
    async with QuickBooksClient(base_url=QB_BASE_URL, transport=httpx.MockTransport(qb.handle)) as c:
        yield c


# ── Shared engine (function-scoped: fresh DB per test) ───────────────────────

@pytest_asyncio.fixture
async def engine():
    """Creates a fresh in-memory SQLite engine per test with a shared connection pool."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,          # single shared connection → all sessions see same data
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncSession:
    """Async DB session for direct data inspection inside tests."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


# ── HTTP client fixture ───────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(engine, qb_client) -> AsyncClient:
    """
    FastAPI test client with get_db overridden to use the test engine and the
    QuickBooks client pointed at FakeQuickBooks.
    """
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quickbooks_client] = lambda: qb_client

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ── Tenant + User fixtures ────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def tenant(db) -> Tenant:
    t = Tenant(
        id=uuid.uuid4(),
        name="Test Diner LLC",
        slug=f"test-{uuid.uuid4().hex[:8]}",
        is_active=True,
    )
    db.add(t)
    await db.commit()
    await db.refresh(t)
    return t


@pytest_asyncio.fixture
async def admin_user(db, tenant) -> User:
    u = User(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        email="admin@test.com",
        hashed_password=hash_password("testpass123"),
        name="Admin",
        role="admin",
        is_active=True,
    )
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


@pytest_asyncio.fixture
async def manager_user(db, tenant) -> User:
    u = User(
        id=uuid.uuid4(),
        tenant_id=tenant.id,
        email="manager@test.com",
        hashed_password=hash_password("testpass123"),
        name="Manager",
        role="manager",
        is_active=True,
    )
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


@pytest_asyncio.fixture
def admin_token(admin_user) -> str:
    return create_access_token(admin_user.id, admin_user.tenant_id, "admin")


@pytest_asyncio.fixture
def manager_token(manager_user) -> str:
    return create_access_token(manager_user.id, manager_user.tenant_id, "manager")


# ── Payroll data fixtures ─────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def connection(db, tenant) -> QuickBooksConnection:
    now = datetime.now(timezone.utc)
    c = QuickBooksConnection(
        tenant_id=tenant.id,
        realm_id=REALM_ID,
        access_token="access-token",
        refresh_token="refresh-token",
        expires_at=now + timedelta(hours=1),
        refresh_expires_at=now + timedelta(days=100),
        company_name="Sandbox Company",
    )
    db.add(c)
    await db.commit()
    await db.refresh(c)
    return c


@pytest_asyncio.fixture
async def employee(db, tenant) -> Employee:
    e = Employee(
        tenant_id=tenant.id,
        qb_employee_id="55",
        first_name="Emily",
        last_name="Davis",
        display_name="Emily Davis",
        hourly_rate=Decimal("20.00"),
    )
    db.add(e)
    await db.commit()
    await db.refresh(e)
    return e


@pytest_asyncio.fixture
async def pay_period(db, tenant) -> PayPeriod:
    """Two weeks starting on a Sunday: 2025-10-05 .. 2025-10-18."""
    p = PayPeriod(
        tenant_id=tenant.id,
        start_date=date(2025, 10, 5),
        end_date=date(2025, 10, 18),
        process_date=date(2025, 10, 19),
        status="draft",
    )
    db.add(p)
    await db.commit()
    await db.refresh(p)
    return p


# ── Helper ────────────────────────────────────────────────────────────────────

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
