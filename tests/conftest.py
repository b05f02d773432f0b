"""
Cafe Desk test fixtures

Each test gets its own SQLite file database and an in-process stand-in for
Redis, so no external services are needed.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["METRICS_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"

from decimal import Decimal  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from cafedesk.core import redis_client  # noqa: E402
from cafedesk.core.security import hash_password  # noqa: E402
from cafedesk.db.database import Base, get_db  # noqa: E402
from cafedesk.db.table_ops import ensure_tables  # noqa: E402
from cafedesk.main import app  # noqa: E402
from cafedesk.models import AdminUser, Employee, MenuItem, Role  # noqa: E402

ADMIN_EMAIL = "owner@caferepublic.in"
ADMIN_PASSWORD = "owner-pass"
STAFF_PASSWORD = "staff-pass"


# ─── Redis stand-in ────────────────────────────────────────────────────────────
class FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops = []

    def zremrangebyscore(self, key, min_score, max_score):
        self._ops.append(("zremrangebyscore", key, float(max_score)))
        return self

    def zcard(self, key):
        self._ops.append(("zcard", key))
        return self

    def zadd(self, key, mapping):
        self._ops.append(("zadd", key, mapping))
        return self

    def expire(self, key, seconds):
        self._ops.append(("expire", key))
        return self

    async def execute(self):
        results = []
        for op in self._ops:
            zset = self._redis.zsets.setdefault(op[1], {})
            if op[0] == "zremrangebyscore":
                stale = [m for m, score in zset.items() if score <= op[2]]
                for member in stale:
                    del zset[member]
                results.append(len(stale))
            elif op[0] == "zcard":
                results.append(len(zset))
            elif op[0] == "zadd":
                zset.update(op[2])
                results.append(len(op[2]))
            else:
                results.append(True)
        self._ops = []
        return results


class FakePubSub:
    def __init__(self):
        self.channels: set[str] = set()
        self.queue: list[dict] = []
        self.timeouts: list[float] = []
        self.closed = False

    async def subscribe(self, *channels):
        self.channels.update(channels)

    async def unsubscribe(self, *channels):
        self.channels.difference_update(channels)

    async def get_message(self, ignore_subscribe_messages=False, timeout=0.0):
        self.timeouts.append(timeout)
        return self.queue.pop(0) if self.queue else None

    async def aclose(self):
        self.closed = True


class FakeRedis:
    def __init__(self):
        self.store: dict[str, str] = {}
        self.zsets: dict[str, dict] = {}
        self.published: list[tuple[str, str]] = []
        self.pubsubs: list[FakePubSub] = []

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value):
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def delete(self, *keys):
        return sum(1 for k in keys if self.store.pop(k, None) is not None)

    async def publish(self, channel, message):
        self.published.append((channel, message))
        listeners = [p for p in self.pubsubs if channel in p.channels]
        for pubsub in listeners:
            pubsub.queue.append({"type": "message", "channel": channel, "data": message})
        return len(listeners)

    def pubsub(self):
        pubsub = FakePubSub()
        self.pubsubs.append(pubsub)
        return pubsub

    async def ping(self):
        return True

    async def aclose(self):
        return None

    def pipeline(self):
        return FakePipeline(self)


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_redis_client", fake)
    return fake


# ─── Database ──────────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cafe.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def menu(db):
    """Tables 1..50 plus a small menu: A=100, B=50, C=75, D=525, E unavailable."""
    await ensure_tables(db)
    items = {
        "A": MenuItem(name="Cappuccino", price=Decimal("100.00"), category="Hot Coffee"),
        "B": MenuItem(name="Butter Croissant", price=Decimal("50.00"), category="Bakery"),
        "C": MenuItem(name="Cold Brew", price=Decimal("75.00"), category="Cold Coffee"),
        "D": MenuItem(name="Family Platter", price=Decimal("525.00"), category="Meals"),
        "E": MenuItem(name="Seasonal Special", price=Decimal("90.00"), category="Specials", is_available=False),
    }
    db.add_all(items.values())
    await db.commit()
    return items


@pytest_asyncio.fixture
async def staff(db):
    """One super admin (email login) and one employee per role (ID login)."""
    admin = AdminUser(email=ADMIN_EMAIL, hashed_password=hash_password(ADMIN_PASSWORD), name="Owner")
    employee = Employee(
        employee_id="EMP1234",
        hashed_password=hash_password(STAFF_PASSWORD),
        name="Ravi",
        role=Role.EMPLOYEE.value,
    )
    cashier = Employee(
        employee_id="EMP2001",
        hashed_password=hash_password(STAFF_PASSWORD),
        name="Meera",
        role=Role.CASHIER.value,
    )
    db.add_all([admin, employee, cashier])
    await db.commit()
    return {"admin": admin, "employee": employee, "cashier": cashier}


# ─── HTTP client ───────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login(client, staff):
    """Sign in as "admin", "employee" or "cashier" and return auth headers."""

    async def _login(who: str) -> dict[str, str]:
        if who == "admin":
            r = await client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        else:
            employee_id = {"employee": "EMP1234", "cashier": "EMP2001"}[who]
            r = await client.post(
                "/auth/employee-login", json={"employee_id": employee_id, "password": STAFF_PASSWORD}
            )
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _login
