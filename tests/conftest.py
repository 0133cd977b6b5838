"""Test configuration."""
import os
from collections.abc import AsyncIterator, Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session, sessionmaker

# --- Default environment, before any app import
os.environ.setdefault("DATABASE_URL", "sqlite:///./carecircle_test.db")
os.environ.setdefault("API_KEY", "test-secret-key")
os.environ.setdefault("CARE_ENV", "dev")
os.environ.setdefault("PROMETHEUS_ENABLED", "false")

from app.main import app  # noqa: E402
from app.db import build_engine, get_db  # noqa: E402
from app.models import (  # noqa: E402
    Alert,
    AlertStatus,
    ApiKey,
    ApiScope,
    Base,
    Contradiction,
    ContradictionSeverity,
    ContradictionStatus,
    ContradictionType,
    User,
)
from app.utils.apikey import hash_key  # noqa: E402

DB_PATH = Path("./carecircle_test.db")
ROOT = Path(__file__).resolve().parents[1]


def _run_migrations() -> None:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", os.environ["DATABASE_URL"])
    command.upgrade(cfg, "head")


# --- (1) Fresh database file per test session
if DB_PATH.exists():
    DB_PATH.unlink()

engine = build_engine(os.environ["DATABASE_URL"])
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

# --- (2) Schema comes from Alembic only
_run_migrations()


def _clear_tables() -> None:
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db_session() -> Iterator[Session]:
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        _clear_tables()


@pytest.fixture(autouse=True)
def override_db_dependency(db_session: Session) -> Iterator[None]:
    def _get_db() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    def _factory(name: str = "supporter") -> User:
        suffix = uuid4().hex[:8]
        user = User(username=f"{name}-{suffix}", email=f"{name}-{suffix}@example.com")
        db_session.add(user)
        db_session.commit()
        return user

    return _factory


@pytest.fixture
def actor(make_user: Callable[..., User]) -> User:
    return make_user("coordinator")


@pytest.fixture
def make_api_key(db_session: Session) -> Callable[..., str]:
    """Create a key and return the raw token."""

    def _factory(scope: ApiScope = ApiScope.supporter, user: User | None = None, is_active: bool = True) -> str:
        token = f"{scope.value}-{uuid4().hex}"
        db_session.add(
            ApiKey(
                name=f"key-{uuid4().hex}",
                prefix=f"test_{scope.value}",
                key_hash=hash_key(token),
                scope=scope,
                is_active=is_active,
                user_id=user.id if user is not None else None,
            )
        )
        db_session.commit()
        return token

    return _factory


@pytest.fixture
def coordinator_headers(make_api_key: Callable[..., str], actor: User) -> dict[str, str]:
    return {"X-API-Key": make_api_key(ApiScope.coordinator, user=actor)}


@pytest.fixture
def supporter_headers(make_api_key: Callable[..., str], make_user: Callable[..., User]) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_api_key(ApiScope.supporter, user=make_user('supporter'))}"}


@pytest.fixture
def care_ids() -> dict[str, str]:
    return {"group_id": str(uuid4()), "subject_person_id": str(uuid4())}


@pytest.fixture
def make_alert(db_session: Session, actor: User, care_ids: dict[str, str]) -> Callable[..., Alert]:
    """Insert an alert row directly, bypassing the policy."""

    def _factory(
        *,
        alert_type: str = "agreement_declined",
        status: AlertStatus = AlertStatus.open,
        age: timedelta = timedelta(0),
        source_table: str | None = None,
        source_id: str | None = None,
        **overrides,
    ) -> Alert:
        fields = {**care_ids, **overrides}
        alert = Alert(
            type=alert_type,
            severity="tier2",
            title="Existing alert",
            status=status,
            source_table=source_table,
            source_id=source_id,
            created_by_user_id=actor.id,
            created_at=datetime.now(tz=UTC) - age,
            **fields,
        )
        db_session.add(alert)
        db_session.commit()
        return alert

    return _factory


@pytest.fixture
def make_contradiction(db_session: Session, actor: User, care_ids: dict[str, str]) -> Callable[..., Contradiction]:
    def _factory(
        *,
        status: ContradictionStatus = ContradictionStatus.open,
        age: timedelta = timedelta(0),
        **overrides,
    ) -> Contradiction:
        fields = {**care_ids, **overrides}
        contradiction = Contradiction(
            created_by_user_id=actor.id,
            type=ContradictionType.triangulation,
            severity=ContradictionSeverity.medium,
            summary="Accounts of the weekend disagree",
            status=status,
            created_at=datetime.now(tz=UTC) - age,
            **fields,
        )
        db_session.add(contradiction)
        db_session.commit()
        return contradiction

    return _factory
