from typing import Generator
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from motorent.api.dependencies import get_session, get_settings, get_whatsapp_client
from motorent.config.settings import Settings
from motorent.core.utils import uuid4
from motorent.db.models import Base, MotorType, MotorUnit
from motorent.db.repositories.motor import MotorUnitRepository
from motorent.db.repositories.rental import RentalRepository
from motorent.services.notification import NotificationService
from motorent.services.rental import RentalService


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        timezone="Asia/Jakarta",
        hourly_overdue_rate=15_000,
        return_cooldown_min=60,
        default_rental_time="08:00",
        whatsapp_gateway_url="",
        auto_create_tables=False,
    )


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(
        bind=db_engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def whatsapp_client():
    client = Mock()
    client.enabled = True
    client.send_message.return_value = (True, None)
    client.get_circuit_breaker_stats.return_value = {}
    return client


@pytest.fixture
def rental_service(db_session, whatsapp_client, settings) -> RentalService:
    return RentalService(
        RentalRepository(db_session),
        MotorUnitRepository(db_session),
        NotificationService(whatsapp_client),
        settings,
    )


@pytest.fixture
def motor_unit(db_session) -> MotorUnit:
    motor_type = MotorType(id=uuid4(), brand="Honda", model="Vario 125", cc=125)
    unit = MotorUnit(
        id=uuid4(),
        type_id=motor_type.id,
        plate_number="N 1234 AB",
        daily_rate=100_000,
        status="AVAILABLE",
    )
    db_session.add_all([motor_type, unit])
    db_session.commit()
    return unit


@pytest.fixture
def api_client(session_factory, whatsapp_client, settings):
    from motorent.main import app

    def _get_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_whatsapp_client] = lambda: whatsapp_client

    yield TestClient(app)

    app.dependency_overrides.clear()


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "billing: mark test as billing-related")
