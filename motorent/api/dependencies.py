from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from motorent.clients.whatsapp import WhatsAppClient
from motorent.config.settings import Settings
from motorent.db.database import get_sessionmaker
from motorent.db.repositories.motor import MotorTypeRepository, MotorUnitRepository
from motorent.db.repositories.rental import RentalRepository
from motorent.services.motor import MotorService
from motorent.services.notification import NotificationService
from motorent.services.rental import RentalService


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def get_session(settings: Settings = Depends(get_settings)) -> Session:
    sessionmaker = get_sessionmaker(settings)
    session = sessionmaker()
    try:
        yield session
    finally:
        session.close()


def get_whatsapp_client(request: Request) -> WhatsAppClient:
    return request.app.state.whatsapp_client


def get_motor_type_repository(
    session: Session = Depends(get_session),
) -> MotorTypeRepository:
    return MotorTypeRepository(session)


def get_motor_unit_repository(
    session: Session = Depends(get_session),
) -> MotorUnitRepository:
    return MotorUnitRepository(session)


def get_rental_repository(session: Session = Depends(get_session)) -> RentalRepository:
    return RentalRepository(session)


def get_notification_service(
    whatsapp_client: WhatsAppClient = Depends(get_whatsapp_client),
) -> NotificationService:
    return NotificationService(whatsapp_client)


def get_motor_service(
    type_repo: MotorTypeRepository = Depends(get_motor_type_repository),
    unit_repo: MotorUnitRepository = Depends(get_motor_unit_repository),
) -> MotorService:
    return MotorService(type_repo, unit_repo)


def get_rental_service(
    rental_repo: RentalRepository = Depends(get_rental_repository),
    unit_repo: MotorUnitRepository = Depends(get_motor_unit_repository),
    notification_service: NotificationService = Depends(get_notification_service),
    settings: Settings = Depends(get_settings),
) -> RentalService:
    return RentalService(rental_repo, unit_repo, notification_service, settings)
