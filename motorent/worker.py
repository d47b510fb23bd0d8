import time
from contextlib import contextmanager

from loguru import logger

from motorent.clients.whatsapp import WhatsAppClient
from motorent.config.logging import setup_logging
from motorent.config.settings import Settings
from motorent.db.database import get_sessionmaker
from motorent.db.repositories.motor import MotorUnitRepository
from motorent.db.repositories.rental import RentalRepository
from motorent.monitoring.metrics import (
    MetricsCollector,
    init_app_info,
    start_metrics_server,
)
from motorent.services.notification import NotificationService
from motorent.services.rental import RentalService


@contextmanager
def get_services(settings: Settings, whatsapp_client: WhatsAppClient):
    sessionmaker = get_sessionmaker(settings)
    session = sessionmaker()
    try:
        rental_service = RentalService(
            RentalRepository(session),
            MotorUnitRepository(session),
            NotificationService(whatsapp_client),
            settings,
        )
        yield rental_service, session
    finally:
        session.close()


def tick_once(settings: Settings, whatsapp_client: WhatsAppClient) -> int:
    start_time = time.time()

    with get_services(settings, whatsapp_client) as (rental_service, session):
        try:
            marked = rental_service.check_overdue_rentals()
            session.commit()
        except Exception as e:
            session.rollback()
            rental_service.discard_notifications()
            MetricsCollector.record_worker_error("overdue_check_failed")
            logger.error(f"Overdue check failed: {e}")
            raise

        rental_service.send_notifications()

    duration = time.time() - start_time
    MetricsCollector.record_overdue_check(duration, len(marked))
    logger.info(
        f"Overdue tick: interval_sec={settings.overdue_check_interval_sec}, "
        f"marked={len(marked)}, duration={duration:.2f}s"
    )
    return len(marked)


def main():
    settings = Settings()
    setup_logging(settings.log_level, settings.log_json)

    start_metrics_server(settings.worker_metrics_port)
    init_app_info("1.0.0", component="worker")

    whatsapp_client = WhatsAppClient(settings)
    logger.info(
        f"Starting overdue worker: interval_sec={settings.overdue_check_interval_sec}"
    )
    logger.info(f"Metrics server started on port {settings.worker_metrics_port}")

    while True:
        try:
            tick_once(settings, whatsapp_client)
        except Exception as e:
            MetricsCollector.record_worker_error("tick_error")
            logger.error(f"Tick error: {e}")

        time.sleep(settings.overdue_check_interval_sec)


if __name__ == "__main__":
    main()
