from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from motorent.api.v1 import health, motors, rentals
from motorent.clients.whatsapp import WhatsAppClient
from motorent.config.logging import setup_logging
from motorent.config.settings import Settings
from motorent.db.database import get_engine
from motorent.db.models import Base
from motorent.monitoring.metrics import init_app_info, setup_instrumentator


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting motorent service")

    settings = Settings()
    if settings.auto_create_tables:
        Base.metadata.create_all(get_engine(settings))
    app.state.whatsapp_client = WhatsAppClient(settings)

    yield
    logger.info("Shutting down motorent service")


def create_app() -> FastAPI:
    settings = Settings()
    setup_logging(settings.log_level, settings.log_json)

    app = FastAPI(
        title="Motorent Service",
        description="Motorcycle rental management backend",
        version="1.0.0",
        lifespan=lifespan,
    )

    instrumentator = setup_instrumentator()
    instrumentator.instrument(app).expose(app)

    init_app_info("1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(motors.router, prefix="/api/v1", tags=["motors"])
    app.include_router(rentals.router, prefix="/api/v1", tags=["rentals"])

    return app


def main():
    import uvicorn

    uvicorn.run(
        "motorent.main:app",
        host="0.0.0.0",
        port=8000,
        log_config=None,
    )


app = create_app()


if __name__ == "__main__":
    main()
