from __future__ import annotations

from fastapi import FastAPI

from lesson_booking.adapters.inbound.web.fastapi_app import create_app
from lesson_booking.bootstrap import build_usecases
from lesson_booking.config import Settings
from lesson_booking.logger_config import configure_logging


def create_asgi_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)
    usecases = build_usecases(settings)
    return create_app(
        usecases.place_order,
        usecases.catalog,
        usecases.list_orders,
        usecases.anomalies,
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        cors_origins=settings.BACKEND_CORS_ORIGINS,
        images_dir=settings.IMAGES_DIR,
        on_shutdown=usecases.handle.close,
    )
