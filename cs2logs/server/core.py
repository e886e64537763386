"""Litestar application factory."""

from __future__ import annotations

from litestar import Litestar
from litestar.config.compression import CompressionConfig
from litestar.config.cors import CORSConfig
from litestar.di import Provide
from litestar.middleware.logging import LoggingMiddlewareConfig
from litestar.openapi import OpenAPIConfig

from cs2logs.api.dependencies import (
    provide_classifier,
    provide_limit_offset_pagination,
    provide_settings,
    provide_transaction,
)
from cs2logs.config.settings import Settings, get_settings
from cs2logs.server import plugins
from cs2logs.server.lifecycle import on_shutdown, on_startup
from cs2logs.server.routes import get_route_handlers


def openapi_config(settings: Settings) -> OpenAPIConfig:
    return OpenAPIConfig(
        title=settings.name,
        version=settings.version,
        description=settings.description,
        create_examples=True,
    )


def app_dependencies() -> dict[str, Provide]:
    """Dependencies available to every handler."""
    return {
        "log_classifier": Provide(provide_classifier, sync_to_thread=False),
        "settings": Provide(provide_settings, sync_to_thread=False),
        "limit_offset": Provide(provide_limit_offset_pagination, sync_to_thread=False),
        "transaction": Provide(provide_transaction),
    }


def create_app() -> Litestar:
    """Build the application from the current settings.

    Used as a uvicorn factory (``cs2logs.server.core:create_app``) and by the
    test client.
    """
    settings = get_settings()

    # Download responses and large parse-test results compress well
    compression = CompressionConfig(backend="brotli", minimum_size=1000, brotli_quality=4)
    # The dashboard is served from its own origin
    cors = CORSConfig(
        allow_origins=settings.api.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    return Litestar(
        route_handlers=get_route_handlers(),
        dependencies=app_dependencies(),
        plugins=[plugins.sqlalchemy_plugin],
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        middleware=[LoggingMiddlewareConfig(request_log_fields=("path", "method", "query")).middleware],
        logging_config=plugins.logging_config,
        openapi_config=openapi_config(settings),
        compression_config=compression,
        cors_config=cors,
        debug=settings.debug,
    )
