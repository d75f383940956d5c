"""FastAPI application entrypoint and configuration.

This module provides the main FastAPI application factory that configures
logging, sets up CORS middleware, registers the JSON error handlers,
includes the tile and layer routers and exposes a health check endpoint.

Example:
    The application can be run with uvicorn:
        $ uvicorn tileproxy.main:app --reload

    Or imported and used programmatically:
        >>> from tileproxy.main import app
        >>> # Use app in ASGI server
"""

import logging

import fastapi
from fastapi import responses
from fastapi.middleware import cors

from tileproxy.api import layers, tiles
from tileproxy.core import config, errors
from tileproxy.core import logging as tileproxy_logging
from tileproxy.layers import registry as layer_registry

logger = logging.getLogger(__name__)


async def _tile_proxy_error_handler(
    request: fastapi.Request,
    exc: errors.TileProxyError,
) -> responses.JSONResponse:
    """Render a TileProxyError as ``{"error": message}``."""
    message = exc.message
    if isinstance(exc, errors.UpstreamError):
        message = f"Proxy error: {exc.message}"
    if isinstance(exc, errors.ClientInputError):
        logger.info("%s %s -> %s", request.method, request.url.path, exc.message)

    return responses.JSONResponse(
        {"error": message},
        status_code=exc.status_code,
    )


async def _unhandled_error_handler(
    request: fastapi.Request,
    exc: Exception,
) -> responses.JSONResponse:
    """Render any other exception as a generic JSON 500."""
    logger.exception(
        "Unhandled error for %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return responses.JSONResponse(
        {"error": "Internal server error"},
        status_code=500,
    )


def create_app() -> fastapi.FastAPI:
    """Create and configure the FastAPI application.

    Configures logging from settings, loads the layer registry so a
    malformed catalog fails at startup, includes the tile and layer routers,
    registers exception handlers that turn every pipeline failure into a
    JSON error body, and adds CORS middleware and a health check endpoint.

    Returns:
        Configured FastAPI application instance ready for ASGI server.

    Raises:
        pydantic.ValidationError: If a layer record is malformed.
        OSError: If the configured layers file cannot be read.

    Example:
        The app can be used with uvicorn or other ASGI servers:
            >>> app = create_app()
            >>> # Or use the module-level app instance:
            >>> from tileproxy.main import app
    """
    settings = config.get_settings()
    tileproxy_logging.configure_logging(
        level=settings.log_level,
        json_logs=settings.json_logs,
    )
    layer_registry.get_layer_registry()
    app = fastapi.FastAPI(title="Gozdar Tile Proxy", version="0.1.0")

    app.include_router(tiles.router)
    app.include_router(layers.router)

    app.add_exception_handler(
        errors.TileProxyError,
        _tile_proxy_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.add_middleware(
        cors.CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.allow_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:  # type: ignore[misc]
        """Health check endpoint for monitoring and load balancers.

        Returns:
            Dictionary with status "ok" if the service is running.
        """
        return {"status": "ok"}

    return app


app = create_app()
