"""FastAPI application entry point."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from mapveto.api.router import api_router
from mapveto.auth.rate_limit import limiter
from mapveto.lobby.manager import LobbyManager
from mapveto.settings import Settings, get_settings
from mapveto.ws.lobby_handler import LobbyGateway

VERSION = "0.1.0"


def setup_logging() -> None:
    """Configure logging for the application."""
    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Set specific loggers
    logging.getLogger("mapveto").setLevel(logging.DEBUG)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)


# Set up logging on import
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Startup
    settings: Settings = app.state.settings
    logger.info(
        f"Starting map veto server (dev_mode={settings.dev_mode}, "
        f"strict_turn_order={settings.strict_turn_order})"
    )

    yield

    # Shutdown
    logger.info("Shutting down map veto server")
    await app.state.lobby_gateway.close()


def create_app(
    settings: Settings | None = None,
    manager: LobbyManager | None = None,
) -> FastAPI:
    """Build the application with its own lobby store and gateway.

    Args:
        settings: Settings to use (cached environment settings if None)
        manager: Lobby store to use (a fresh one if None)

    Returns:
        Configured FastAPI application
    """
    if settings is None:
        settings = get_settings()
    if manager is None:
        manager = LobbyManager(
            strict_turn_order=settings.strict_turn_order,
            coin_flip_default=settings.coin_flip_default,
            team_name_max_length=settings.team_name_max_length,
        )

    app = FastAPI(
        title="Map Veto",
        description="Real-time map ban/pick drafting API",
        version=VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.lobby_manager = manager
    app.state.lobby_gateway = LobbyGateway(
        manager,
        coin_flip_reveal_seconds=settings.coin_flip_reveal_seconds,
        replay_step_seconds=settings.replay_step_seconds,
    )

    # CORS middleware
    # In dev mode, allow localhost. In production, allow the configured frontend URL.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "Map Veto API", "version": VERSION}

    # Include API routers
    app.include_router(api_router, prefix="/api")

    # WebSocket endpoint for lobby real-time communication
    @app.websocket("/ws")
    async def lobby_websocket_endpoint(websocket: WebSocket) -> None:
        """WebSocket endpoint for lobby real-time communication."""
        await app.state.lobby_gateway.handle_websocket(websocket)

    return app


app = create_app()
