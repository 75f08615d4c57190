"""
FastAPI application exposing the authy login flow.

This module wires dependencies and configures the application.
Protocol logic lives in authy/engine.py and authy/oauth2.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import httpx
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from authy.config import AuthyConfig, get_authy_config
from authy.engine import Authy
from authy.logging_config import setup_global_logging
from authy.web import router as authy_router
from authy.web.dependencies import CurrentToken, get_authy


logger = logging.getLogger(__name__)


def create_app(config: AuthyConfig | None = None, authy: Authy | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Configuration (loaded from the environment if not provided)
        authy: Engine to serve (built from config if not provided)

    Returns:
        Configured FastAPI application

    Raises:
        ValueError: If the configuration is invalid or SESSION_SECRET_KEY is missing
    """
    setup_global_logging()

    if config is None:
        config = get_authy_config()
    config.validate()
    if not config.session_secret_key:
        raise ValueError("SESSION_SECRET_KEY is not set in the environment.")

    http_client: httpx.Client | None = None
    if authy is None:
        http_client = httpx.Client(timeout=config.http_timeout)
        authy = Authy(config, http_client=http_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Application starting up...",
            extra={"extra_fields": {"providers": authy.providers}},
        )
        yield
        logger.info("Shutting down application...")
        if http_client is not None:
            http_client.close()

    app = FastAPI(
        title="Authy",
        description="OAuth2 login for third-party providers",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Session middleware stores the CSRF state and the token
    app.add_middleware(SessionMiddleware, secret_key=config.session_secret_key)

    app.dependency_overrides[get_authy_config] = lambda: config
    app.dependency_overrides[get_authy] = lambda: authy

    app.include_router(authy_router.router, prefix=config.base_path)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @app.get(config.path_login)
    async def login(next: str | None = None):
        """List the login URL of every configured provider."""
        return {
            "providers": {
                name: f"{config.base_path}/{name}" for name in authy.providers
            },
            "next": next,
        }

    @app.get("/me")
    async def me(token: CurrentToken):
        """Protected endpoint describing the logged-in token."""
        return {
            "provider": token.provider,
            "scope": token.scope,
            "expired": token.expired(),
            "refreshable": token.is_refreshable(),
        }

    return app


if __name__ == "__main__":
    import uvicorn
    from dotenv import load_dotenv

    load_dotenv()
    port = int(os.getenv("PORT", 8080))
    uvicorn.run(create_app(), host="0.0.0.0", port=port)
