"""Teashop FastAPI application.

Cart, custom blend and checkout service. ``create_app()`` initializes the
teashop domain from the settings and builds the app; nothing is read from
the environment until it is called.

Usage:
    uvicorn app:create_app --factory --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalogue.api import blend_router
from identity.auth import FakeTokenVerifier, set_verifier
from ordering.api import cart_router, order_router
from shared.api import register_domain_context, register_exception_handlers, register_request_context
from shared.db import setup_db
from shared.domain import database_config, init_domain
from shared.logging import configure_logging, get_logger
from shared.settings import Settings

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.env)
    domain = init_domain(settings)
    database = database_config(settings.database_url)["provider"]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.create_schema:
            setup_db(domain)
        logger.info("app_started", env=settings.env, database=database)
        yield
        logger.info("app_stopped")

    app = FastAPI(
        title="Teashop API",
        description="Carts, custom blends and checkout",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_domain_context(app, domain)
    register_request_context(app)
    register_exception_handlers(app)

    if settings.auth_dev_tokens:
        set_verifier(FakeTokenVerifier(settings.auth_dev_tokens))

    app.state.settings = settings

    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(blend_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "env": settings.env, "database": database}

    return app
