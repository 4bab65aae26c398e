"""
User authentication service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_exception_handlers, register_middleware
from api.routes import router as api_router
from auth.directory import UserDirectory
from auth.jwt import TokenIssuer
from auth.middleware import AuthMiddleware
from auth.password import PasswordHasher
from auth.routes import router as auth_router
from auth.service import AuthService
from config.settings import Settings, get_settings
from database.session import build_engine
from database.user_directory import SqlUserDirectory

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
        stream=sys.stdout,
    )
    for _noisy in ("sqlalchemy.engine", "asyncio", "uvicorn.access"):
        logging.getLogger(_noisy).setLevel(logging.WARNING)


def create_app(
    settings: Optional[Settings] = None,
    directory: Optional[UserDirectory] = None,
) -> FastAPI:
    """
    Wire the auth core onto a FastAPI app.

    Without an explicit ``directory`` the SQL directory is built from
    ``settings.database_url`` and its schema is created on startup.
    """
    settings = settings or get_settings()
    auth_config = settings.get_auth_config()

    sql_directory: Optional[SqlUserDirectory] = None
    if directory is None:
        sql_directory = SqlUserDirectory(build_engine(settings.database_url))
        directory = sql_directory

    hash_pool = ThreadPoolExecutor(
        max_workers=settings.hash_workers, thread_name_prefix="password-hash"
    )
    service = AuthService(
        config=auth_config,
        hasher=PasswordHasher(auth_config.password_work_factor),
        issuer=TokenIssuer(auth_config.jwt_secret, auth_config.token_ttl_seconds),
        directory=directory,
        executor=hash_pool,
    )

    app = FastAPI(
        title="User Authentication Service",
        version="1.0.0",
        description="Register, login and bearer-token identity resolution.",
    )
    app.state.auth_service = service
    app.state.auth_middleware = AuthMiddleware(service)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(api_router, prefix="/api")

    @app.on_event("startup")
    async def on_startup():
        if sql_directory is not None:
            logger.info("Ensuring users table exists…")
            await sql_directory.create_schema()
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        hash_pool.shutdown(wait=False)
        if sql_directory is not None:
            await sql_directory.dispose()

    return app


if __name__ == "__main__":
    _settings = get_settings()
    configure_logging(_settings.debug)
    uvicorn.run(
        create_app(_settings),
        host=_settings.host,
        port=_settings.port,
        log_level="debug" if _settings.debug else "info",
    )
