"""Application factory: database, sessions, templates and controllers."""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from advanced_alchemy.extensions.litestar import (
    AsyncSessionConfig,
    SQLAlchemyAsyncConfig,
    SQLAlchemyPlugin,
)
from litestar import Litestar
from litestar.config.compression import CompressionConfig
from litestar.contrib.jinja import JinjaTemplateEngine
from litestar.exceptions import HTTPException
from litestar.middleware.session.client_side import CookieBackendConfig
from litestar.template import TemplateConfig

from sustainwdn.admin import (
    AdminController,
    JobAdminController,
    PathwayAdminController,
    UserAdminController,
)
from sustainwdn.config import Settings, get_settings
from sustainwdn.controllers import ProfileController, WebController
from sustainwdn.db.base import Base
from sustainwdn.db.services.profile_service import ProfileAutosaveRegistry
from sustainwdn.lib import observability
from sustainwdn.lib.exceptions import (
    FetchError,
    fetch_error_handler,
    http_exception_handler,
    internal_server_error_handler,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

EXCEPTION_HANDLERS: dict[type[Exception], Any] = {
    HTTPException: http_exception_handler,
    FetchError: fetch_error_handler,
    Exception: internal_server_error_handler,
}


def create_db_config(settings: Settings) -> SQLAlchemyAsyncConfig:
    return SQLAlchemyAsyncConfig(
        connection_string=settings.db.url,
        metadata=Base.metadata,
        create_all=settings.db.create_all,
        session_config=AsyncSessionConfig(expire_on_commit=False),
    )


def create_session_config(secret_key: str, secure: bool, max_age: int = 60 * 60 * 24 * 7) -> CookieBackendConfig:
    """Client-side encrypted cookie sessions.

    The secret is hashed so it is exactly 32 bytes whatever its length.
    """
    session_secret = hashlib.sha256(secret_key.encode()).digest()
    return CookieBackendConfig(
        secret=session_secret,
        max_age=max_age,
        httponly=True,
        secure=secure,
        samesite="lax",
    )


def create_template_config(settings: Settings) -> TemplateConfig:
    def engine_callback(engine: JinjaTemplateEngine) -> None:
        engine.engine.globals.update({"now": datetime.now, "site_name": settings.site_name})

    return TemplateConfig(
        directory=TEMPLATE_DIR,
        engine=JinjaTemplateEngine,
        engine_callback=engine_callback,
    )


def create_app(settings: Settings | None = None) -> Litestar:
    """Create and configure the Litestar application."""
    settings = settings or get_settings()

    observability.configure(settings)
    observability.instrument_httpx()

    db_config = create_db_config(settings)
    session_config = create_session_config(settings.secret_key, secure=not settings.debug)
    autosave = ProfileAutosaveRegistry(db_config.get_session, settings.autosave.idle_seconds)

    async def on_startup(_app: Litestar) -> None:
        observability.instrument_sqlalchemy(db_config.get_engine())
        logger.info("%s started", settings.site_name)

    async def on_shutdown(_app: Litestar) -> None:
        """Flush profile edits that are still waiting for their idle timer."""
        await autosave.close_all()

    app = Litestar(
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        route_handlers=[
            WebController,
            ProfileController,
            AdminController,
            PathwayAdminController,
            JobAdminController,
            UserAdminController,
        ],
        plugins=[SQLAlchemyPlugin(config=db_config)],
        middleware=[session_config.middleware],
        template_config=create_template_config(settings),
        compression_config=CompressionConfig(backend="gzip"),
        exception_handlers=EXCEPTION_HANDLERS,
        debug=settings.debug,
    )
    app.state.db_config = db_config
    app.state.session_config = session_config
    app.state.autosave = autosave

    return app
