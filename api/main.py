from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from api.errors import ApiError, api_error_handler, domain_error_handler
from api.routes import get_api_router
from brokerai import __version__
from brokerai.core.config import Config
from brokerai.core.exceptions import BrokerAIError
from brokerai.core.log import configure_logging

logger = logging.getLogger(__name__)


def create_app(config: Config | None = None) -> FastAPI:
    start = time.monotonic()

    # Refuse to start with empty auth_token unless explicitly overridden
    if config is None:
        config = Config.from_repo_defaults(Path.cwd())
    auth_token = str(config.api.auth_token or "")
    insecure_ok = os.environ.get("BROKERAI_INSECURE_OK", "").lower() in ("1", "true", "yes")

    if not auth_token and not insecure_ok:
        msg = (
            "API auth_token is empty\n"
            "\n"
            "Set BROKERAI_API__AUTH_TOKEN environment variable or add to config:\n"
            "  api:\n"
            "    auth_token: your-secret-token\n"
            "\n"
            "To run without auth (dev/test only), set BROKERAI_INSECURE_OK=1"
        )
        raise RuntimeError(msg)

    configure_logging(config.logging)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.started_at = start
        app.state.config = getattr(app.state, "config", None) or config

        from brokerai.core.database import Database

        created_db = False
        if getattr(app.state, "db", None) is None:
            app.state.db = Database(app.state.config.db_path)
            created_db = True

        logger.info("api_started", extra={"db_path": str(app.state.db.db_path)})
        yield

        source = getattr(app.state, "source", None)
        aclose = getattr(source, "aclose", None)
        if aclose is not None:
            await aclose()

        db = getattr(app.state, "db", None)
        if created_db and db is not None:
            db.close()

    openapi_tags = [
        {"name": "health", "description": "Liveness and version metadata."},
        {"name": "strategies", "description": "Strategy definitions."},
        {"name": "backtests", "description": "Run backtests and read stored results."},
    ]

    app = FastAPI(
        title="brokerai API",
        description="brokerai strategy backtesting",
        version=__version__,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(BrokerAIError, domain_error_handler)

    app.include_router(get_api_router(), prefix="/api/v1")
    return app


# Module-level app for uvicorn (e.g. `uvicorn api.main:app`).
# Guarded so test imports don't crash when auth_token isn't configured.
try:
    app = create_app()
except (RuntimeError, BrokerAIError):
    app = None
