"""FastAPI entry point (middlewares, exception handlers, routers and static attachments)."""
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from noter.api.router import api_router
from noter.core.config import settings
from noter.core.exceptions import register_exception_handlers
from noter.core.logging import setup_logging
from noter.core.middleware import add_middlewares
from noter.infrastructure.db.bootstrap import ensure_collections
from noter.infrastructure.db.mongo import close_mongo, db_ready, init_mongo
from noter.services.storage import ensure_upload_dirs

_log = logging.getLogger("noter.startup")


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title=settings.app_name)

    add_middlewares(app)
    register_exception_handlers(app)

    @app.on_event("startup")
    def on_startup():
        if not db_ready():
            init_mongo()
        # Collections/indexes/validators, when the DB is reachable
        try:
            if db_ready():
                ensure_collections()
            else:
                _log.warning("Mongo not ready; skipping ensure_collections()")
        except Exception as e:
            # Never block startup on validators or indexes
            _log.warning("ensure_collections() failed: %s", e)

    @app.on_event("shutdown")
    def on_shutdown():
        close_mongo()

    app.include_router(api_router, prefix=settings.api_prefix_normalized)

    # Uploaded attachments served back as static files
    app.mount(
        settings.static_prefix_normalized,
        StaticFiles(directory=str(ensure_upload_dirs())),
        name="attachments",
    )
    return app


app = create_app()


def run() -> None:
    uvicorn.run("noter.main:app", host="0.0.0.0", port=settings.port)
