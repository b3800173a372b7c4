"""
FastAPI app entry point aggregating per-domain routers under contactbook/routes.
Keep as `uvicorn contactbook.api:app`.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from .db import get_db_settings
from .errors import ContactStoreError
from .services.contact_svc import ContactService

logger = logging.getLogger(__name__)


def open_store() -> ContactService | None:
    settings = get_db_settings()
    try:
        svc = ContactService.from_settings(settings)
    except ContactStoreError as e:
        # routes answer 503 until the process is restarted with a reachable store
        logger.error(f"startup: cannot open {settings.describe()}: {e}")
        return None
    try:
        svc.ensure_schema()
    except ContactStoreError as e:
        logger.error(f"startup: schema init failed on {settings.describe()}: {e}")
        svc.close()
        return None
    return svc


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.contacts = open_store()
    try:
        yield
    finally:
        svc = app.state.contacts
        app.state.contacts = None
        if svc is not None:
            svc.close()


app = FastAPI(title="contactbook-api", version=__version__, lifespan=lifespan)
app.state.contacts = None


# Include routers (split by business domain)
from .routes import base as base_routes
from .routes import contacts as contacts_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(contacts_routes.router)
app.include_router(logs_routes.router)
