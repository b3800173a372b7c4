from __future__ import annotations

import logging
import threading

from fastapi import HTTPException, Request

from ..errors import ConnectionLost, ContactStoreError, NotFoundError, ValidationError
from ..logs import LogContext
from ..services.contact_svc import ContactService

logger = logging.getLogger(__name__)

# One store connection serves every request; handlers run in a threadpool,
# so each use of the service happens under this lock.
store_lock = threading.Lock()


def get_service(request: Request) -> ContactService:
    svc = getattr(request.app.state, "contacts", None)
    if svc is None:
        raise HTTPException(status_code=503, detail="database not connected")
    return svc


def http_error(e: ContactStoreError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConnectionLost):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def write_log(svc: ContactService, log: LogContext, result: str = "OK", err: str | None = None) -> None:
    if not svc.db.is_live():
        return
    try:
        log.write(svc.db, result, err)
    except svc.db.errors as e:
        logger.warning(f"operation log write failed for {log.action}: {e}")
