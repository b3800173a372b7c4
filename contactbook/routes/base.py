from fastapi import APIRouter, Depends

from .. import __version__
from ..services.contact_svc import ContactService
from .deps import get_service, store_lock

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/version")
def version():
    return {"app": "contactbook-api", "version": __version__}

@router.get("/api/db/ping")
def db_ping(svc: ContactService = Depends(get_service)):
    with store_lock:
        return {"ok": svc.test_connection()}
