from __future__ import annotations

from fastapi import APIRouter, Depends

from ..errors import ContactStoreError
from ..logs import search_operation_logs
from ..services.contact_svc import ContactService
from .deps import get_service, http_error, store_lock

router = APIRouter()


@router.get("/api/logs/search")
def api_logs_search(
    page: int = 1,
    size: int = 20,
    action: str | None = None,
    query: str | None = None,
    contact_id: int | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
    svc: ContactService = Depends(get_service),
):
    with store_lock:
        try:
            svc.db.ensure_live()
        except ContactStoreError as e:
            raise http_error(e)
        total, items = search_operation_logs(
            svc.db, query, action, contact_id, ts_from, ts_to, page, size
        )
    return {"total": total, "items": items}
