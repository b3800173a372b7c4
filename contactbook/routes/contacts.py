from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..domain.contact import Contact
from ..domain.validation import validate_names
from ..errors import ContactStoreError
from ..logs import LogContext
from ..services.contact_svc import ContactService
from .deps import get_service, http_error, store_lock, write_log

router = APIRouter()


class ContactIn(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    mobile: str = ""


class BulkImportReq(BaseModel):
    items: List[ContactIn]


@router.get("/api/contacts")
def api_contacts_list(
    q: Optional[str] = None,
    sort: Optional[str] = None,
    order: str = Query("asc", pattern=r"^(asc|desc)$"),
    svc: ContactService = Depends(get_service),
):
    with store_lock:
        try:
            if q:
                items = svc.search(q)
            elif sort:
                items = svc.get_sorted(sort, order == "asc")
            else:
                items = svc.get_all()
        except ContactStoreError as e:
            raise http_error(e)
    return {"total": len(items), "items": [c.to_dict() for c in items]}


@router.get("/api/contacts/count")
def api_contacts_count(svc: ContactService = Depends(get_service)):
    with store_lock:
        try:
            return {"count": svc.count()}
        except ContactStoreError as e:
            raise http_error(e)


@router.get("/api/contacts/{contact_id}")
def api_contact_get(contact_id: int, svc: ContactService = Depends(get_service)):
    with store_lock:
        try:
            c = svc.get_by_id(contact_id)
        except ContactStoreError as e:
            raise http_error(e)
    if c is None:
        raise HTTPException(status_code=404, detail=f"Contact not found with ID: {contact_id}")
    return c.to_dict()


@router.post("/api/contacts", status_code=201)
def api_contact_create(body: ContactIn, svc: ContactService = Depends(get_service)):
    log = LogContext("CREATE_CONTACT", payload=body.model_dump())
    with store_lock:
        try:
            new_id = svc.insert(body.first_name, body.last_name, body.email, body.mobile, log)
        except ContactStoreError as e:
            write_log(svc, log, "ERROR", str(e))
            raise http_error(e)
        write_log(svc, log)
    return {"message": "ok", "id": new_id}


@router.put("/api/contacts/{contact_id}")
def api_contact_update(contact_id: int, body: ContactIn, svc: ContactService = Depends(get_service)):
    log = LogContext("UPDATE_CONTACT", payload=body.model_dump())
    with store_lock:
        try:
            svc.update(contact_id, body.first_name, body.last_name, body.email, body.mobile, log)
        except ContactStoreError as e:
            write_log(svc, log, "ERROR", str(e))
            raise http_error(e)
        write_log(svc, log)
    return {"message": "ok"}


@router.delete("/api/contacts/{contact_id}")
def api_contact_delete(contact_id: int, svc: ContactService = Depends(get_service)):
    log = LogContext("DELETE_CONTACT")
    with store_lock:
        try:
            svc.delete(contact_id, log)
        except ContactStoreError as e:
            write_log(svc, log, "ERROR", str(e))
            raise http_error(e)
        write_log(svc, log)
    return {"message": "ok"}


@router.delete("/api/contacts")
def api_contacts_wipe(confirm: bool = False, svc: ContactService = Depends(get_service)):
    if not confirm:
        raise HTTPException(status_code=400, detail="pass confirm=true to delete all contacts")
    log = LogContext("DELETE_ALL_CONTACTS")
    with store_lock:
        try:
            svc.delete_all(log)
        except ContactStoreError as e:
            write_log(svc, log, "ERROR", str(e))
            raise http_error(e)
        write_log(svc, log)
    return {"message": "ok"}


@router.post("/api/contacts/import")
def api_contacts_import(body: BulkImportReq, svc: ContactService = Depends(get_service)):
    # rows without any name are the caller's to drop, never the store's
    contacts = [
        Contact(0, it.first_name, it.last_name, it.email, it.mobile)
        for it in body.items
        if validate_names(it.first_name, it.last_name)
    ]
    log = LogContext("IMPORT_CONTACTS", payload={"received": len(body.items), "accepted": len(contacts)})
    if not contacts:
        return {"message": "ok", "imported": 0, "skipped": len(body.items)}
    with store_lock:
        try:
            ok = svc.import_bulk(contacts, log)
        except ContactStoreError as e:
            raise http_error(e)
        if not ok:
            write_log(svc, log, "ERROR", "import rolled back")
            raise HTTPException(status_code=409, detail="Failed to import contacts; nothing was imported")
        write_log(svc, log)
    return {"message": "ok", "imported": len(contacts), "skipped": len(body.items) - len(contacts)}
