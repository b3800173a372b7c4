"""CSV exchange of contacts: `First Name,Last Name,Email,Mobile`."""
from __future__ import annotations

import logging

import pandas as pd

from ..domain.contact import Contact
from ..domain.validation import validate_names
from ..logs import LogContext
from .contact_svc import ContactService

logger = logging.getLogger(__name__)

CSV_HEADER = ["First Name", "Last Name", "Email", "Mobile"]


def read_contacts_csv(src) -> list[Contact]:
    """
    Parse an exchange file. Columns are taken by position after the header row,
    missing cells become "", and rows without any name are dropped.
    """
    try:
        df = pd.read_csv(src, dtype=str, keep_default_na=False, index_col=False, encoding="utf-8-sig")
    except pd.errors.EmptyDataError:
        return []
    df = df.iloc[:, :4].fillna("")
    out: list[Contact] = []
    dropped = 0
    for values in df.itertuples(index=False, name=None):
        first, last, email, mobile = (list(values) + [""] * 4)[:4]
        if not validate_names(first, last):
            dropped += 1
            continue
        out.append(Contact(0, first, last, email, mobile))
    if dropped:
        logger.info(f"dropped {dropped} rows without first or last name")
    return out


def write_contacts_csv(contacts: list[Contact], dest) -> int:
    df = pd.DataFrame(
        [[c.first_name, c.last_name, c.email, c.mobile] for c in contacts],
        columns=CSV_HEADER,
    )
    df.to_csv(dest, index=False, encoding="utf-8-sig")
    return len(df)


def import_csv(svc: ContactService, src, log: LogContext | None = None) -> tuple[int, bool]:
    """Returns (records found, imported). An empty file imports nothing and is not a failure."""
    contacts = read_contacts_csv(src)
    if log is not None:
        log.payload = {"records": len(contacts)}
    if not contacts:
        return 0, True
    return len(contacts), svc.import_bulk(contacts, log)


def export_csv(svc: ContactService, dest) -> int:
    return write_contacts_csv(svc.get_all(), dest)
