from __future__ import annotations

import logging
from typing import Iterable

from ..db import Database, DbSettings, connect, connect_with
from ..domain.columns import resolve_sort_column
from ..domain.contact import Contact
from ..domain.validation import check_contact_fields
from ..errors import ContactStoreError, NotFoundError, ReadError, SchemaError, WriteError
from ..logs import LogContext, ensure_log_schema
from ..repository import contact_repo

logger = logging.getLogger(__name__)


class ContactService:
    """
    CRUD, search, sorted listing and transactional bulk import over one
    exclusively owned store connection.

    Every operation checks liveness first and raises ConnectionLost without
    touching the store. Writes are validated before the store is called, so a
    ValidationError never leaves partial state. Not thread-safe: callers run
    one operation at a time.
    """

    def __init__(self, db: Database):
        self.db = db

    @classmethod
    def connect(cls, host: str, port: int, user: str, password: str, database: str) -> "ContactService":
        return cls(connect(host, port, user, password, database))

    @classmethod
    def from_settings(cls, settings: DbSettings) -> "ContactService":
        return cls(connect_with(settings))

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "ContactService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- schema / probe ----------------

    def ensure_schema(self) -> None:
        self.db.ensure_live()
        try:
            contact_repo.ensure_schema(self.db)
            ensure_log_schema(self.db)
        except self.db.errors as e:
            raise SchemaError(str(e)) from e
        logger.info("Database schema initialized")

    def test_connection(self) -> bool:
        try:
            self.db.ensure_live()
            return contact_repo.ping(self.db)
        except ContactStoreError:
            return False
        except self.db.errors as e:
            logger.warning(f"connection test failed: {e}")
            return False

    # ---------------- writes ----------------

    def insert(self, first: str, last: str, email: str = "", mobile: str = "",
               log: LogContext | None = None) -> int:
        check_contact_fields(first, last, email)
        self.db.ensure_live()
        try:
            new_id = contact_repo.insert(self.db, first, last, email, mobile)
        except self.db.errors as e:
            raise WriteError(str(e)) from e
        if log is not None:
            log.contact_id = new_id
            log.after = Contact(new_id, first, last, email, mobile).to_dict()
        logger.info(f"Inserted contact {new_id}: {first} {last}")
        return new_id

    def update(self, contact_id: int, first: str, last: str, email: str = "", mobile: str = "",
               log: LogContext | None = None) -> None:
        check_contact_fields(first, last, email)
        self.db.ensure_live()
        before = self._snapshot(contact_id) if log is not None else None
        try:
            rows = contact_repo.update(self.db, contact_id, first, last, email, mobile)
        except self.db.errors as e:
            raise WriteError(str(e)) from e
        if rows == 0:
            raise NotFoundError(contact_id)
        if log is not None:
            log.contact_id = contact_id
            log.before = before
            log.after = Contact(contact_id, first, last, email, mobile).to_dict()
        logger.info(f"Updated contact {contact_id}")

    def delete(self, contact_id: int, log: LogContext | None = None) -> None:
        self.db.ensure_live()
        before = self._snapshot(contact_id) if log is not None else None
        try:
            rows = contact_repo.delete(self.db, contact_id)
        except self.db.errors as e:
            raise WriteError(str(e)) from e
        if rows == 0:
            raise NotFoundError(contact_id)
        if log is not None:
            log.contact_id = contact_id
            log.before = before
        logger.info(f"Deleted contact {contact_id}")

    def delete_all(self, log: LogContext | None = None) -> None:
        self.db.ensure_live()
        try:
            removed = contact_repo.delete_all(self.db)
        except self.db.errors as e:
            raise WriteError(str(e)) from e
        if log is not None:
            log.after = {"deleted": removed}
        logger.info("All contacts deleted")

    def import_bulk(self, contacts: Iterable[Contact], log: LogContext | None = None) -> bool:
        """
        Insert every record in one transaction: all persist or none do.

        Field validation is the caller's job for bulk data. Returns False after
        rolling back on the first store failure; auto-commit is restored either way.
        """
        self.db.ensure_live()
        items = list(contacts)
        try:
            with self.db.transaction() as tx:
                for c in items:
                    contact_repo.insert(self.db, c.first_name, c.last_name, c.email, c.mobile)
                tx.commit()
        except self.db.errors as e:
            logger.error(f"Import error, rolled back {len(items)} contacts: {e}")
            if log is not None:
                log.after = {"imported": 0, "rejected": len(items)}
            return False
        if log is not None:
            log.after = {"imported": len(items)}
        logger.info(f"Imported {len(items)} contacts")
        return True

    # ---------------- reads ----------------

    def get_by_id(self, contact_id: int) -> Contact | None:
        """None means no such row; a store fault raises ReadError instead."""
        self.db.ensure_live()
        try:
            row = contact_repo.get_one(self.db, contact_id)
        except self.db.errors as e:
            raise ReadError(str(e)) from e
        return Contact.from_row(row) if row else None

    def get_all(self) -> list[Contact]:
        self.db.ensure_live()
        try:
            return [Contact.from_row(r) for r in contact_repo.list_all(self.db)]
        except self.db.errors as e:
            logger.error(f"Query error: {e}")
            return []

    def search(self, query: str) -> list[Contact]:
        if not query:
            return self.get_all()
        self.db.ensure_live()
        try:
            return [Contact.from_row(r) for r in contact_repo.search(self.db, query)]
        except self.db.errors as e:
            logger.error(f"Search error: {e}")
            return []

    def get_sorted(self, column: str, ascending: bool = True) -> list[Contact]:
        safe_column = resolve_sort_column(column)
        self.db.ensure_live()
        try:
            rows = contact_repo.list_sorted(self.db, safe_column, ascending)
        except self.db.errors as e:
            logger.error(f"Sort error: {e}")
            return []
        return [Contact.from_row(r) for r in rows]

    def count(self) -> int:
        self.db.ensure_live()
        try:
            return contact_repo.count_all(self.db)
        except self.db.errors as e:
            logger.error(f"Count error: {e}")
            return 0

    def _snapshot(self, contact_id: int) -> dict | None:
        try:
            c = self.get_by_id(contact_id)
        except ReadError:
            return None
        return c.to_dict() if c else None
