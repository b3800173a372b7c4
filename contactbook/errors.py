from __future__ import annotations


class ContactStoreError(Exception):
    """Base class for every failure surfaced by the contact store."""


class StoreConnectionError(ContactStoreError):
    """Cannot establish a connection to the store."""


class ConnectionLost(StoreConnectionError):
    """The held connection is no longer usable. Construct a new instance."""

    def __init__(self, msg: str = "Database connection lost"):
        super().__init__(msg)


class ValidationError(ContactStoreError):
    """Caller supplied data that violates a field invariant. Nothing was written."""


class NotFoundError(ContactStoreError):
    def __init__(self, contact_id: int):
        self.contact_id = contact_id
        super().__init__(f"Contact not found with ID: {contact_id}")


class StoreError(ContactStoreError):
    """The store rejected an operation. `diagnostic` is the driver's own text."""

    prefix = "Store error"

    def __init__(self, diagnostic: str):
        self.diagnostic = diagnostic
        super().__init__(f"{self.prefix}: {diagnostic}")


class WriteError(StoreError):
    prefix = "Write error"


class SchemaError(StoreError):
    prefix = "Schema initialization error"


class ReadError(StoreError):
    prefix = "Query error"
