import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from contactbook.db import get_db_settings, open_database
from contactbook.services.contact_svc import ContactService


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "contacts_test.db"
    # Point the store to this temp DB
    os.environ["CONTACTS_DB_PATH"] = str(path)
    with open_database(get_db_settings()) as db:
        ContactService(db).ensure_schema()
    return str(path)


@pytest.fixture()
def db(tmp_db_path):
    with open_database() as conn:
        yield conn


@pytest.fixture()
def svc(db):
    return ContactService(db)


@pytest.fixture()
def client(tmp_db_path):
    # Import app after DB ready so startup hooks can use it
    from contactbook.api import app
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def reject_email_trigger(db):
    """Store-level rule: any insert with this email is aborted by the database."""
    db.execute_script(
        """
        CREATE TRIGGER IF NOT EXISTS trg_reject_email BEFORE INSERT ON contacts
        WHEN NEW.email = 'reject@example.com'
        BEGIN
            SELECT RAISE(ABORT, 'rejected by store');
        END;
        """
    )
    yield "reject@example.com"
    db.execute("DROP TRIGGER IF EXISTS trg_reject_email")


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Clean tables before each test for isolation
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("CONTACTS_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in ("contacts", "operation_log"):
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield
