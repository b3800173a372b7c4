from __future__ import annotations

from ..db import Database
from ..domain.columns import SortColumn

DDL = {
    "mysql": """
    CREATE TABLE IF NOT EXISTS contacts (
        id INT AUTO_INCREMENT PRIMARY KEY,
        first_name VARCHAR(100),
        last_name VARCHAR(100),
        email VARCHAR(255),
        mobile VARCHAR(50),
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
        INDEX idx_name (first_name, last_name),
        INDEX idx_email (email)
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
    """,
    "sqlite": """
    CREATE TABLE IF NOT EXISTS contacts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        first_name TEXT,
        last_name TEXT,
        email TEXT,
        mobile TEXT,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    CREATE INDEX IF NOT EXISTS idx_name ON contacts(first_name, last_name);
    CREATE INDEX IF NOT EXISTS idx_email ON contacts(email);
    CREATE TRIGGER IF NOT EXISTS trg_contacts_updated_at
    AFTER UPDATE ON contacts FOR EACH ROW
    BEGIN
        UPDATE contacts SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
    END;
    """,
}

_SELECT = (
    "SELECT id, COALESCE(first_name,'') AS first_name, COALESCE(last_name,'') AS last_name, "
    "COALESCE(email,'') AS email, COALESCE(mobile,'') AS mobile FROM contacts"
)
_NAME_ORDER = " ORDER BY last_name ASC, first_name ASC, id ASC"

LIKE_ESCAPE = "!"


def ensure_schema(db: Database):
    db.execute_script(DDL[db.dialect.name])


def insert(db: Database, first: str, last: str, email: str, mobile: str) -> int:
    cur = db.execute(
        "INSERT INTO contacts(first_name, last_name, email, mobile) VALUES(?,?,?,?)",
        (first, last, email, mobile),
    )
    return int(cur.lastrowid)


def update(db: Database, contact_id: int, first: str, last: str, email: str, mobile: str) -> int:
    cur = db.execute(
        "UPDATE contacts SET first_name=?, last_name=?, email=?, mobile=? WHERE id=?",
        (first, last, email, mobile, int(contact_id)),
    )
    return cur.rowcount


def delete(db: Database, contact_id: int) -> int:
    cur = db.execute("DELETE FROM contacts WHERE id=?", (int(contact_id),))
    return cur.rowcount


def delete_all(db: Database) -> int:
    return db.execute("DELETE FROM contacts").rowcount


def get_one(db: Database, contact_id: int):
    return db.execute(_SELECT + " WHERE id=?", (int(contact_id),)).fetchone()


def list_all(db: Database):
    return db.execute(_SELECT + _NAME_ORDER).fetchall()


def like_pattern(query: str) -> str:
    """`%query%`, lower-cased, with LIKE metacharacters matched literally."""
    esc = (
        query.lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{esc}%"


def search(db: Database, query: str):
    cond = " OR ".join(
        f"LOWER(COALESCE({c},'')) LIKE ? ESCAPE '{LIKE_ESCAPE}'"
        for c in ("first_name", "last_name", "email", "mobile")
    )
    pattern = like_pattern(query)
    return db.execute(_SELECT + " WHERE " + cond + _NAME_ORDER, (pattern,) * 4).fetchall()


def list_sorted(db: Database, column: SortColumn, ascending: bool = True):
    if not isinstance(column, SortColumn):
        raise TypeError("column must be a SortColumn")
    order = "ASC" if ascending else "DESC"
    return db.execute(f"{_SELECT} ORDER BY {column.value} {order}").fetchall()


def count_all(db: Database) -> int:
    row = db.execute("SELECT COUNT(1) AS c FROM contacts").fetchone()
    return int(row["c"])


def ping(db: Database) -> bool:
    row = db.execute("SELECT 1 AS ok").fetchone()
    return row is not None
