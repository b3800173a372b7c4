import json, time, uuid, datetime as dt
from typing import Any, Optional

from .db import Database

DDL = {
    "sqlite": """
CREATE TABLE IF NOT EXISTS operation_log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  user TEXT NOT NULL,
  action TEXT NOT NULL,
  contact_id INTEGER,
  request_id TEXT,
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result TEXT,
  err_msg TEXT,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_log_ts ON operation_log(ts);
CREATE INDEX IF NOT EXISTS idx_log_action ON operation_log(action);
""",
    "mysql": """
CREATE TABLE IF NOT EXISTS operation_log (
  id INT AUTO_INCREMENT PRIMARY KEY,
  ts VARCHAR(40) NOT NULL,
  user VARCHAR(100) NOT NULL,
  action VARCHAR(64) NOT NULL,
  contact_id INT,
  request_id VARCHAR(64),
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result VARCHAR(16),
  err_msg TEXT,
  latency_ms INT,
  INDEX idx_log_ts (ts),
  INDEX idx_log_action (action)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
""",
}

_INSERT = """INSERT INTO operation_log
(ts,user,action,contact_id,request_id,before_json,after_json,payload_json,result,err_msg,latency_ms)
VALUES(?,?,?,?,?,?,?,?,?,?,?)"""


def ensure_log_schema(db: Database):
    db.execute_script(DDL[db.dialect.name])


def _dump(obj) -> Optional[str]:
    return None if obj is None else json.dumps(obj, ensure_ascii=False)


class LogContext:
    """
    Audit record for one contact write. The caller supplies the request
    payload; the service fills in contact_id and the before/after snapshots.
    """

    def __init__(self, action: str, user: str = "owner", payload: Any = None):
        self.action = action
        self.user = user
        self.payload = payload
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.contact_id: Optional[int] = None
        self.before: Optional[dict] = None
        self.after: Optional[dict] = None

    def write(self, db: Database, result: str = "OK", err: Optional[str] = None):
        elapsed_ms = int((time.perf_counter() - self.start) * 1000)
        db.execute(_INSERT, (
            dt.datetime.now(dt.timezone.utc).isoformat(),
            self.user,
            self.action,
            self.contact_id,
            self.request_id,
            _dump(self.before),
            _dump(self.after),
            _dump(self.payload),
            result,
            err,
            elapsed_ms,
        ))


def search_operation_logs(db: Database, q: str | None = None, action: str | None = None,
                          contact_id: int | None = None, ts_from: str | None = None,
                          ts_to: str | None = None, page: int = 1,
                          size: int = 20) -> tuple[int, list[dict[str, Any]]]:
    """Newest first. `q` is a substring of any recorded JSON snapshot."""
    filters = [
        ("action = ?", action),
        ("contact_id = ?", contact_id),
        ("ts >= ?", ts_from),
        ("ts <= ?", ts_to),
    ]
    filters = [(clause, value) for clause, value in filters if value not in (None, "")]
    where = [clause for clause, _ in filters]
    params: list[Any] = [value for _, value in filters]
    if q:
        where.append("(payload_json LIKE ? OR before_json LIKE ? OR after_json LIKE ?)")
        params.extend([f"%{q}%"] * 3)
    wh = " WHERE " + " AND ".join(where) if where else ""
    page, size = max(1, int(page)), max(1, int(size))
    total = db.execute(f"SELECT COUNT(1) AS cnt FROM operation_log{wh}", params).fetchone()["cnt"]
    rows = db.execute(
        f"SELECT * FROM operation_log{wh} ORDER BY ts DESC, id DESC LIMIT ? OFFSET ?",
        [*params, size, (page - 1) * size],
    ).fetchall()
    return int(total), [dict(r) for r in rows]
