from __future__ import annotations

# contactbook/db.py
import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Iterator, Sequence

import pymysql
import pymysql.cursors
import yaml
from pymysql.constants import CLIENT

from .errors import ConnectionLost, StoreConnectionError

logger = logging.getLogger(__name__)

# Settings resolution order (later wins):
# 1) built-in defaults
# 2) config.yaml `db:` mapping (CONTACTS_CONFIG overrides the file location)
# 3) CONTACTS_DB_HOST / _PORT / _USER / _PASSWORD / _NAME
# 4) CONTACTS_DB_PATH switches to the embedded sqlite store at that path
_PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
_DEFAULT_CONFIG = os.path.join(_PROJECT_ROOT, "config.yaml")

_ENV_KEYS = {
    "CONTACTS_DB_HOST": "host",
    "CONTACTS_DB_PORT": "port",
    "CONTACTS_DB_USER": "user",
    "CONTACTS_DB_PASSWORD": "password",
    "CONTACTS_DB_NAME": "database",
}


@dataclass(frozen=True)
class DbSettings:
    driver: str = "mysql"
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "Contacts"
    path: str | None = None

    def describe(self) -> str:
        """Connection target without credentials, safe to log."""
        if self.driver == "sqlite":
            return f"sqlite:{self.path}"
        return f"mysql://{self.user}@{self.host}:{self.port}/{self.database}"


def _read_config_yaml(config_path: str | None = None) -> dict:
    cfg_path = config_path or os.environ.get("CONTACTS_CONFIG") or _DEFAULT_CONFIG
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"ignoring unreadable config {cfg_path}: {e}")
        return {}
    db = cfg.get("db") if isinstance(cfg, dict) else None
    if not isinstance(db, dict):
        return {}
    out = {}
    for k in ("driver", "host", "port", "user", "password", "database", "path"):
        v = db.get(k)
        if v is None:
            continue
        if isinstance(v, str):
            v = v.strip()
            if not v and k != "password":
                continue
        out[k] = v
    return out


def get_db_settings(config_path: str | None = None) -> DbSettings:
    values: dict[str, Any] = _read_config_yaml(config_path)
    for env_key, field_name in _ENV_KEYS.items():
        v = os.environ.get(env_key)
        if v:
            values[field_name] = v
    env_path = os.environ.get("CONTACTS_DB_PATH")
    if env_path:
        values["driver"] = "sqlite"
        values["path"] = env_path
    if "port" in values:
        values["port"] = int(values["port"])
    settings = replace(DbSettings(), **values)
    if settings.driver not in ("mysql", "sqlite"):
        raise ValueError(f"unsupported db driver: {settings.driver}")
    if settings.driver == "sqlite" and not settings.path:
        raise ValueError("sqlite driver requires a db path")
    return settings


# ---------------- Dialects ----------------

class Dialect:
    """Per-driver differences. SQL is written once with `?` placeholders."""

    name = ""
    errors: tuple[type[BaseException], ...] = ()

    def render(self, sql: str) -> str:
        return sql

    def cursor(self, raw):
        return raw.cursor()

    def is_live(self, raw) -> bool:
        raise NotImplementedError

    def begin(self, raw) -> None:
        raise NotImplementedError

    def commit(self, raw) -> None:
        raw.commit()

    def rollback(self, raw) -> None:
        raw.rollback()

    def restore_autocommit(self, raw) -> None:
        raise NotImplementedError

    def execute_script(self, raw, script: str) -> None:
        cur = self.cursor(raw)
        try:
            for stmt in script.split(";"):
                if stmt.strip():
                    cur.execute(stmt)
        finally:
            cur.close()


class SqliteDialect(Dialect):
    name = "sqlite"
    errors = (sqlite3.Error,)

    def is_live(self, raw) -> bool:
        try:
            raw.execute("SELECT 1").fetchone()
            return True
        except sqlite3.Error:
            return False

    # Connections are opened with isolation_level=None (autocommit), so
    # transactions are explicit BEGIN/COMMIT/ROLLBACK statements.
    def begin(self, raw) -> None:
        raw.execute("BEGIN")

    def commit(self, raw) -> None:
        raw.execute("COMMIT")

    def rollback(self, raw) -> None:
        if raw.in_transaction:
            raw.execute("ROLLBACK")

    def restore_autocommit(self, raw) -> None:
        # Already in autocommit once the transaction has ended; assigning
        # isolation_level here would implicitly COMMIT a pending transaction.
        pass

    def execute_script(self, raw, script: str) -> None:
        raw.executescript(script)


class MySQLDialect(Dialect):
    name = "mysql"
    errors = (pymysql.MySQLError,)

    def render(self, sql: str) -> str:
        return sql.replace("?", "%s")

    def is_live(self, raw) -> bool:
        if not raw.open:
            return False
        try:
            raw.ping(reconnect=False)
            return True
        except pymysql.MySQLError:
            return False

    def begin(self, raw) -> None:
        raw.autocommit(False)
        raw.begin()

    def restore_autocommit(self, raw) -> None:
        raw.autocommit(True)


# ---------------- Connection ----------------

class Database:
    """
    Exclusive owner of one live store connection.

    The connection is opened before construction completes and held until
    close(). There is no pooling, no reconnect and no internal locking: a lost
    connection is terminal for the instance, and callers serialize access.
    """

    def __init__(self, raw, dialect: Dialect, target: str = ""):
        self._raw = raw
        self.dialect = dialect
        self.target = target
        self._closed = False
        self._tx: Transaction | None = None

    @property
    def errors(self) -> tuple[type[BaseException], ...]:
        return self.dialect.errors

    @property
    def in_transaction(self) -> bool:
        return self._tx is not None

    def is_live(self) -> bool:
        if self._closed or self._raw is None:
            return False
        return self.dialect.is_live(self._raw)

    def ensure_live(self) -> None:
        if not self.is_live():
            raise ConnectionLost()

    def execute(self, sql: str, params: Sequence[Any] = ()):
        cur = self.dialect.cursor(self._raw)
        cur.execute(self.dialect.render(sql), tuple(params))
        return cur

    def execute_script(self, script: str) -> None:
        self.dialect.execute_script(self._raw, script)

    def transaction(self) -> "Transaction":
        return Transaction(self)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._raw.close()
        except self.errors as e:
            logger.warning(f"error closing {self.target}: {e}")

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class Transaction:
    """
    Scoped transaction: auto-commit is off inside the block, the block rolls
    back unless commit() was called, and auto-commit is restored on every exit.
    """

    def __init__(self, db: Database):
        self._db = db
        self._open = False
        self.committed = False

    def __enter__(self) -> "Transaction":
        if self._db.in_transaction:
            raise RuntimeError("nested transactions are not supported")
        raw = self._db._raw
        self._db._tx = self
        try:
            self._db.dialect.begin(raw)
        except BaseException:
            self._db._tx = None
            self._db.dialect.restore_autocommit(raw)
            raise
        self._open = True
        return self

    def commit(self) -> None:
        if not self._open:
            raise RuntimeError("transaction is not open")
        self._db.dialect.commit(self._db._raw)
        self._open = False
        self.committed = True

    def __exit__(self, exc_type, exc, tb) -> bool:
        raw = self._db._raw
        try:
            if self._open:
                self._open = False
                self._db.dialect.rollback(raw)
        finally:
            self._db._tx = None
            self._db.dialect.restore_autocommit(raw)
        return False


def connect(host: str, port: int, user: str, password: str, database: str) -> Database:
    """Open a MariaDB/MySQL connection. Raises StoreConnectionError on failure."""
    target = f"mysql://{user}@{host}:{port}/{database}"
    try:
        raw = pymysql.connect(
            host=host,
            port=int(port),
            user=user,
            password=password,
            database=database,
            charset="utf8mb4",
            cursorclass=pymysql.cursors.DictCursor,
            autocommit=True,
            # rowcount counts matched rows, so an UPDATE that changes nothing
            # is still distinguishable from a missing id
            client_flag=CLIENT.FOUND_ROWS,
        )
    except pymysql.MySQLError as e:
        raise StoreConnectionError(f"Database connection error: {e}") from e
    db = Database(raw, MySQLDialect(), target)
    if not db.is_live():
        db.close()
        raise StoreConnectionError("Failed to establish database connection")
    logger.info(f"Database connected: {target}")
    return db


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def connect_sqlite(path: str) -> Database:
    """Open the embedded store at `path`, creating parent directories."""
    dirn = os.path.dirname(path) or "."
    try:
        os.makedirs(dirn, exist_ok=True)
        raw = sqlite3.connect(
            path,
            check_same_thread=False,
            isolation_level=None,
        )
    except (OSError, sqlite3.Error) as e:
        raise StoreConnectionError(f"Database connection error: {e}") from e
    raw.row_factory = sqlite3.Row
    # built-in LOWER() folds ASCII only; search patterns are folded with str.lower()
    raw.create_function("lower", 1, _unicode_lower, deterministic=True)
    logger.info(f"Database connected: sqlite:{path}")
    return Database(raw, SqliteDialect(), f"sqlite:{path}")


def connect_with(settings: DbSettings) -> Database:
    if settings.driver == "sqlite":
        return connect_sqlite(settings.path or "")
    return connect(settings.host, settings.port, settings.user, settings.password, settings.database)


@contextmanager
def open_database(settings: DbSettings | None = None) -> Iterator[Database]:
    """
    Connect from settings (get_db_settings() when omitted) and always close
    the connection when the block exits.
    """
    db = connect_with(settings or get_db_settings())
    try:
        yield db
    finally:
        db.close()
