"""Bring the service desk database schema up to date at startup."""

from __future__ import annotations

import errno
import logging
import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator, Sequence

from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import make_url
from sqlalchemy.engine.reflection import Inspector

from .database import SQLALCHEMY_DATABASE_URL

LOGGER = logging.getLogger(__name__)

LOCK_FILENAME = ".service-desk-migration.lock"
LOCK_RETRY_DELAY = 0.25
LOCK_TIMEOUT_ENV = "ALEMBIC_MIGRATION_LOCK_TIMEOUT"
DEFAULT_LOCK_TIMEOUT = 30.0

if os.name == "posix":  # pragma: no cover - platform specific
    import fcntl
else:  # pragma: no cover - platform specific
    import msvcrt

RevisionSentinel = tuple[str, Callable[[Inspector], bool]]


def _table_exists(inspector: Inspector, table_name: str) -> bool:
    return inspector.has_table(table_name)


def _column_exists(inspector: Inspector, table_name: str, column_name: str) -> bool:
    if not inspector.has_table(table_name):
        return False
    return column_name in {column["name"] for column in inspector.get_columns(table_name)}


def _read_lock_timeout() -> float:
    raw = os.getenv(LOCK_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_LOCK_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning(
            "Invalid %s=%s; falling back to %.1f seconds", LOCK_TIMEOUT_ENV, raw, DEFAULT_LOCK_TIMEOUT
        )
        return DEFAULT_LOCK_TIMEOUT
    if value <= 0:
        LOGGER.warning(
            "%s must be positive; using %.1f seconds", LOCK_TIMEOUT_ENV, DEFAULT_LOCK_TIMEOUT
        )
        return DEFAULT_LOCK_TIMEOUT
    return value


def _is_lock_conflict(error: OSError) -> bool:
    errno_value = getattr(error, "errno", None)
    if errno_value in {errno.EACCES, errno.EAGAIN, errno.EBUSY}:
        return True
    winerror = getattr(error, "winerror", None)
    # ERROR_LOCK_VIOLATION (33) and ERROR_SHARING_VIOLATION (32) are common
    # when another process already holds an exclusive lock on Windows.
    return winerror in {32, 33}


def _acquire_lock(fileobj, *, timeout: float) -> None:
    deadline = time.monotonic() + timeout
    while True:
        try:
            if os.name == "posix":  # pragma: no cover - platform specific
                fcntl.flock(fileobj.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            else:  # pragma: no cover - platform specific
                msvcrt.locking(fileobj.fileno(), msvcrt.LK_NBLCK, 1)
            return
        except (BlockingIOError, OSError) as error:
            if not isinstance(error, BlockingIOError) and not _is_lock_conflict(error):
                raise
            if time.monotonic() >= deadline:
                raise TimeoutError("Timed out waiting for Alembic migration lock") from error
            time.sleep(LOCK_RETRY_DELAY)


def _release_lock(fileobj) -> None:
    try:
        if os.name == "posix":  # pragma: no cover - platform specific
            fcntl.flock(fileobj.fileno(), fcntl.LOCK_UN)
        else:  # pragma: no cover - platform specific
            msvcrt.locking(fileobj.fileno(), msvcrt.LK_UNLCK, 1)
    except OSError:  # pragma: no cover - best effort cleanup
        pass


@contextmanager
def _migration_lock(path: Path, *, timeout: float) -> Iterator[None]:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a+") as handle:
        LOGGER.debug("Acquiring Alembic migration lock at %s", path)
        _acquire_lock(handle, timeout=timeout)
        try:
            yield
        finally:
            _release_lock(handle)
            LOGGER.debug("Released Alembic migration lock at %s", path)


# Tables created by the first service desk revision. A database holding only
# some of them is treated as foreign and upgraded from scratch.
CORE_TABLES = ("categories", "priorities", "statuses", "tickets", "ticket_comments")

REVISION_SENTINELS: Sequence[RevisionSentinel] = (
    (
        "20260120_0002",
        lambda inspector: _table_exists(inspector, "ticket_daily_sequences")
        and _column_exists(inspector, "statuses", "role"),
    ),
    ("20260116_0001", lambda inspector: True),
)


def _determine_latest_revision(inspector: Inspector, sentinels: Iterable[RevisionSentinel]) -> str | None:
    if not all(_table_exists(inspector, table) for table in CORE_TABLES):
        return None
    for revision, check in sentinels:
        if check(inspector):
            return revision
    return None


def _connect_args(url: str) -> dict:
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


def build_alembic_config(database_url: str | None = None) -> Config:
    """Return the Alembic configuration for ``database_url`` (``DATABASE_URL`` by default)."""

    base_dir = Path(__file__).resolve().parent.parent
    config = Config(str(base_dir / "alembic.ini"))
    config.set_main_option("script_location", str(base_dir / "alembic"))

    project_root = base_dir.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

    url = database_url or os.getenv("DATABASE_URL") or SQLALCHEMY_DATABASE_URL
    config.set_main_option("sqlalchemy.url", url)
    return config


def head_revision(config: Config | None = None) -> str | None:
    return ScriptDirectory.from_config(config or build_alembic_config()).get_current_head()


def current_revision(database_url: str) -> str | None:
    """Return the revision recorded in ``alembic_version``, if any."""

    engine = create_engine(database_url, connect_args=_connect_args(database_url))
    try:
        with engine.connect() as connection:
            return MigrationContext.configure(connection).get_current_revision()
    finally:
        engine.dispose()


def _revision_to_stamp(database_url: str) -> str | None:
    """Inspect an unversioned database and return the revision its tables match."""

    engine = create_engine(database_url, connect_args=_connect_args(database_url))
    try:
        inspector = inspect(engine)
        if inspector.has_table("alembic_version"):
            LOGGER.debug("Alembic version table already present; applying migrations if needed")
            return None
        existing_tables = [
            table for table in inspector.get_table_names() if table != "alembic_version"
        ]
        if not existing_tables:
            LOGGER.debug("No tables found in database; running full upgrade")
            return None
        detected = _determine_latest_revision(inspector, REVISION_SENTINELS)
        if detected is None:
            LOGGER.info(
                "Found tables %s without service desk metadata; running full upgrade",
                ", ".join(sorted(existing_tables)),
            )
        return detected
    finally:
        engine.dispose()


def run_database_migrations(database_url: str | None = None) -> str | None:
    """Bring the ticket schema up to the latest revision and return that revision.

    Schemas created without Alembic (for example through
    ``Base.metadata.create_all``) are stamped with the revision they match
    before upgrading, so existing tables are never recreated.
    """

    config = build_alembic_config(database_url)
    final_url = config.get_main_option("sqlalchemy.url")
    LOGGER.info(
        "Running database migrations at %s",
        make_url(final_url).render_as_string(hide_password=True),
    )

    lock_path = Path(__file__).resolve().parent.parent / LOCK_FILENAME
    with _migration_lock(lock_path, timeout=_read_lock_timeout()):
        target = head_revision(config)
        detected = _revision_to_stamp(final_url)
        if detected is not None:
            LOGGER.info("Existing tables match revision %s; stamping before upgrade", detected)
            command.stamp(config, detected)
        if detected != target:
            command.upgrade(config, "head")
        else:
            LOGGER.info("Existing schema already matches the latest revision")

    revision = current_revision(final_url)
    LOGGER.info("Database schema is at revision %s", revision)
    return revision
