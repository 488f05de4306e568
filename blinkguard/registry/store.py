"""
Malicious-URL registry storage.

The registry is the system of record: an ordered list of MaliciousUrlEntry
keyed by exact URL. Default backend is a JSON array file; a SQLAlchemy
backend is available for deployments that set BLINKGUARD_REGISTRY_DATABASE_URL.
All access goes through RegistryStore, which owns the backend, its
open()/close() lifecycle, and the writer lock.

Writes are read-modify-write under one lock so no upsert is lost; the JSON
backend replaces the file atomically (temp file + os.replace) so readers
never see a partial registry. Storage failures raise RegistryStorageError;
nothing falls back to an empty or stale registry.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterator

from sqlalchemy import BigInteger, Boolean, Column, Integer, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from blinkguard.config.settings import Settings, get_settings
from blinkguard.core.exceptions import InvalidInputError, RegistryStorageError
from blinkguard.guard_logging import get_logger, short_url
from blinkguard.registry.models import MaliciousUrlEntry

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Abstract backend
# -----------------------------------------------------------------------------


class RegistryBackend(ABC):
    """Persistence interface; RegistryStore serializes writes before calling in."""

    @abstractmethod
    def open(self) -> None:
        """Create the underlying storage if absent (empty registry)."""
        ...

    def close(self) -> None:
        """Release resources; default is nothing to release."""

    @abstractmethod
    def load(self) -> list[MaliciousUrlEntry]:
        """Return all entries in insertion order."""
        ...

    @abstractmethod
    def upsert(self, entry: MaliciousUrlEntry) -> bool:
        """Append entry, or replace the entry with the same url in place. True if appended."""
        ...

    @abstractmethod
    def set_verified(self, url: str, verified: bool) -> bool:
        """Set verified on the entry with this url. False if no such entry."""
        ...


# -----------------------------------------------------------------------------
# JSON file backend
# -----------------------------------------------------------------------------


class JsonFileBackend(RegistryBackend):
    """Registry as a pretty-printed JSON array in a single file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RegistryStorageError(f"cannot create registry directory {self._path.parent}: {e}") from e
        if not self._path.exists():
            self._write([])
            logger.info("registry_file_created", path=str(self._path))

    def load(self) -> list[MaliciousUrlEntry]:
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise RegistryStorageError(f"registry file missing: {self._path}") from e
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RegistryStorageError(f"cannot read registry {self._path}: {e}") from e
        if not isinstance(data, list):
            raise RegistryStorageError(f"registry {self._path} is not a JSON array")
        try:
            return [MaliciousUrlEntry.from_dict(item) for item in data]
        except (InvalidInputError, TypeError, ValueError) as e:
            raise RegistryStorageError(f"registry {self._path} has a malformed entry: {e}") from e

    def _write(self, entries: list[MaliciousUrlEntry]) -> None:
        payload = json.dumps([e.to_dict() for e in entries], indent=2)
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as e:
            raise RegistryStorageError(f"cannot write registry {self._path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("registry_tmp_cleanup_failed", path=tmp_name)

    def upsert(self, entry: MaliciousUrlEntry) -> bool:
        entries = self.load()
        for i, existing in enumerate(entries):
            if existing.url == entry.url:
                entries[i] = entry
                self._write(entries)
                return False
        entries.append(entry)
        self._write(entries)
        return True

    def set_verified(self, url: str, verified: bool) -> bool:
        entries = self.load()
        for i, existing in enumerate(entries):
            if existing.url == url:
                entries[i] = replace(existing, verified=verified)
                self._write(entries)
                return True
        return False


# -----------------------------------------------------------------------------
# SQLAlchemy backend
# -----------------------------------------------------------------------------

Base = declarative_base()


class MaliciousUrlRow(Base):
    """One registry entry; id keeps insertion order, url is the unique key."""

    __tablename__ = "malicious_urls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(String(2048), unique=True, nullable=False, index=True)
    domain = Column(String(255), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    reported_by = Column(String(256), nullable=False)
    reported_at = Column(BigInteger, nullable=False)  # Unix millis
    verified = Column(Boolean, nullable=False, default=False, index=True)

    def to_entry(self) -> MaliciousUrlEntry:
        return MaliciousUrlEntry(
            url=self.url,
            domain=self.domain,
            reason=self.reason,
            reported_by=self.reported_by,
            reported_at=self.reported_at,
            verified=bool(self.verified),
        )

    def apply(self, entry: MaliciousUrlEntry) -> None:
        self.domain = entry.domain
        self.reason = entry.reason
        self.reported_by = entry.reported_by
        self.reported_at = entry.reported_at
        self.verified = entry.verified


class SQLAlchemyBackend(RegistryBackend):
    """Registry in a SQL table (SQLite or PostgreSQL via SQLAlchemy URL)."""

    def __init__(self, url: str) -> None:
        self._url = url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    def open(self) -> None:
        connect_args: dict[str, Any] = {}
        if self._url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        try:
            self._engine = create_engine(self._url, connect_args=connect_args, pool_pre_ping=True)
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as e:
            raise RegistryStorageError(f"cannot open registry database: {e}") from e
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("registry_db_opened", url=self._url.split("?")[0].split("//")[-1])

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session; commits on success, rolls back on error."""
        if self._session_factory is None:
            raise RegistryStorageError("registry database is not open")
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise RegistryStorageError(f"registry database error: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def load(self) -> list[MaliciousUrlEntry]:
        with self._session_scope() as session:
            rows = session.query(MaliciousUrlRow).order_by(MaliciousUrlRow.id).all()
            return [row.to_entry() for row in rows]

    def upsert(self, entry: MaliciousUrlEntry) -> bool:
        with self._session_scope() as session:
            row = session.query(MaliciousUrlRow).filter(MaliciousUrlRow.url == entry.url).first()
            if row is not None:
                row.apply(entry)
                return False
            row = MaliciousUrlRow(url=entry.url)
            row.apply(entry)
            session.add(row)
            return True

    def set_verified(self, url: str, verified: bool) -> bool:
        with self._session_scope() as session:
            row = session.query(MaliciousUrlRow).filter(MaliciousUrlRow.url == url).first()
            if row is None:
                return False
            row.verified = verified
            return True


# -----------------------------------------------------------------------------
# Store facade
# -----------------------------------------------------------------------------


class RegistryStore:
    """
    Registry access point: lifecycle, writer lock, logging.

    Use as a context manager or call open()/close() explicitly. Every
    operation on a store that is not open raises RegistryStorageError.
    """

    def __init__(self, backend: RegistryBackend) -> None:
        self._backend = backend
        self._write_lock = threading.Lock()
        self._open = False

    @property
    def backend(self) -> RegistryBackend:
        return self._backend

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> RegistryStore:
        with self._write_lock:
            if not self._open:
                self._backend.open()
                self._open = True
                logger.info("registry_store_opened", backend=type(self._backend).__name__)
        return self

    def close(self) -> None:
        with self._write_lock:
            if self._open:
                self._backend.close()
                self._open = False
                logger.info("registry_store_closed", backend=type(self._backend).__name__)

    def __enter__(self) -> RegistryStore:
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _require_open(self) -> None:
        if not self._open:
            raise RegistryStorageError("registry store is not open")

    def read(self) -> list[MaliciousUrlEntry]:
        """Full registry as of the latest completed write."""
        self._require_open()
        return self._backend.load()

    def get(self, url: str) -> MaliciousUrlEntry | None:
        """Entry with exactly this url, or None."""
        for entry in self.read():
            if entry.url == url:
                return entry
        return None

    def upsert(self, entry: MaliciousUrlEntry) -> bool:
        """
        Insert entry, or replace the entry with the same url at its position.
        Returns True when a new entry was appended.
        """
        with self._write_lock:
            self._require_open()
            created = self._backend.upsert(entry)
        logger.info(
            "registry_upsert",
            url=short_url(entry.url),
            domain=entry.domain,
            created=created,
            verified=entry.verified,
        )
        return created

    def set_verified(self, url: str, verified: bool) -> bool:
        """Set the verified flag on url's entry; no-op returning False if absent."""
        with self._write_lock:
            self._require_open()
            updated = self._backend.set_verified(url, verified)
        if updated:
            logger.info("registry_verified_set", url=short_url(url), verified=verified)
        else:
            logger.info("registry_verify_missing", url=short_url(url))
        return updated


def build_registry_backend(settings: Settings | None = None) -> RegistryBackend:
    """SQL backend when a registry database URL is configured, JSON file otherwise."""
    settings = settings or get_settings()
    if settings.uses_sql_registry:
        return SQLAlchemyBackend(settings.registry_database_url)
    return JsonFileBackend(settings.registry_path)


def open_registry_store(settings: Settings | None = None) -> RegistryStore:
    """Return an opened RegistryStore for the configured backend. Caller closes it."""
    return RegistryStore(build_registry_backend(settings)).open()
