"""Persistence layer for stored loans.

The tracker keeps every saved loan in a single document: a mapping from loan
id to ``{"loanDetails": ..., "payments": [...]}`` serialized as JSON under one
key of a key-value store. Writes replace the whole document, so the last write
wins. The store itself is pluggable: an in-memory dict for tests, a JSON file
on disk, or any SQLAlchemy-compatible database URL (SQLite by default).
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from . import config
from .data_models import LoanParameters, ScheduledPayment, StoredLoan
from .serialization import stored_loans_from_dict, stored_loans_to_dict
from .utils import now

logger = logging.getLogger(__name__)

Base = declarative_base()


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store; contents vanish with the process."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Keeps all keys in one JSON object on disk."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as exc:
            logger.error("Ignoring unreadable store file %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.error("Ignoring store file %s: top level is not an object", self._path)
            return {}
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)


class KeyValueModel(Base):
    __tablename__ = "key_value"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class SqlStore:
    """Database-backed key-value store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            row = session.get(KeyValueModel, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            row = session.get(KeyValueModel, key)
            if row:
                row.value = value
            else:
                session.add(KeyValueModel(key=key, value=value))
            session.commit()

    def remove(self, key: str) -> None:
        with self._session_factory() as session:
            row = session.get(KeyValueModel, key)
            if row:
                session.delete(row)
                session.commit()


class LoanStorage:
    """Saved loans kept in a key-value store under a single key."""

    def __init__(self, store: KeyValueStore, key: str = config.DEFAULT_STORAGE_KEY) -> None:
        self._store = store
        self._key = key
        self._loans = self._read()

    @property
    def stored_loans(self) -> Dict[str, StoredLoan]:
        return dict(self._loans)

    def _read(self) -> Dict[str, StoredLoan]:
        try:
            raw = self._store.get(self._key)
            if not raw:
                return {}
            return stored_loans_from_dict(json.loads(raw))
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            logger.error("Failed to load loan data from store: %s", exc)
            return {}

    def _write(self) -> None:
        self._store.set(self._key, json.dumps(stored_loans_to_dict(self._loans)))

    def save_loan(self, loan_details: LoanParameters, payments: List[ScheduledPayment]) -> LoanParameters:
        saved = replace(loan_details, updated_at=now())
        self._loans[saved.id] = StoredLoan(loan_details=saved, payments=list(payments))
        self._write()
        logger.debug("Saved loan %s with %d payments", saved.id, len(payments))
        return saved

    def load_loan(self, loan_id: str) -> Optional[StoredLoan]:
        return self._loans.get(loan_id)

    def delete_loan(self, loan_id: str) -> bool:
        if self._loans.pop(loan_id, None) is None:
            return False
        self._write()
        return True

    def get_all_loans(self) -> List[StoredLoan]:
        return list(self._loans.values())

    def update_payments(self, loan_id: str, payments: List[ScheduledPayment]) -> bool:
        loan = self._loans.get(loan_id)
        if loan is None:
            return False
        self._loans[loan_id] = StoredLoan(
            loan_details=replace(loan.loan_details, updated_at=now()),
            payments=list(payments),
        )
        self._write()
        return True

    def export_data(self) -> str:
        return json.dumps(stored_loans_to_dict(self._loans), indent=2)

    def import_data(self, json_data: str) -> bool:
        """Replace all stored loans with the document in ``json_data``.

        Returns False, leaving the current loans untouched, if the document is
        not valid JSON or does not have the stored-loans layout.
        """
        try:
            loans = stored_loans_from_dict(json.loads(json_data))
        except (ValueError, TypeError) as exc:
            logger.error("Failed to import loan data: %s", exc)
            return False
        self._loans = loans
        self._write()
        return True

    def clear_all_data(self) -> None:
        self._loans = {}
        self._store.remove(self._key)


def create_store_from_env(url: str | None = None) -> KeyValueStore:
    """Build a store from ``url`` or ``LOAN_TRACKER_STORE_URL``.

    ``memory://`` gives a ``MemoryStore``, a path ending in ``.json`` a
    ``JsonFileStore``; anything else is treated as a SQLAlchemy URL.
    """
    url = url or config.store_url()
    if url.startswith("memory://"):
        return MemoryStore()
    if url.lower().endswith(".json"):
        return JsonFileStore(url[len("file://"):] if url.startswith("file://") else url)
    return SqlStore(url)
