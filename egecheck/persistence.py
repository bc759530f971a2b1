"""Pluggable persistence for accounts and stored evaluations."""

from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from egecheck import db
from egecheck.contract import EvaluationResult
from egecheck.errors import PersistenceFailure
from egecheck.models import Account, Evaluation, utcnow
from egecheck.settings import Settings, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredEvaluation:
    id: int
    account_id: int
    created_at: datetime
    essay_text: str
    result_data: EvaluationResult


@dataclass(frozen=True)
class AccountRecord:
    id: int
    token: str
    remaining_free_checks: int


class EvaluationStore(Protocol):
    def insert(self, account_id: int, essay_text: str, result: EvaluationResult) -> StoredEvaluation:
        """Persist one evaluation and return the stored record."""

    def list(self, account_id: int) -> list[StoredEvaluation]:
        """Return the account's evaluations, newest first."""

    def get(self, account_id: int, evaluation_id: int) -> StoredEvaluation | None:
        """Return one evaluation owned by the account."""


class AccountStore(Protocol):
    def create(self, free_checks: int) -> AccountRecord:
        """Create an account with a fresh credential token."""

    def find_by_token(self, token: str) -> int | None:
        """Resolve a credential token to an account id."""

    def read_remaining(self, account_id: int) -> int | None:
        """Return remaining free checks, or None when the account has no quota record."""

    def decrement_remaining(self, account_id: int) -> bool:
        """Atomically decrement remaining checks if positive; report whether it happened."""


def _new_token() -> str:
    return secrets.token_urlsafe(32)


def _to_stored(row: Evaluation) -> StoredEvaluation:
    return StoredEvaluation(
        id=row.id,
        account_id=row.account_id,
        created_at=row.created_at,
        essay_text=row.essay_text,
        result_data=EvaluationResult.model_validate_json(row.result_json),
    )


class SqlEvaluationStore:
    """Durable evaluation history in the SQLModel database."""

    def insert(self, account_id: int, essay_text: str, result: EvaluationResult) -> StoredEvaluation:
        row = Evaluation(
            account_id=account_id,
            essay_text=essay_text,
            result_json=result.model_dump_json(by_alias=True),
        )
        try:
            with Session(db.engine) as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                return StoredEvaluation(
                    id=row.id,
                    account_id=row.account_id,
                    created_at=row.created_at,
                    essay_text=row.essay_text,
                    result_data=result,
                )
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not store evaluation: {exc}") from exc

    def list(self, account_id: int) -> list[StoredEvaluation]:
        try:
            with Session(db.engine) as session:
                rows = session.exec(
                    select(Evaluation)
                    .where(Evaluation.account_id == account_id)
                    .order_by(Evaluation.created_at.desc(), Evaluation.id.desc())
                ).all()
                return [_to_stored(row) for row in rows]
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not load evaluations: {exc}") from exc

    def get(self, account_id: int, evaluation_id: int) -> StoredEvaluation | None:
        try:
            with Session(db.engine) as session:
                row = session.get(Evaluation, evaluation_id)
                if row is None or row.account_id != account_id:
                    return None
                return _to_stored(row)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not load evaluation: {exc}") from exc


class SqlAccountStore:
    """Accounts and their free-check counters in the SQLModel database."""

    def create(self, free_checks: int) -> AccountRecord:
        row = Account(token=_new_token(), remaining_free_checks=free_checks)
        try:
            with Session(db.engine) as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                return AccountRecord(id=row.id, token=row.token, remaining_free_checks=row.remaining_free_checks)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not create account: {exc}") from exc

    def find_by_token(self, token: str) -> int | None:
        try:
            with Session(db.engine) as session:
                row = session.exec(select(Account).where(Account.token == token)).first()
                return row.id if row else None
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not resolve account: {exc}") from exc

    def read_remaining(self, account_id: int) -> int | None:
        try:
            with Session(db.engine) as session:
                row = session.get(Account, account_id)
                return row.remaining_free_checks if row else None
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not read quota: {exc}") from exc

    def decrement_remaining(self, account_id: int) -> bool:
        statement = (
            update(Account)
            .where(Account.id == account_id, Account.remaining_free_checks > 0)
            .values(remaining_free_checks=Account.remaining_free_checks - 1)
        )
        try:
            with db.engine.begin() as conn:
                return conn.execute(statement).rowcount == 1
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Could not update quota: {exc}") from exc


class InMemoryEvaluationStore:
    """Process-local history used when no durable storage is configured."""

    def __init__(self) -> None:
        self._rows: list[StoredEvaluation] = []
        self._lock = threading.Lock()

    def insert(self, account_id: int, essay_text: str, result: EvaluationResult) -> StoredEvaluation:
        with self._lock:
            record = StoredEvaluation(
                id=len(self._rows) + 1,
                account_id=account_id,
                created_at=utcnow(),
                essay_text=essay_text,
                result_data=result,
            )
            self._rows.append(record)
            return record

    def list(self, account_id: int) -> list[StoredEvaluation]:
        owned = [row for row in self._rows if row.account_id == account_id]
        return sorted(owned, key=lambda row: (row.created_at, row.id), reverse=True)

    def get(self, account_id: int, evaluation_id: int) -> StoredEvaluation | None:
        for row in self._rows:
            if row.id == evaluation_id and row.account_id == account_id:
                return row
        return None


class InMemoryAccountStore:
    def __init__(self) -> None:
        self._remaining: dict[int, int] = {}
        self._tokens: dict[str, int] = {}
        self._lock = threading.Lock()

    def create(self, free_checks: int) -> AccountRecord:
        with self._lock:
            account_id = len(self._remaining) + 1
            token = _new_token()
            self._remaining[account_id] = free_checks
            self._tokens[token] = account_id
            return AccountRecord(id=account_id, token=token, remaining_free_checks=free_checks)

    def find_by_token(self, token: str) -> int | None:
        return self._tokens.get(token)

    def read_remaining(self, account_id: int) -> int | None:
        return self._remaining.get(account_id)

    def decrement_remaining(self, account_id: int) -> bool:
        with self._lock:
            remaining = self._remaining.get(account_id)
            if remaining is None or remaining <= 0:
                return False
            self._remaining[account_id] = remaining - 1
            return True


_evaluation_store: EvaluationStore | None = None
_account_store: AccountStore | None = None


def _backend_name(config: Settings) -> str:
    backend = config.persistence_backend.lower().strip()
    if backend not in {"sql", "memory"}:
        raise RuntimeError(f"Unknown persistence backend '{config.persistence_backend}'. Use one of: sql, memory")
    return backend


def _create_evaluation_store(config: Settings) -> EvaluationStore:
    if _backend_name(config) == "memory":
        return InMemoryEvaluationStore()
    return SqlEvaluationStore()


def _create_account_store(config: Settings) -> AccountStore:
    if _backend_name(config) == "memory":
        return InMemoryAccountStore()
    return SqlAccountStore()


def get_evaluation_store() -> EvaluationStore:
    global _evaluation_store
    if _evaluation_store is None:
        _evaluation_store = _create_evaluation_store(settings)
        logger.info("evaluation store ready", extra={"stage": "persistence", "backend": settings.persistence_backend})
    return _evaluation_store


def get_account_store() -> AccountStore:
    global _account_store
    if _account_store is None:
        _account_store = _create_account_store(settings)
    return _account_store


def reset_stores() -> None:
    global _evaluation_store, _account_store
    _evaluation_store = None
    _account_store = None
