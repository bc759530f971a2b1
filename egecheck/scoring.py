"""Essay grading round trip: input checks, quota, backend call, contract."""

from __future__ import annotations

import logging
import time

from egecheck.ai.base import GeneratedEssay, GradingBackend
from egecheck.ai.factory import get_shared_grading_backend
from egecheck.contract import EvaluationResult, parse_evaluation
from egecheck.errors import (
    BackendError,
    BackendUnavailable,
    ContractViolation,
    EssayCheckError,
    ErrorKind,
    InvalidInput,
    PersistenceFailure,
    QuotaExhausted,
    Unauthenticated,
)
from egecheck.persistence import EvaluationStore, StoredEvaluation
from egecheck.quota import DenialReason, QuotaDecision, QuotaGate
from egecheck.settings import Settings

logger = logging.getLogger(__name__)

_DENIAL_ERRORS: dict[DenialReason, type[EssayCheckError]] = {
    DenialReason.UNAUTHENTICATED: Unauthenticated,
    DenialReason.NOT_FOUND: Unauthenticated,
    DenialReason.EXHAUSTED: QuotaExhausted,
    DenialReason.UNAVAILABLE: BackendUnavailable,
}


def _error_for_backend_failure(exc: BackendError) -> EssayCheckError:
    if exc.kind is ErrorKind.UNAUTHORIZED:
        return Unauthenticated()
    if exc.kind is ErrorKind.QUOTA_EXCEEDED:
        return QuotaExhausted()
    if exc.kind is ErrorKind.MALFORMED:
        return ContractViolation("$", exc.message)
    if exc.user_message:
        return BackendUnavailable(exc.message)
    return BackendUnavailable()


class ScoringService:
    """Runs one grading or generation call on behalf of an account.

    Nothing is retried: every attempt that reaches the backend may cost a
    free check.
    """

    def __init__(self, config: Settings, quota_gate: QuotaGate, backend: GradingBackend | None = None) -> None:
        self._config = config
        self._quota = quota_gate
        self._backend = backend

    @property
    def backend(self) -> GradingBackend:
        if self._backend is None:
            try:
                self._backend = get_shared_grading_backend(self._config)
            except (RuntimeError, ValueError) as exc:
                logger.error("grading backend not configured", extra={"stage": "backend_setup", "error": str(exc)})
                raise BackendUnavailable() from exc
        return self._backend

    def _authorize(self, account_id: int | None, stage: str) -> QuotaDecision:
        decision = self._quota.authorize(account_id)
        if not decision.allowed:
            logger.info(
                "request denied by quota gate",
                extra={"stage": stage, "account_id": account_id, "reason": decision.reason.value},
            )
            raise _DENIAL_ERRORS[decision.reason]()
        return decision

    def _call(self, stage: str, account_id: int | None, fn, *args):
        started = time.perf_counter()
        try:
            return fn(*args)
        except BackendError as exc:
            logger.warning(
                "grading backend failed",
                extra={
                    "stage": stage,
                    "account_id": account_id,
                    "backend": self.backend.name,
                    "kind": exc.kind.value,
                    "status_code": exc.status_code,
                },
            )
            raise _error_for_backend_failure(exc) from exc
        finally:
            logger.info(
                "grading backend round trip",
                extra={"stage": stage, "backend": self.backend.name, "elapsed_ms": int((time.perf_counter() - started) * 1000)},
            )

    def evaluate_essay(self, essay_text: str, source_text: str | None, account_id: int | None) -> EvaluationResult:
        if not essay_text or not essay_text.strip():
            raise InvalidInput()
        if len(essay_text) > self._config.max_essay_chars:
            raise InvalidInput(f"Сочинение слишком длинное: не более {self._config.max_essay_chars} символов.")

        self._authorize(account_id, stage="evaluate_essay")
        raw = self._call("evaluate_essay", account_id, self.backend.grade, essay_text, source_text)
        try:
            result = parse_evaluation(raw)
        except ContractViolation as exc:
            logger.error(
                "grading response violates contract",
                extra={"stage": "parse_evaluation", "account_id": account_id, "field": exc.field},
            )
            raise

        self._quota.consume(account_id)
        return result

    def generate_essay(self, source_text: str, account_id: int | None) -> GeneratedEssay:
        if not source_text or not source_text.strip():
            raise InvalidInput("Вставьте исходный текст для генерации сочинения.")

        self._authorize(account_id, stage="generate_essay")
        essay = self._call("generate_essay", account_id, self.backend.generate, source_text)
        if not essay.text.strip():
            raise ContractViolation("text", "model returned empty text")

        self._quota.consume(account_id)
        return essay


def save_evaluation(
    store: EvaluationStore,
    account_id: int,
    essay_text: str,
    result: EvaluationResult,
) -> StoredEvaluation | None:
    """Persist a computed result; a storage failure is logged, never raised."""
    try:
        return store.insert(account_id, essay_text, result)
    except PersistenceFailure:
        logger.exception("evaluation not saved", extra={"stage": "save_evaluation", "account_id": account_id})
        return None
