from __future__ import annotations

import json

import httpx
import pytest

from egecheck.ai.base import GeneratedEssay
from egecheck.ai.mock import MockGradingBackend
from egecheck.ai.remote_function import HttpGradingBackend
from egecheck.contract import parse_evaluation
from egecheck.errors import (
    BackendError,
    BackendUnavailable,
    ContractViolation,
    ErrorKind,
    InvalidInput,
    PersistenceFailure,
    QuotaExhausted,
    Unauthenticated,
)
from egecheck.persistence import InMemoryAccountStore, InMemoryEvaluationStore
from egecheck.quota import QuotaGate
from egecheck.scoring import ScoringService, save_evaluation
from egecheck.settings import Settings


class _ScriptedBackend(MockGradingBackend):
    def __init__(self, raw: str | None = None, error: BackendError | None = None, essay_text: str = "Сочинение.") -> None:
        super().__init__()
        self._raw = raw
        self._error = error
        self._essay_text = essay_text

    def grade(self, essay_text: str, source_text: str | None) -> str:
        if self._raw is None and self._error is None:
            return super().grade(essay_text, source_text)
        self.grade_calls += 1
        if self._error:
            raise self._error
        return self._raw

    def generate(self, source_text: str) -> GeneratedEssay:
        self.generate_calls += 1
        if self._error:
            raise self._error
        return GeneratedEssay(text=self._essay_text)


def _service(backend, free_checks: int = 3):
    accounts = InMemoryAccountStore()
    account = accounts.create(free_checks=free_checks)
    service = ScoringService(Settings(grading_backend="mock"), QuotaGate(accounts), backend=backend)
    return service, accounts, account.id


def test_successful_evaluation_consumes_one_check() -> None:
    backend = MockGradingBackend()
    service, accounts, account_id = _service(backend)

    result = service.evaluate_essay("Мое сочинение.", None, account_id)

    assert result.total_score == 19
    assert backend.grade_calls == 1
    assert accounts.read_remaining(account_id) == 2


@pytest.mark.parametrize("essay", ["", "   ", "\n\t "])
def test_whitespace_essay_fails_before_backend(essay: str) -> None:
    backend = MockGradingBackend()
    service, accounts, account_id = _service(backend)

    with pytest.raises(InvalidInput):
        service.evaluate_essay(essay, "Исходный текст", account_id)

    assert backend.grade_calls == 0
    assert accounts.read_remaining(account_id) == 3


def test_overlong_essay_is_invalid_input() -> None:
    backend = MockGradingBackend()
    accounts = InMemoryAccountStore()
    account = accounts.create(free_checks=1)
    service = ScoringService(Settings(max_essay_chars=10), QuotaGate(accounts), backend=backend)

    with pytest.raises(InvalidInput):
        service.evaluate_essay("x" * 11, None, account.id)

    assert backend.grade_calls == 0


def test_anonymous_caller_is_unauthenticated() -> None:
    backend = MockGradingBackend()
    service, _, _ = _service(backend)

    with pytest.raises(Unauthenticated):
        service.evaluate_essay("Сочинение.", None, None)

    assert backend.grade_calls == 0


def test_exhausted_account_never_reaches_backend() -> None:
    backend = MockGradingBackend()
    service, _, account_id = _service(backend, free_checks=0)

    with pytest.raises(QuotaExhausted):
        service.evaluate_essay("Сочинение.", None, account_id)

    assert backend.grade_calls == 0


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        (ErrorKind.UNAUTHORIZED, Unauthenticated),
        (ErrorKind.QUOTA_EXCEEDED, QuotaExhausted),
        (ErrorKind.UNAVAILABLE, BackendUnavailable),
        (ErrorKind.MALFORMED, ContractViolation),
    ],
)
def test_backend_error_kind_selects_typed_error(kind: ErrorKind, expected: type[Exception]) -> None:
    # Message wording must not matter, only the kind.
    backend = _ScriptedBackend(error=BackendError(kind=kind, message="Quota exceeded Unauthorized"))
    service, accounts, account_id = _service(backend)

    with pytest.raises(expected):
        service.evaluate_essay("Сочинение.", None, account_id)

    assert backend.grade_calls == 1
    assert accounts.read_remaining(account_id) == 3


def test_grading_function_message_is_shown_verbatim() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "Model returned empty response"})

    backend = HttpGradingBackend("https://functions.example.com", transport=httpx.MockTransport(handler))
    service, accounts, account_id = _service(backend)

    with pytest.raises(BackendUnavailable) as exc_info:
        service.evaluate_essay("Сочинение.", None, account_id)

    assert exc_info.value.message == "Model returned empty response"
    assert accounts.read_remaining(account_id) == 3


def test_unstructured_backend_failure_uses_generic_message() -> None:
    backend = _ScriptedBackend(error=BackendError(kind=ErrorKind.UNAVAILABLE, message="Connection reset by peer"))
    service, _, account_id = _service(backend)

    with pytest.raises(BackendUnavailable) as exc_info:
        service.evaluate_essay("Сочинение.", None, account_id)

    assert exc_info.value.message == BackendUnavailable.default_message


def test_contract_violation_does_not_cost_quota(evaluation_payload) -> None:
    del evaluation_payload["scores"]["K4"]
    backend = _ScriptedBackend(raw=json.dumps(evaluation_payload))
    service, accounts, account_id = _service(backend)

    with pytest.raises(ContractViolation) as exc_info:
        service.evaluate_essay("Сочинение.", None, account_id)

    assert exc_info.value.field == "scores.K4"
    assert accounts.read_remaining(account_id) == 3


def test_missing_backend_configuration_is_unavailable() -> None:
    accounts = InMemoryAccountStore()
    account = accounts.create(free_checks=1)
    service = ScoringService(Settings(grading_backend="openai", openai_api_key=""), QuotaGate(accounts))

    with pytest.raises(BackendUnavailable):
        service.evaluate_essay("Сочинение.", None, account.id)

    assert accounts.read_remaining(account.id) == 1


def test_generate_essay_consumes_quota() -> None:
    backend = MockGradingBackend()
    service, accounts, account_id = _service(backend)

    essay = service.generate_essay("Исходный текст.", account_id)

    assert essay.text
    assert essay.sources[0].uri.startswith("https://")
    assert accounts.read_remaining(account_id) == 2


def test_generate_essay_requires_source_text() -> None:
    backend = MockGradingBackend()
    service, _, account_id = _service(backend)

    with pytest.raises(InvalidInput):
        service.generate_essay("  ", account_id)

    assert backend.generate_calls == 0


def test_empty_generated_text_is_contract_violation() -> None:
    backend = _ScriptedBackend(essay_text="   ")
    service, accounts, account_id = _service(backend)

    with pytest.raises(ContractViolation):
        service.generate_essay("Исходный текст.", account_id)

    assert accounts.read_remaining(account_id) == 3


class _FailingStore(InMemoryEvaluationStore):
    def insert(self, account_id, essay_text, result):
        raise PersistenceFailure("disk full")


def test_persistence_failure_keeps_result(evaluation_payload) -> None:
    result = parse_evaluation(json.dumps(evaluation_payload))
    snapshot = result.model_dump()

    stored = save_evaluation(_FailingStore(), 1, "Сочинение.", result)

    assert stored is None
    assert result.model_dump() == snapshot


def test_save_evaluation_returns_record(evaluation_payload) -> None:
    store = InMemoryEvaluationStore()
    result = parse_evaluation(json.dumps(evaluation_payload))

    stored = save_evaluation(store, 7, "Сочинение.", result)

    assert stored is not None
    assert stored.result_data is result
    assert store.list(7) == [stored]
