from __future__ import annotations

import pytest

from egecheck.ai.factory import get_grading_backend, get_shared_grading_backend, reset_grading_backends
from egecheck.ai.mock import MockGradingBackend
from egecheck.ai.remote_function import HttpGradingBackend
from egecheck.dependencies import get_scoring_service
from egecheck.persistence import InMemoryAccountStore
from egecheck.quota import QuotaGate
from egecheck.settings import Settings


def _http_settings(url: str = "https://functions.example.com") -> Settings:
    return Settings(grading_backend="http", grading_function_url=url)


def test_factory_selects_backend_by_name() -> None:
    assert isinstance(get_grading_backend(Settings(grading_backend=" Mock ")), MockGradingBackend)
    assert isinstance(get_grading_backend(_http_settings()), HttpGradingBackend)


def test_unknown_backend_name_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown grading backend"):
        get_grading_backend(Settings(grading_backend="gemini"))


def test_scoring_services_share_one_backend_per_process() -> None:
    config = _http_settings()
    gate = QuotaGate(InMemoryAccountStore())

    first = get_scoring_service(config, gate).backend
    second = get_scoring_service(config, gate).backend

    assert first is second


def test_changed_configuration_builds_a_new_backend() -> None:
    first = get_shared_grading_backend(_http_settings("https://a.example.com"))
    second = get_shared_grading_backend(_http_settings("https://b.example.com"))

    assert first is not second


def test_reset_closes_cached_clients() -> None:
    backend = get_shared_grading_backend(_http_settings())
    assert backend._client.is_closed is False

    reset_grading_backends()

    assert backend._client.is_closed is True
    assert get_shared_grading_backend(_http_settings()) is not backend
