"""Grading backend factory/dispatcher."""

import logging
import threading

from egecheck.ai.base import GradingBackend
from egecheck.ai.mock import MockGradingBackend
from egecheck.ai.openai_grader import OpenAIGradingBackend
from egecheck.ai.remote_function import HttpGradingBackend
from egecheck.settings import Settings

logger = logging.getLogger(__name__)

_backends: dict[tuple[object, ...], GradingBackend] = {}
_backends_lock = threading.Lock()


def get_grading_backend(config: Settings) -> GradingBackend:
    backend = config.grading_backend.lower().strip()
    if backend == "mock":
        return MockGradingBackend()
    if backend == "openai":
        return OpenAIGradingBackend(
            api_key=config.openai_api_key,
            grading_model=config.grading_model,
            generation_model=config.generation_model,
            timeout_seconds=config.grading_timeout_seconds,
        )
    if backend == "http":
        return HttpGradingBackend(
            base_url=config.grading_function_url,
            api_key=config.grading_function_key,
            timeout_seconds=config.grading_timeout_seconds,
        )
    raise ValueError(f"Unknown grading backend '{config.grading_backend}'. Use one of: openai, http, mock")


def _backend_key(config: Settings) -> tuple[object, ...]:
    return (
        config.grading_backend.lower().strip(),
        config.openai_api_key,
        config.grading_model,
        config.generation_model,
        config.grading_timeout_seconds,
        config.grading_function_url,
        config.grading_function_key,
    )


def get_shared_grading_backend(config: Settings) -> GradingBackend:
    """Return the process-wide backend for ``config``, building it on first use."""
    key = _backend_key(config)
    with _backends_lock:
        backend = _backends.get(key)
        if backend is None:
            backend = get_grading_backend(config)
            _backends[key] = backend
            logger.info("grading backend ready", extra={"stage": "backend_setup", "backend": backend.name})
        return backend


def reset_grading_backends() -> None:
    with _backends_lock:
        backends = list(_backends.values())
        _backends.clear()
    for backend in backends:
        backend.close()
