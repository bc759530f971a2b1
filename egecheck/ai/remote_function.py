"""Grading backend reached through a remote HTTP function."""

from __future__ import annotations

import logging

import httpx

from egecheck.ai.base import Citation, GeneratedEssay
from egecheck.errors import BackendError, ErrorKind

logger = logging.getLogger(__name__)


def _error_from_response(response: httpx.Response) -> BackendError:
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and isinstance(body.get("error"), str):
        try:
            kind = ErrorKind(str(body.get("code", "")))
        except ValueError:
            kind = ErrorKind.UNAVAILABLE
        return BackendError(kind=kind, message=body["error"], status_code=response.status_code, user_message=True)

    return BackendError(
        kind=ErrorKind.UNAVAILABLE,
        message=f"Grading function returned HTTP {response.status_code}",
        status_code=response.status_code,
    )


class HttpGradingBackend:
    """Posts essays to ``<base_url>/evaluate-essay`` and ``<base_url>/generate-essay``."""

    name = "http"

    def __init__(self, base_url: str, api_key: str = "", timeout_seconds: float = 180.0, transport: httpx.BaseTransport | None = None) -> None:
        if not base_url.strip():
            raise RuntimeError("Grading function URL is not set")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = httpx.Client(base_url=base_url.rstrip("/"), headers=headers, timeout=timeout_seconds, transport=transport)

    def _post(self, path: str, payload: dict[str, object]) -> httpx.Response:
        try:
            response = self._client.post(path, json=payload)
        except httpx.HTTPError as exc:
            logger.error("grading function unreachable", extra={"stage": "call_function", "path": path})
            raise BackendError(kind=ErrorKind.UNAVAILABLE, message=f"Grading function request failed: {exc}") from exc
        if response.is_error:
            raise _error_from_response(response)
        return response

    def grade(self, essay_text: str, source_text: str | None) -> str:
        response = self._post("/evaluate-essay", {"essayText": essay_text, "sourceText": source_text or ""})
        return response.text

    def generate(self, source_text: str) -> GeneratedEssay:
        response = self._post("/generate-essay", {"sourceText": source_text})
        try:
            body = response.json()
        except ValueError as exc:
            raise BackendError(kind=ErrorKind.MALFORMED, message="Grading function returned non-JSON essay") from exc
        if not isinstance(body, dict):
            raise BackendError(kind=ErrorKind.MALFORMED, message="Grading function returned non-object essay")

        text = body.get("text") or body.get("essay") or ""
        sources = [
            Citation(title=str(item.get("title") or item.get("uri", "")), uri=str(item["uri"]))
            for item in body.get("sources") or []
            if isinstance(item, dict) and item.get("uri")
        ]
        return GeneratedEssay(text=str(text), sources=sources)

    def close(self) -> None:
        self._client.close()
