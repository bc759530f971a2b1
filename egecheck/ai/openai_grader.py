"""OpenAI Responses API grading backend."""

from __future__ import annotations

import copy
import logging
import time
from typing import Any

import httpx

from egecheck.ai.base import Citation, GeneratedEssay
from egecheck.ai.prompts import EVALUATION_SYSTEM_INSTRUCTION, build_evaluation_prompt, build_generation_prompt
from egecheck.criteria import CRITERION_IDS
from egecheck.errors import BackendError, ErrorKind

logger = logging.getLogger(__name__)


class SchemaBuildError(Exception):
    pass


def _criterion_score_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "score": {"type": "integer"},
            "comment": {"type": "string"},
            "errors": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {"text": {"type": "string"}},
                },
            },
        },
    }


def _base_evaluation_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "scores": {
                "type": "object",
                "properties": {criterion_id: _criterion_score_schema() for criterion_id in CRITERION_IDS},
            },
            "totalScore": {"type": "integer"},
            "overallFeedback": {"type": "string"},
        },
    }


def _ensure_strict_schema_node(node: object) -> None:
    if isinstance(node, list):
        for item in node:
            _ensure_strict_schema_node(item)
        return

    if not isinstance(node, dict):
        return

    if node.get("type") == "object":
        properties = node.get("properties")
        if not isinstance(properties, dict):
            properties = {}
            node["properties"] = properties
        node["additionalProperties"] = False
        node["required"] = list(properties.keys())

    properties = node.get("properties")
    if isinstance(properties, dict):
        for value in properties.values():
            _ensure_strict_schema_node(value)

    items = node.get("items")
    if items is not None:
        _ensure_strict_schema_node(items)


def validate_schema_strictness(schema: dict[str, Any]) -> None:
    def _walk(node: object, path: str) -> None:
        if isinstance(node, list):
            for idx, item in enumerate(node):
                _walk(item, f"{path}[{idx}]")
            return

        if not isinstance(node, dict):
            return

        if node.get("type") == "object":
            if node.get("additionalProperties") is not False:
                raise SchemaBuildError(f"Object at {path} missing additionalProperties=false")
            if not isinstance(node.get("required"), list):
                raise SchemaBuildError(f"Object at {path} missing required list")

        for key, value in node.items():
            _walk(value, f"{path}.{key}")

    _walk(schema, "schema")


def build_evaluation_response_schema() -> dict[str, Any]:
    schema = copy.deepcopy(_base_evaluation_schema())
    _ensure_strict_schema_node(schema)
    validate_schema_strictness(schema)
    return schema


def build_evaluation_request(model: str, prompt: str, schema: dict[str, Any]) -> dict[str, object]:
    return {
        "model": model,
        "instructions": EVALUATION_SYSTEM_INSTRUCTION,
        "input": [{"role": "user", "content": [{"type": "input_text", "text": prompt}]}],
        "text": {
            "format": {
                "type": "json_schema",
                "name": "ege_essay_evaluation",
                "strict": True,
                "schema": schema,
            }
        },
    }


def build_generation_request(model: str, prompt: str) -> dict[str, object]:
    return {
        "model": model,
        "input": [{"role": "user", "content": [{"type": "input_text", "text": prompt}]}],
        "tools": [{"type": "web_search"}],
    }


def extract_citations(response: object) -> list[Citation]:
    """Collect url_citation annotations from a Responses API result."""
    citations: list[Citation] = []
    seen: set[str] = set()
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for content in getattr(item, "content", None) or []:
            for annotation in getattr(content, "annotations", None) or []:
                if getattr(annotation, "type", None) != "url_citation":
                    continue
                url = getattr(annotation, "url", "") or ""
                if not url or url in seen:
                    continue
                seen.add(url)
                citations.append(Citation(title=getattr(annotation, "title", "") or url, uri=url))
    return citations


def _backend_error_from_exception(exc: Exception) -> BackendError:
    status_code = getattr(exc, "status_code", None)
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        status_code = 504
    response_obj = getattr(exc, "response", None)
    body_text = ""
    if response_obj is not None:
        body_text = getattr(response_obj, "text", "") or ""
    logger.error(
        "grading backend request failed",
        extra={"stage": "call_openai", "status_code": status_code, "body": body_text[:500]},
    )
    return BackendError(kind=ErrorKind.UNAVAILABLE, message=f"OpenAI request failed: {exc}", status_code=status_code)


class OpenAIGradingBackend:
    name = "openai"

    def __init__(
        self,
        api_key: str,
        grading_model: str = "gpt-5-mini",
        generation_model: str = "gpt-5-mini",
        timeout_seconds: float = 180.0,
    ) -> None:
        if not api_key.strip():
            raise RuntimeError("OPENAI_API_KEY is not set")

        from openai import OpenAI

        self._client = OpenAI(api_key=api_key, timeout=timeout_seconds)
        self._grading_model = grading_model
        self._generation_model = generation_model

    def _create(self, request_payload: dict[str, object], stage: str) -> object:
        started = time.perf_counter()
        try:
            response = self._client.responses.create(**request_payload)
        except Exception as exc:
            raise _backend_error_from_exception(exc) from exc
        logger.info(
            "grading backend call finished",
            extra={
                "stage": stage,
                "model": request_payload.get("model"),
                "openai_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return response

    def grade(self, essay_text: str, source_text: str | None) -> str:
        request_payload = build_evaluation_request(
            model=self._grading_model,
            prompt=build_evaluation_prompt(essay_text, source_text),
            schema=build_evaluation_response_schema(),
        )
        response = self._create(request_payload, stage="grade_essay")
        output_text = getattr(response, "output_text", "") or ""
        if not output_text.strip():
            raise BackendError(kind=ErrorKind.MALFORMED, message="Model returned empty response")
        return output_text

    def generate(self, source_text: str) -> GeneratedEssay:
        request_payload = build_generation_request(self._generation_model, build_generation_prompt(source_text))
        response = self._create(request_payload, stage="generate_essay")
        return GeneratedEssay(text=getattr(response, "output_text", "") or "", sources=extract_citations(response))

    def close(self) -> None:
        self._client.close()
