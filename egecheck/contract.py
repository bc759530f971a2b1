"""Evaluation contract: the shape every grading response must have."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError, field_validator

from egecheck.criteria import CRITERIA, CRITERION_IDS, MAX_TOTAL_SCORE
from egecheck.errors import ContractViolation

logger = logging.getLogger(__name__)

_OPENING_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_CLOSING_FENCE_RE = re.compile(r"\n?[ \t]*```$")


class ErrorFragment(BaseModel):
    text: StrictStr


class CriterionScore(BaseModel):
    score: StrictInt
    comment: StrictStr
    errors: list[ErrorFragment] = Field(default_factory=list)

    @field_validator("errors", mode="before")
    @classmethod
    def _null_errors_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class EvaluationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scores: dict[str, CriterionScore]
    total_score: StrictInt = Field(alias="totalScore")
    overall_feedback: StrictStr = Field(alias="overallFeedback")

    @property
    def criterion_score_sum(self) -> int:
        return sum(value.score for value in self.scores.values())


def strip_code_fences(raw: str) -> str:
    """Remove markdown code fence markers from either end, if any."""
    text = _OPENING_FENCE_RE.sub("", raw.strip(), count=1)
    text = _CLOSING_FENCE_RE.sub("", text, count=1)
    return text.strip()


def _field_path(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "$"


def validate_evaluation(result: EvaluationResult) -> EvaluationResult:
    """Check criterion keys and score bounds of an already shaped result."""
    for criterion_id in CRITERION_IDS:
        if criterion_id not in result.scores:
            raise ContractViolation(f"scores.{criterion_id}", "missing criterion")

    extra = [key for key in result.scores if key not in CRITERIA]
    if extra:
        raise ContractViolation(f"scores.{extra[0]}", "unknown criterion")

    for criterion_id in CRITERION_IDS:
        score = result.scores[criterion_id].score
        max_score = CRITERIA[criterion_id].max_score
        if not 0 <= score <= max_score:
            raise ContractViolation(f"scores.{criterion_id}.score", f"{score} is outside 0..{max_score}")

    if not 0 <= result.total_score <= MAX_TOTAL_SCORE:
        raise ContractViolation("totalScore", f"{result.total_score} is outside 0..{MAX_TOTAL_SCORE}")

    return result


def parse_evaluation(raw: str) -> EvaluationResult:
    """Parse raw model output into a validated EvaluationResult."""
    text = strip_code_fences(raw or "")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ContractViolation("$", f"response is not valid JSON ({exc.msg})") from exc

    if not isinstance(payload, dict):
        raise ContractViolation("$", "response is not a JSON object")

    try:
        result = EvaluationResult.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise ContractViolation(_field_path(first["loc"]), first["msg"]) from exc

    validate_evaluation(result)

    if result.total_score != result.criterion_score_sum:
        logger.warning(
            "evaluation total differs from criterion sum",
            extra={
                "stage": "parse_evaluation",
                "total_score": result.total_score,
                "criterion_sum": result.criterion_score_sum,
            },
        )
    return result
