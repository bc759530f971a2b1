"""Request and response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from egecheck.contract import EvaluationResult


class AccountCreated(BaseModel):
    id: int
    token: str
    remaining_free_checks: int


class AccountRead(BaseModel):
    id: int
    remaining_free_checks: int


class CriterionRead(BaseModel):
    id: str
    title: str
    max_score: int
    color: str
    recommendation: str


class CriterionGroupRead(BaseModel):
    title: str
    short_description: str
    description: str
    criterion_ids: list[str]


class CriteriaRead(BaseModel):
    max_total_score: int
    criteria: list[CriterionRead]
    groups: list[CriterionGroupRead]


class EvaluateRequest(BaseModel):
    essay_text: str
    source_text: str | None = None


class SegmentRead(BaseModel):
    text: str
    highlighted: bool
    criterion_id: str | None = None
    tooltip: str | None = None


class WeakPointRead(BaseModel):
    criterion_id: str
    title: str
    score: int
    max_score: int
    recommendation: str


class EvaluationResponse(BaseModel):
    evaluation_id: int | None
    saved: bool
    result: EvaluationResult
    highlights: list[SegmentRead] = Field(default_factory=list)
    weak_points: list[WeakPointRead] = Field(default_factory=list)


class StoredEvaluationRead(BaseModel):
    id: int
    created_at: datetime
    essay_text: str
    result_data: EvaluationResult


class StoredEvaluationDetail(StoredEvaluationRead):
    highlights: list[SegmentRead] = Field(default_factory=list)
    weak_points: list[WeakPointRead] = Field(default_factory=list)


class SeriesPointRead(BaseModel):
    index: int
    score: int
    display_date: str
    created_at: datetime


class StatisticsRead(BaseModel):
    count: int
    average: str
    best: int
    series: list[SeriesPointRead] = Field(default_factory=list)


class GenerateRequest(BaseModel):
    source_text: str


class CitationRead(BaseModel):
    title: str
    uri: str


class GeneratedEssayRead(BaseModel):
    text: str
    sources: list[CitationRead] = Field(default_factory=list)
