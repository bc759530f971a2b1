"""Summaries derived from an account's stored evaluations."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from egecheck.contract import EvaluationResult

_RU_SHORT_MONTHS = (
    "янв.",
    "февр.",
    "мар.",
    "апр.",
    "мая",
    "июн.",
    "июл.",
    "авг.",
    "сент.",
    "окт.",
    "нояб.",
    "дек.",
)


class ScoredRecord(Protocol):
    created_at: datetime
    result_data: EvaluationResult


@dataclass(frozen=True)
class SeriesPoint:
    index: int
    score: int
    display_date: str
    created_at: datetime


@dataclass(frozen=True)
class StatisticsSummary:
    count: int
    average: str
    best: int
    series: list[SeriesPoint] = field(default_factory=list)


def format_display_date(value: datetime) -> str:
    """Short Russian day-month label, e.g. ``5 мар.``."""
    return f"{value.day} {_RU_SHORT_MONTHS[value.month - 1]}"


def average_score(records: Sequence[ScoredRecord]) -> str:
    if not records:
        return "0"
    total = sum(record.result_data.total_score for record in records)
    return f"{total / len(records):.1f}"


def best_score(records: Sequence[ScoredRecord]) -> int:
    if not records:
        return 0
    return max(record.result_data.total_score for record in records)


def score_series(records: Sequence[ScoredRecord]) -> list[SeriesPoint]:
    """Records in ascending submission order, evenly indexed for plotting."""
    ordered = sorted(records, key=lambda record: record.created_at)
    return [
        SeriesPoint(
            index=position,
            score=record.result_data.total_score,
            display_date=format_display_date(record.created_at),
            created_at=record.created_at,
        )
        for position, record in enumerate(ordered)
    ]


def summarize(records: Sequence[ScoredRecord]) -> StatisticsSummary:
    return StatisticsSummary(
        count=len(records),
        average=average_score(records),
        best=best_score(records),
        series=score_series(records),
    )
