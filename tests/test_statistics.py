from __future__ import annotations

import json
from datetime import datetime, timezone

from egecheck.contract import parse_evaluation
from egecheck.persistence import StoredEvaluation
from egecheck.statistics import average_score, best_score, format_display_date, score_series, summarize


def _record(record_id: int, total: int, created_at: datetime, payload: dict) -> StoredEvaluation:
    payload = dict(payload, totalScore=total)
    return StoredEvaluation(
        id=record_id,
        account_id=1,
        created_at=created_at,
        essay_text="...",
        result_data=parse_evaluation(json.dumps(payload)),
    )


def test_summary_over_three_dates(evaluation_payload) -> None:
    records = [
        _record(2, 22, datetime(2025, 3, 5, tzinfo=timezone.utc), evaluation_payload),
        _record(3, 16, datetime(2025, 3, 9, tzinfo=timezone.utc), evaluation_payload),
        _record(1, 10, datetime(2025, 3, 1, tzinfo=timezone.utc), evaluation_payload),
    ]

    assert average_score(records) == "16.0"
    assert best_score(records) == 22

    series = score_series(records)
    assert [p.score for p in series] == [10, 22, 16]
    assert [p.index for p in series] == [0, 1, 2]
    assert [p.display_date for p in series] == ["1 мар.", "5 мар.", "9 мар."]


def test_empty_history() -> None:
    summary = summarize([])

    assert summary.count == 0
    assert summary.average == "0"
    assert summary.best == 0
    assert summary.series == []


def test_series_keeps_input_order_for_equal_timestamps(evaluation_payload) -> None:
    moment = datetime(2025, 5, 1, tzinfo=timezone.utc)
    records = [_record(1, 7, moment, evaluation_payload), _record(2, 9, moment, evaluation_payload)]

    assert [p.score for p in score_series(records)] == [7, 9]


def test_display_date_uses_russian_month() -> None:
    assert format_display_date(datetime(2025, 5, 17)) == "17 мая"
    assert format_display_date(datetime(2025, 12, 2)) == "2 дек."
