"""Essay evaluation, history and statistics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from egecheck.auth import get_account_id, require_account_id
from egecheck.contract import EvaluationResult
from egecheck.criteria import weakest_criteria
from egecheck.dependencies import get_scoring_service
from egecheck.errors import EssayCheckError, PersistenceFailure
from egecheck.highlighting import reconcile_error_spans
from egecheck.persistence import EvaluationStore, StoredEvaluation, get_evaluation_store
from egecheck.schemas import (
    EvaluateRequest,
    EvaluationResponse,
    SegmentRead,
    SeriesPointRead,
    StatisticsRead,
    StoredEvaluationDetail,
    StoredEvaluationRead,
    WeakPointRead,
)
from egecheck.scoring import ScoringService, save_evaluation
from egecheck.statistics import summarize

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


def _highlights(essay_text: str, result: EvaluationResult) -> list[SegmentRead]:
    return [
        SegmentRead(text=s.text, highlighted=s.highlighted, criterion_id=s.criterion_id, tooltip=s.tooltip)
        for s in reconcile_error_spans(essay_text, result.scores)
    ]


def _weak_points(result: EvaluationResult) -> list[WeakPointRead]:
    return [
        WeakPointRead(
            criterion_id=w.criterion_id,
            title=w.title,
            score=w.score,
            max_score=w.max_score,
            recommendation=w.recommendation,
        )
        for w in weakest_criteria(result.scores)
    ]


def _load_history(store: EvaluationStore, account_id: int) -> list[StoredEvaluation]:
    try:
        return store.list(account_id)
    except PersistenceFailure as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc


@router.post("", response_model=EvaluationResponse)
def evaluate_essay(
    payload: EvaluateRequest,
    account_id: int | None = Depends(get_account_id),
    service: ScoringService = Depends(get_scoring_service),
    store: EvaluationStore = Depends(get_evaluation_store),
) -> EvaluationResponse:
    try:
        result = service.evaluate_essay(payload.essay_text, payload.source_text, account_id)
    except EssayCheckError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc

    stored = save_evaluation(store, account_id, payload.essay_text, result)
    return EvaluationResponse(
        evaluation_id=stored.id if stored else None,
        saved=stored is not None,
        result=result,
        highlights=_highlights(payload.essay_text, result),
        weak_points=_weak_points(result),
    )


@router.get("", response_model=list[StoredEvaluationRead])
def list_evaluations(
    account_id: int = Depends(require_account_id),
    store: EvaluationStore = Depends(get_evaluation_store),
) -> list[StoredEvaluationRead]:
    return [
        StoredEvaluationRead(id=r.id, created_at=r.created_at, essay_text=r.essay_text, result_data=r.result_data)
        for r in _load_history(store, account_id)
    ]


@router.get("/statistics", response_model=StatisticsRead)
def get_statistics(
    account_id: int = Depends(require_account_id),
    store: EvaluationStore = Depends(get_evaluation_store),
) -> StatisticsRead:
    summary = summarize(_load_history(store, account_id))
    return StatisticsRead(
        count=summary.count,
        average=summary.average,
        best=summary.best,
        series=[
            SeriesPointRead(index=p.index, score=p.score, display_date=p.display_date, created_at=p.created_at)
            for p in summary.series
        ],
    )


@router.get("/{evaluation_id}", response_model=StoredEvaluationDetail)
def get_evaluation(
    evaluation_id: int,
    account_id: int = Depends(require_account_id),
    store: EvaluationStore = Depends(get_evaluation_store),
) -> StoredEvaluationDetail:
    try:
        record = store.get(account_id, evaluation_id)
    except PersistenceFailure as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc
    if record is None:
        raise HTTPException(status_code=404, detail="Evaluation not found")

    return StoredEvaluationDetail(
        id=record.id,
        created_at=record.created_at,
        essay_text=record.essay_text,
        result_data=record.result_data,
        highlights=_highlights(record.essay_text, record.result_data),
        weak_points=_weak_points(record.result_data),
    )
