"""Model essay generation endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from egecheck.auth import get_account_id
from egecheck.dependencies import get_scoring_service
from egecheck.errors import EssayCheckError
from egecheck.schemas import CitationRead, GeneratedEssayRead, GenerateRequest
from egecheck.scoring import ScoringService

router = APIRouter(prefix="/essays", tags=["essays"])


@router.post("/generate", response_model=GeneratedEssayRead)
def generate_essay(
    payload: GenerateRequest,
    account_id: int | None = Depends(get_account_id),
    service: ScoringService = Depends(get_scoring_service),
) -> GeneratedEssayRead:
    try:
        essay = service.generate_essay(payload.source_text, account_id)
    except EssayCheckError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc

    return GeneratedEssayRead(
        text=essay.text,
        sources=[CitationRead(title=source.title, uri=source.uri) for source in essay.sources],
    )
