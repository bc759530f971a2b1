"""Scoring criteria endpoints."""

from fastapi import APIRouter

from egecheck.criteria import CRITERIA, CRITERIA_GROUPS, MAX_TOTAL_SCORE
from egecheck.schemas import CriteriaRead, CriterionGroupRead, CriterionRead

router = APIRouter(prefix="/criteria", tags=["criteria"])


@router.get("", response_model=CriteriaRead)
def list_criteria() -> CriteriaRead:
    return CriteriaRead(
        max_total_score=MAX_TOTAL_SCORE,
        criteria=[
            CriterionRead(
                id=c.id,
                title=c.title,
                max_score=c.max_score,
                color=c.color,
                recommendation=c.recommendation,
            )
            for c in CRITERIA.values()
        ],
        groups=[
            CriterionGroupRead(
                title=g.title,
                short_description=g.short_description,
                description=g.description,
                criterion_ids=list(g.criterion_ids),
            )
            for g in CRITERIA_GROUPS
        ],
    )
