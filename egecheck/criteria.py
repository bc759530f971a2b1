"""Static registry of the ten ЕГЭ Task 27 scoring criteria."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from egecheck.contract import CriterionScore


MAX_TOTAL_SCORE = 22


@dataclass(frozen=True)
class Criterion:
    id: str
    title: str
    max_score: int
    color: str
    recommendation: str


@dataclass(frozen=True)
class CriterionGroup:
    title: str
    short_description: str
    description: str
    criterion_ids: tuple[str, ...]


@dataclass(frozen=True)
class WeakPoint:
    criterion_id: str
    title: str
    score: int
    max_score: int
    recommendation: str


_DEFINITIONS = (
    Criterion(
        "K1",
        "Позиция автора",
        1,
        "red",
        "Верно сформулируйте позицию автора (рассказчика) по проблеме исходного текста.",
    ),
    Criterion(
        "K2",
        "Комментарий к позиции",
        3,
        "orange",
        "Приведите 2 примера-иллюстрации, поясните их и укажите смысловую связь между ними.",
    ),
    Criterion(
        "K3",
        "Собственное отношение",
        2,
        "amber",
        "Выразите свое согласие/несогласие и обоснуйте его (приведите аргумент из жизни или литературы).",
    ),
    Criterion(
        "K4",
        "Фактическая точность",
        1,
        "violet",
        "Не допускайте искажения фактов в фоновом материале (имена, даты, события).",
    ),
    Criterion("K5", "Логичность речи", 2, "lime", "Следите за логикой изложения и абзацным членением текста."),
    Criterion("K6", "Этические нормы", 1, "indigo", "Не допускайте проявлений речевой агрессии и этических ошибок."),
    Criterion("K7", "Орфографические нормы", 3, "emerald", "Внимательно проверяйте написание слов."),
    Criterion("K8", "Пунктуационные нормы", 3, "teal", "Следите за знаками препинания."),
    Criterion("K9", "Грамматические нормы", 3, "cyan", "Соблюдайте нормы словообразования, морфологии и синтаксиса."),
    Criterion("K10", "Речевые нормы", 3, "sky", "Следите за лексической сочетаемостью и точностью словоупотребления."),
)

CRITERIA: Mapping[str, Criterion] = MappingProxyType({criterion.id: criterion for criterion in _DEFINITIONS})
CRITERION_IDS: tuple[str, ...] = tuple(CRITERIA)

CRITERIA_GROUPS: tuple[CriterionGroup, ...] = (
    CriterionGroup(
        title="Содержание сочинения",
        short_description="Позиция, комментарий, отношение",
        description="Оценивается понимание позиции автора, качество комментария и обоснование собственного мнения.",
        criterion_ids=("K1", "K2", "K3"),
    ),
    CriterionGroup(
        title="Речевое оформление",
        short_description="Факты, логика, этика",
        description="Оценивается точность фактов, логическая связность текста и соблюдение этических норм.",
        criterion_ids=("K4", "K5", "K6"),
    ),
    CriterionGroup(
        title="Грамотность",
        short_description="Орфография, пунктуация, речь",
        description="Оценивается соблюдение всех языковых норм (орфография, пунктуация, грамматика, речь).",
        criterion_ids=("K7", "K8", "K9", "K10"),
    ),
)


def weakest_criteria(scores: Mapping[str, "CriterionScore"], limit: int = 3) -> list[WeakPoint]:
    """Return the criteria that lost the largest share of their points, worst first."""
    weak: list[WeakPoint] = []
    for criterion_id in CRITERION_IDS:
        value = scores.get(criterion_id)
        criterion = CRITERIA[criterion_id]
        if value is None or value.score >= criterion.max_score:
            continue
        weak.append(
            WeakPoint(
                criterion_id=criterion_id,
                title=criterion.title,
                score=value.score,
                max_score=criterion.max_score,
                recommendation=criterion.recommendation,
            )
        )
    weak.sort(key=lambda item: item.score / item.max_score)
    return weak[:limit]
