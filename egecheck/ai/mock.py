"""Deterministic grading backend for local development and tests."""

from __future__ import annotations

import json

from egecheck.ai.base import Citation, GeneratedEssay

MOCK_EVALUATION: dict[str, object] = {
    "scores": {
        "K1": {"score": 1, "comment": "Позиция автора сформулирована верно.", "errors": []},
        "K2": {"score": 2, "comment": "Связь между примерами не проанализирована.", "errors": []},
        "K3": {"score": 2, "comment": "Собственное отношение обосновано.", "errors": []},
        "K4": {"score": 1, "comment": "Фактических ошибок нет.", "errors": []},
        "K5": {"score": 2, "comment": "Логических ошибок нет.", "errors": []},
        "K6": {"score": 1, "comment": "Этических ошибок нет.", "errors": []},
        "K7": {"score": 2, "comment": "Одна орфографическая ошибка.", "errors": [{"text": "извесный"}]},
        "K8": {"score": 3, "comment": "Пунктуационных ошибок нет.", "errors": []},
        "K9": {"score": 3, "comment": "Грамматических ошибок нет.", "errors": []},
        "K10": {"score": 2, "comment": "Речевой повтор.", "errors": [{"text": "очень очень"}]},
    },
    "totalScore": 19,
    "overallFeedback": "Хорошая работа. Обратите внимание на орфографию и речевые повторы.",
}


class MockGradingBackend:
    name = "mock"

    def __init__(self) -> None:
        self.grade_calls = 0
        self.generate_calls = 0

    def grade(self, essay_text: str, source_text: str | None) -> str:
        _ = (essay_text, source_text)
        self.grade_calls += 1
        return "```json\n" + json.dumps(MOCK_EVALUATION, ensure_ascii=False) + "\n```"

    def generate(self, source_text: str) -> GeneratedEssay:
        _ = source_text
        self.generate_calls += 1
        return GeneratedEssay(
            text="Автор поднимает проблему бережного отношения к родному языку.",
            sources=[Citation(title="Грамота.ру", uri="https://gramota.ru/")],
        )

    def close(self) -> None:
        pass
