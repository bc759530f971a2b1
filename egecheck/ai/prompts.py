"""Instruction text sent to the grading backend."""

from __future__ import annotations

from egecheck.criteria import CRITERIA, MAX_TOTAL_SCORE

NO_SOURCE_PLACEHOLDER = "No source text provided."

_CRITERION_LABELS = {
    "K1": "Author Position",
    "K2": "Commentary",
    "K3": "Own Attitude/Argument",
    "K4": "Factual Precision",
    "K5": "Logic",
    "K6": "Ethics",
    "K7": "Ortho",
    "K8": "Punct",
    "K9": "Grammar",
    "K10": "Speech Norms",
}

EVALUATION_SYSTEM_INSTRUCTION = (
    "You are a meticulous and fair examiner for the Russian Unified State Exam (ЕГЭ), specifically grading Task 27, "
    "the essay. Your task is to evaluate the user-provided essay based on a strict set of official criteria "
    "(К1 through К10). You must analyze the essay thoroughly for each criterion and provide a score and a concise "
    "justification for that score in Russian.\n\n"
    "For criteria K4, K5, K6 and K7-K10 (facts, logic, ethics, literacy), if the score is less than the maximum, "
    "you MUST identify the specific text fragments from the essay that contain errors. Return these fragments in an "
    '"errors" array, where each object contains the exact "text" of the error, copied verbatim from the essay. '
    "A criterion with the maximum score must have an empty errors array.\n\n"
    "Your final output MUST be a JSON object matching the provided schema."
)


def criteria_ceilings() -> str:
    return "\n".join(
        f"{criterion.id} ({_CRITERION_LABELS[criterion.id]}): Max {criterion.max_score}" for criterion in CRITERIA.values()
    )


def build_evaluation_prompt(essay_text: str, source_text: str | None) -> str:
    source = source_text if source_text and source_text.strip() else NO_SOURCE_PLACEHOLDER
    return (
        "=== SOURCE TEXT (Исходный текст) ===\n"
        f"{source}\n"
        "====================================\n\n"
        "=== STUDENT'S ESSAY (Сочинение) ===\n"
        f"{essay_text}\n"
        "====================================\n\n"
        f"Evaluate strictly according to official ЕГЭ criteria K1-K10 (Total {MAX_TOTAL_SCORE} points).\n"
        f"{criteria_ceilings()}\n"
    )


def build_generation_prompt(source_text: str) -> str:
    return (
        "Напиши идеальное сочинение ЕГЭ по русскому языку (задание 27) на основе приведенного текста.\n"
        "Используй веб-поиск для проверки любых литературных аргументов или исторических фактов, "
        "которые ты приводишь в обосновании (K3).\n\n"
        "Сочинение должно быть структурным, грамотным и глубоким.\n"
        "Объем: 200-300 слов.\n\n"
        "=== ИСХОДНЫЙ ТЕКСТ ===\n"
        f"{source_text}\n"
        "======================\n"
    )
