"""Grading backend interfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class Citation:
    title: str
    uri: str


@dataclass
class GeneratedEssay:
    text: str
    sources: list[Citation] = field(default_factory=list)


class GradingBackend(Protocol):
    """Opaque language-model service that scores and writes essays."""

    name: str

    def grade(self, essay_text: str, source_text: str | None) -> str:
        """Return the raw model output for one essay evaluation."""

    def generate(self, source_text: str) -> GeneratedEssay:
        """Return a model essay written for the source text."""

    def close(self) -> None:
        """Release network clients held by the backend."""
