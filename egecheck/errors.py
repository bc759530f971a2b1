"""Typed failures raised by the scoring core."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Structured failure code reported by a grading backend."""

    UNAUTHORIZED = "unauthorized"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"


class EssayCheckError(Exception):
    code = "error"
    status_code = 500
    default_message = "Неизвестная ошибка."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidInput(EssayCheckError):
    code = "invalid_input"
    status_code = 400
    default_message = "Напишите или вставьте текст сочинения."


class Unauthenticated(EssayCheckError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Пожалуйста, войдите в аккаунт."


class QuotaExhausted(EssayCheckError):
    code = "quota_exhausted"
    status_code = 402
    default_message = "Бесплатные проверки закончились."


class BackendUnavailable(EssayCheckError):
    code = "backend_unavailable"
    status_code = 503
    default_message = "Сервис проверки временно недоступен. Попробуйте еще раз позже."


class PersistenceFailure(EssayCheckError):
    code = "persistence_failure"
    status_code = 500
    default_message = "Не удалось сохранить результат проверки."


class ContractViolation(EssayCheckError):
    """Backend payload does not match the evaluation contract."""

    code = "contract_violation"
    status_code = 502

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid evaluation payload at '{field}': {reason}")

    def to_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message, "field": self.field}


@dataclass
class BackendError(Exception):
    kind: ErrorKind
    message: str
    status_code: int | None = None
    user_message: bool = False

    def __str__(self) -> str:
        return self.message
