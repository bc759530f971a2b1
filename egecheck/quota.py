"""Server-side gate on free grading and generation checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from egecheck.errors import PersistenceFailure
from egecheck.persistence import AccountStore

logger = logging.getLogger(__name__)


class DenialReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    reason: DenialReason | None = None
    remaining: int = 0

    @classmethod
    def permit(cls, remaining: int) -> "QuotaDecision":
        return cls(allowed=True, remaining=remaining)

    @classmethod
    def deny(cls, reason: DenialReason, remaining: int = 0) -> "QuotaDecision":
        return cls(allowed=False, reason=reason, remaining=remaining)


class QuotaGate:
    """Decides whether an account may spend one backend call.

    Two concurrent requests may both be authorized before either consumes;
    the counter can then be asked to go below zero, which the store refuses,
    so the worst case is one extra backend call per race.
    """

    def __init__(self, accounts: AccountStore) -> None:
        self._accounts = accounts

    def authorize(self, account_id: int | None) -> QuotaDecision:
        if account_id is None:
            return QuotaDecision.deny(DenialReason.UNAUTHENTICATED)

        try:
            remaining = self._accounts.read_remaining(account_id)
        except PersistenceFailure:
            logger.exception("quota read failed", extra={"stage": "quota_authorize", "account_id": account_id})
            return QuotaDecision.deny(DenialReason.UNAVAILABLE)

        if remaining is None:
            return QuotaDecision.deny(DenialReason.NOT_FOUND)
        if remaining <= 0:
            return QuotaDecision.deny(DenialReason.EXHAUSTED)
        return QuotaDecision.permit(remaining)

    def consume(self, account_id: int) -> bool:
        try:
            consumed = self._accounts.decrement_remaining(account_id)
        except PersistenceFailure:
            logger.exception("quota decrement failed", extra={"stage": "quota_consume", "account_id": account_id})
            return False

        if not consumed:
            logger.warning("quota already drained at consume", extra={"stage": "quota_consume", "account_id": account_id})
        return consumed
