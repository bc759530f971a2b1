"""FastAPI dependency providers for the scoring core."""

from __future__ import annotations

from fastapi import Depends

from egecheck.persistence import AccountStore, get_account_store
from egecheck.quota import QuotaGate
from egecheck.scoring import ScoringService
from egecheck.settings import Settings, get_settings


def get_quota_gate(accounts: AccountStore = Depends(get_account_store)) -> QuotaGate:
    return QuotaGate(accounts)


def get_scoring_service(
    config: Settings = Depends(get_settings),
    quota_gate: QuotaGate = Depends(get_quota_gate),
) -> ScoringService:
    return ScoringService(config, quota_gate)
