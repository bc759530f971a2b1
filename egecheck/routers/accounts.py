"""Account and free-check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from egecheck.auth import require_account_id
from egecheck.errors import PersistenceFailure, Unauthenticated
from egecheck.persistence import AccountStore, get_account_store
from egecheck.schemas import AccountCreated, AccountRead
from egecheck.settings import Settings, get_settings

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.post("", response_model=AccountCreated, status_code=status.HTTP_201_CREATED)
def create_account(
    config: Settings = Depends(get_settings),
    accounts: AccountStore = Depends(get_account_store),
) -> AccountCreated:
    try:
        record = accounts.create(config.initial_free_checks)
    except PersistenceFailure as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc
    return AccountCreated(id=record.id, token=record.token, remaining_free_checks=record.remaining_free_checks)


@router.get("/me", response_model=AccountRead)
def get_my_account(
    account_id: int = Depends(require_account_id),
    accounts: AccountStore = Depends(get_account_store),
) -> AccountRead:
    try:
        remaining = accounts.read_remaining(account_id)
    except PersistenceFailure as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc
    if remaining is None:
        error = Unauthenticated()
        raise HTTPException(status_code=error.status_code, detail=error.to_detail())
    return AccountRead(id=account_id, remaining_free_checks=remaining)
