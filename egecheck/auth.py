"""Account credential and deployment API key dependencies."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request

from egecheck.errors import PersistenceFailure, Unauthenticated
from egecheck.persistence import AccountStore, get_account_store
from egecheck.settings import Settings


_PUBLIC_PATHS = {
    "/",
    "/health",
    "/health/deep",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/favicon.ico",
}


def is_public_path(path: str) -> bool:
    return path in _PUBLIC_PATHS


def api_key_accepted(request: Request, config: Settings) -> bool:
    if request.method == "OPTIONS" or is_public_path(request.url.path):
        return True

    expected = config.backend_api_key.strip()
    if not expected:
        return True
    return request.headers.get("X-API-Key", "") == expected


def get_account_id(
    x_account_token: str | None = Header(default=None, alias="X-Account-Token"),
    accounts: AccountStore = Depends(get_account_store),
) -> int | None:
    """Resolve the caller's account, or None when no valid credential is sent."""
    token = (x_account_token or "").strip()
    if not token:
        return None
    try:
        return accounts.find_by_token(token)
    except PersistenceFailure as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail()) from exc


def require_account_id(account_id: int | None = Depends(get_account_id)) -> int:
    if account_id is None:
        exc = Unauthenticated()
        raise HTTPException(status_code=exc.status_code, detail=exc.to_detail())
    return account_id

