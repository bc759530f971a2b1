"""FastAPI application entrypoint."""

from uuid import uuid4

from fastapi import FastAPI
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlmodel import Session

from egecheck import db
from egecheck.ai.factory import reset_grading_backends
from egecheck.auth import api_key_accepted
from egecheck.routers.accounts import router as accounts_router
from egecheck.routers.criteria import router as criteria_router
from egecheck.routers.essays import router as essays_router
from egecheck.routers.evaluations import router as evaluations_router
from egecheck.settings import settings

app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def enforce_api_key(request: Request, call_next):
    if not api_key_accepted(request, settings):
        return JSONResponse(status_code=401, content={"detail": "Unauthorized"})
    return await call_next(request)


app.include_router(accounts_router)
app.include_router(criteria_router)
app.include_router(evaluations_router)
app.include_router(essays_router)


@app.on_event("startup")
def on_startup() -> None:
    settings.data_path.mkdir(parents=True, exist_ok=True)
    if settings.persistence_backend.lower().strip() == "sql":
        db.create_db_and_tables()


@app.on_event("shutdown")
def on_shutdown() -> None:
    reset_grading_backends()


@app.get("/health", tags=["meta"])
def health() -> dict[str, bool | str]:
    return {
        "ok": True,
        "grading_configured": settings.grading_configured,
        "persistence": settings.persistence_backend,
    }


@app.get("/health/deep", tags=["meta"])
def deep_health() -> dict[str, bool | str | None]:
    data_dir = settings.data_path

    storage_writable = False
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        probe_path = data_dir / f".health_probe_{uuid4().hex}"
        probe_path.write_text("ok", encoding="utf-8")
        probe_path.unlink(missing_ok=True)
        storage_writable = True
    except OSError:
        storage_writable = False

    db_ok: bool | None = None
    if settings.persistence_backend.lower().strip() == "sql":
        try:
            with Session(db.engine) as session:
                session.exec(text("SELECT 1"))
            db_ok = True
        except Exception:
            db_ok = False

    return {
        "ok": True,
        "grading_configured": settings.grading_configured,
        "storage_writable": storage_writable,
        "data_dir": str(data_dir),
        "db_ok": db_ok,
    }
