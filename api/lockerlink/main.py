import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from . import models  # noqa: F401  registers tables on Base.metadata
from .config import ALLOWED_ORIGINS, DB_WAIT_ATTEMPTS, DB_WAIT_DELAY_SECONDS
from .database import Base, SessionLocal, engine
from .errors import RecordNotFoundError
from .routes import include_modular_routers

logger = logging.getLogger(__name__)

app = FastAPI(title="LockerLink API")
include_modular_routers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,  # Required for cookie-based auth
    allow_methods=["*"],
    allow_headers=["*"],
)


def wait_for_db(max_attempts: int = DB_WAIT_ATTEMPTS, delay_seconds: float = DB_WAIT_DELAY_SECONDS) -> None:
    last_err: Exception | None = None
    for _ in range(max_attempts):
        try:
            with SessionLocal() as db:
                db.execute(text("SELECT 1"))
                db.commit()
            return
        except OperationalError as exc:
            last_err = exc
            time.sleep(delay_seconds)
    if last_err:
        raise last_err


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


@app.on_event("startup")
def on_startup() -> None:
    wait_for_db()
    init_db()


@app.exception_handler(RecordNotFoundError)
def record_not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": f"{exc.collection.capitalize()} not found"})


@app.exception_handler(OperationalError)
def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error("[STORE] %s %s database error: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable, try again"})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
