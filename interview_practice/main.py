import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from interview_practice.api.router import api_router
from interview_practice.core.config import settings
from interview_practice.core.exceptions import PracticeError
from interview_practice.db.base import Base
from interview_practice.db.session import SessionLocal, engine
from interview_practice.practice.registry import session_registry
from interview_practice import models  # noqa: F401

logging.basicConfig(
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PracticeError)
async def practice_error_handler(request: Request, exc: PracticeError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", "Postgres" if settings.is_production else "SQLite")


@app.on_event("shutdown")
async def on_shutdown():
    controllers = session_registry.release_all()
    for controller in controllers:
        await controller.exit()
    if controllers:
        logger.info("Released %s practice sessions on shutdown", len(controllers))


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/health/db")
def health_db():
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected"}
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", exc)
        return {"status": "error", "database": str(exc)}


app.include_router(api_router, prefix=settings.api_prefix)
