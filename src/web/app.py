"""FastAPI application entry point."""

import os
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat.interpreter import InterpretationError
from habits.models import DomainError
from observability import log_run_summary
from web.deps import get_fact_store, get_habit_store
from web.routes import chat, facts, habits, profile, tags

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_habit_store()
    get_fact_store()
    logger.info("web.startup")
    yield
    log_run_summary()
    logger.info("web.shutdown")


app = FastAPI(
    title="Orbit",
    version="0.1.0",
    lifespan=lifespan,
)

frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat.router)
app.include_router(habits.router)
app.include_router(tags.router)
app.include_router(facts.router)
app.include_router(profile.router)


@app.exception_handler(InterpretationError)
async def interpretation_error_handler(request: Request, exc: InterpretationError):
    logger.warning("web.interpretation_failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.get("/api/health")
async def health():
    return {"status": "ok"}
