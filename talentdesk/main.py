import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from talentdesk.core import config
from talentdesk.core.db_retry import DatabaseRetryError
from talentdesk.core.logging_config import setup_logging
from talentdesk.api.routes import auth, candidates, jobs, interviews, reports, health
from talentdesk.services.ai_service import AIResponseError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL, config.LOG_DIR)

    if config.RUN_MIGRATIONS:
        from talentdesk.db.migrate import run_migrations
        run_migrations()
    else:
        from talentdesk.db.init_db import init_db
        init_db()

    logger.info("TalentDesk API started")
    yield


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="TalentDesk API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ============================================
# ✅ ERROR BODIES: {"error": "..."}
# ============================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = exc.detail if isinstance(exc.detail, dict) else {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", []) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": f"{field}: {message}" if field else message,
            "details": [{"loc": list(e.get("loc", [])), "msg": e.get("msg", "")} for e in errors],
        },
    )


@app.exception_handler(AIResponseError)
async def ai_response_exception_handler(request: Request, exc: AIResponseError):
    logger.error(f"Malformed AI response on {request.url.path}: {exc.raw[:200]}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": exc.message, "raw": exc.raw},
    )


@app.exception_handler(DatabaseRetryError)
async def database_exception_handler(request: Request, exc: DatabaseRetryError):
    logger.error(f"Database unavailable on {request.url.path}: {exc.last_error}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Database temporarily unavailable"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(candidates.router)
app.include_router(jobs.router)
app.include_router(interviews.router)
app.include_router(reports.router)
app.include_router(health.router)


@app.get("/")
def root():
    return {"status": "TalentDesk API running"}
