import logging
import os
import subprocess
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.database import db, ensure_database_configured, init_db
from app.logging_config import configure_logging
from app.routes import courses, users, webhooks
from app.security_headers import SecurityHeadersMiddleware
from app.services.outcome_classifier import failure_response
from app.settings import get_cors_origins, get_environment, get_host, get_log_level, get_port
from app.utils.envelope import error_response, success_response
from app.utils.failures import Failure

configure_logging(get_log_level())
logger = logging.getLogger(__name__)


# Get build info
def get_build_info():
    """Get git commit hash or build timestamp"""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=os.path.dirname(os.path.dirname(__file__)),
            capture_output=True,
            text=True,
            timeout=2,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        logger.debug("git not available for build hash")

    # Fallback to build timestamp
    return datetime.now().strftime("%Y%m%d-%H%M%S")


BUILD_HASH = get_build_info()


@asynccontextmanager
async def lifespan(app: FastAPI):
    acquired = ensure_database_configured()
    if acquired:
        db.acquire()
        try:
            init_db()
        except Exception:
            # Keep serving; requests classify the outage as 503
            logger.exception("Database initialization failed")
    logger.info("Course Catalog API started (%s, build %s)", get_environment(), BUILD_HASH)
    try:
        yield
    finally:
        if acquired:
            db.release()


app = FastAPI(title="Course Catalog API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)


# ============================================================================
# Exception handlers
# ============================================================================


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return failure_response(exc, action="validate request")


@app.exception_handler(Failure)
async def failure_handler(request: Request, exc: Failure):
    # Raised outside a handler body, e.g. by the get_session dependency
    return failure_response(exc, action="process the request")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return error_response(f"Route {request.url.path} not found", 404)
    return error_response(str(exc.detail), exc.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response("Internal Server Error", 500)


# Include routers
app.include_router(courses.router, prefix="/api", tags=["courses"])
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(webhooks.router, prefix="/api", tags=["webhooks"])


@app.get("/health")
@app.get("/api/health")
def health_check():
    """Liveness endpoint; does not touch the database"""
    return success_response(
        {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": get_environment(),
            "buildHash": BUILD_HASH,
        },
        "Server is running",
    )


def run():
    """Console entry point"""
    ensure_database_configured()
    uvicorn.run(app, host=get_host(), port=get_port(), log_config=None)


if __name__ == "__main__":
    run()
