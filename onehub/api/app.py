"""FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from onehub.api.limiter import limiter
from onehub.config import settings
from onehub.db.base import dispose_engine, init_db
from onehub.errors import UpstreamError, to_user_friendly_error

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    try:
        init_db()
    except ValueError:
        logger.warning("DATABASE_URL not configured, skipping table creation")
    yield
    dispose_engine()


app = FastAPI(
    title="OneHub CRM API",
    description="Requirements, consultants, interviews and bulk email campaigns",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Return 429 with a clear message when rate limit is exceeded."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    """Email server / LLM failures surface as 502 with a friendly message."""
    friendly = to_user_friendly_error(exc)
    return JSONResponse(
        status_code=502,
        content={
            "detail": exc.message,
            "service": exc.service,
            "title": friendly["title"],
            "message": friendly["message"],
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-User-ID"],
)


# Import and include routers
from onehub.api.routes import (  # noqa: E402
    campaigns,
    comments,
    consultants,
    dashboard,
    email_accounts,
    extraction,
    interviews,
    jd,
    requirement_emails,
    requirements,
)

app.include_router(requirements.router, prefix="/requirements", tags=["Requirements"])
app.include_router(comments.router, prefix="/requirements", tags=["Next Steps"])
app.include_router(consultants.router, prefix="/consultants", tags=["Consultants"])
app.include_router(interviews.router, prefix="/interviews", tags=["Interviews"])
app.include_router(email_accounts.router, prefix="/email-accounts", tags=["Email Accounts"])
app.include_router(campaigns.router, prefix="/campaigns", tags=["Campaigns"])
app.include_router(requirement_emails.router, prefix="/requirement-emails", tags=["Requirement Emails"])
app.include_router(jd.router, prefix="/jd", tags=["JD Parser"])
app.include_router(extraction.router, prefix="/jobs", tags=["Job Extraction"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
