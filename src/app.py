"""ReviewHub FastAPI application.

Processes commands synchronously via HTTP. Every request runs inside the
reviewhub domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay (e.g. "production" → PostgreSQL).
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers
from reviewhub.domain import reviewhub
from reviewhub.utils.logging import clear_context

reviewhub.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="ReviewHub API",
    description="Companies, reviews and blogs with role-gated moderation",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the reviewhub domain context for each request."""
    clear_context()
    with reviewhub.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from reviewhub.api import (  # noqa: E402
    blog_router,
    company_router,
    principal_router,
    register_domain_exception_handlers,
    review_router,
)

app.include_router(principal_router)
app.include_router(company_router)
app.include_router(review_router)
app.include_router(blog_router)

register_exception_handlers(app)
register_domain_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": reviewhub.name}})
