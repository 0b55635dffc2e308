"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from legatepro.core.config import settings
from legatepro.core.rate_limit import limiter
from legatepro.core.responses import (
    error_response,
    http_exception_handler,
    rate_limit_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from legatepro.db.session import engine
from legatepro.services.entitlements import EntitlementError

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,  # Estate records are sensitive
    )
    logging.info("Sentry initialized for error tracking")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="LegatePro API",
    description="Estate administration workspace for personal representatives",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter


async def entitlement_exception_handler(request: Request, exc: EntitlementError):
    return error_response(402, exc.message, exc.code)


app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
app.add_exception_handler(EntitlementError, entitlement_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Requested-With", "Stripe-Signature"],
    expose_headers=[
        "Content-Disposition",
        "X-LegatePro-Upgrade-Url",
        "X-LegatePro-Plan-Id",
        "X-LegatePro-Plan-Limit",
        "X-LegatePro-Plan-Current",
        "X-LegatePro-Subscription-Status",
    ],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    # Estate data is never cached by browsers or proxies
    response.headers.setdefault("Cache-Control", "no-store")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "same-origin")
    response.headers.setdefault("X-Frame-Options", "DENY")
    return response


# ============================================================================
# Routers
# ============================================================================

from legatepro.routers import auth, estates, billing, settings as settings_router  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(estates.router, prefix="/api/estates", tags=["estates"])
app.include_router(billing.router, prefix="/api/billing", tags=["billing"])
app.include_router(settings_router.router, prefix="/api/settings", tags=["settings"])

# Estate-scoped routers (membership checked by the estate access dependencies)
from legatepro.routers import (  # noqa: E402
    activity,
    collaborators,
    contacts,
    documents,
    expenses,
    invites,
    invoices,
    notes,
    properties,
    readiness,
    rent,
    tasks,
    time_entries,
    utilities,
)

ESTATE_PREFIX = "/api/estates/{estate_id}"

app.include_router(collaborators.router, prefix=f"{ESTATE_PREFIX}/collaborators", tags=["collaborators"])
app.include_router(invites.router, prefix=f"{ESTATE_PREFIX}/invites", tags=["invites"])
app.include_router(documents.router, prefix=f"{ESTATE_PREFIX}/documents", tags=["documents"])
app.include_router(contacts.router, prefix=f"{ESTATE_PREFIX}/contacts", tags=["contacts"])
app.include_router(notes.router, prefix=f"{ESTATE_PREFIX}/notes", tags=["notes"])
app.include_router(tasks.router, prefix=f"{ESTATE_PREFIX}/tasks", tags=["tasks"])
app.include_router(expenses.router, prefix=f"{ESTATE_PREFIX}/expenses", tags=["expenses"])
app.include_router(invoices.router, prefix=f"{ESTATE_PREFIX}/invoices", tags=["invoices"])
app.include_router(properties.router, prefix=f"{ESTATE_PREFIX}/properties", tags=["properties"])
app.include_router(rent.router, prefix=f"{ESTATE_PREFIX}/rent", tags=["rent"])
app.include_router(time_entries.router, prefix=f"{ESTATE_PREFIX}/time", tags=["time"])
app.include_router(utilities.router, prefix=f"{ESTATE_PREFIX}/utilities", tags=["utilities"])
app.include_router(activity.router, prefix=f"{ESTATE_PREFIX}/activity", tags=["activity"])
app.include_router(readiness.router, prefix=f"{ESTATE_PREFIX}/readiness", tags=["readiness"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        return error_response(503, "Database unavailable")
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
