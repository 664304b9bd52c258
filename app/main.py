import logging

from fastapi import Depends, FastAPI
from sqlalchemy.orm import Session

from app.api.errors import register_exception_handlers
from app.api.leads import router as leads_router
from app.api.quotes import router as quotes_router
from app.core.config import settings
from app.db.deps import get_db
from app.middleware.correlation_id import CorrelationIdMiddleware

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Sports Travel Quotes")

app.add_middleware(CorrelationIdMiddleware)
register_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    """Run startup checks and validation."""
    production_errors = []

    if settings.app_env == "production":
        if settings.default_currency not in settings.supported_currencies:
            production_errors.append(
                f"DEFAULT_CURRENCY={settings.default_currency} is not in SUPPORTED_CURRENCIES."
            )
        if not settings.email_dry_run and not settings.smtp_host:
            production_errors.append(
                "SMTP_HOST is required in production when EMAIL_DRY_RUN=false."
            )

    if production_errors:
        error_message = (
            "Production environment validation failed:\n\n"
            + "\n".join(f"  - {error}" for error in production_errors)
        )
        logger.error(error_message)
        raise RuntimeError(error_message)

    # Log configuration summary (no secrets)
    logger.info(
        "Startup: Configuration loaded - "
        f"Environment: {settings.app_env}, "
        f"Default currency: {settings.default_currency}, "
        f"Quote expiry: {settings.quote_expiry_days} days, "
        f"Email dry-run: {settings.email_dry_run}"
    )


@app.get("/health")
def health():
    """
    Health check endpoint with pricing configuration visibility.

    Returns 200 immediately - used for basic health checks.
    """
    return {
        "ok": True,
        "environment": settings.app_env,
        "pricing": {
            "default_currency": settings.default_currency,
            "supported_currencies": settings.supported_currencies,
            "quote_expiry_days": settings.quote_expiry_days,
            "seasonal_calendar": settings.seasonal_calendar,
        },
        "email_dry_run": settings.email_dry_run,
    }


@app.get("/ready")
def ready(db: Session = Depends(get_db)):
    """
    Readiness check endpoint - verifies database connectivity.

    Returns 200 if database is accessible, 503 if not.
    Used by load balancers and orchestration systems.
    """
    from sqlalchemy import text

    try:
        db.execute(text("SELECT 1"))
        return {"ok": True, "database": "connected"}
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        from fastapi import status
        from fastapi.responses import JSONResponse

        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "database": "disconnected", "error": str(e)},
        )


app.include_router(leads_router, prefix="/leads", tags=["leads"])
app.include_router(quotes_router, prefix="/quotes", tags=["quotes"])
