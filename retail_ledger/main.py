"""
Retail Ledger — FastAPI Application.

This is the entry point for the application.
Logging is configured and all routers are registered here.
"""

import logging

from fastapi import FastAPI

from retail_ledger.config import get_settings
from retail_ledger.api.health import router as health_router
from retail_ledger.api.ledger import router as ledger_router
from retail_ledger.api.sales import router as sales_router
from retail_ledger.api.reports import router as reports_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper() or (
        logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG
    ),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Retail back-office ledger with partial-payment reconciliation",
)

# Register routers
app.include_router(health_router)
app.include_router(ledger_router)
app.include_router(sales_router)
app.include_router(reports_router)

logger.info(
    "%s %s started (environment=%s)",
    settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
)
