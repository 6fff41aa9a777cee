import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load env from carmart/.env
package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(package_dir, ".env"))

from carmart.core.config import settings, validate_config
from carmart.core.logging import configure_logging
from carmart.core.middleware.request_id import RequestIdMiddleware
from carmart.core.validation import validate_env
from carmart.core.errors import (
    AppError,
    ListingLimitReachedError,
    app_error_handler,
    http_error_handler,
    listing_limit_handler,
    unhandled_exception_handler,
)
from carmart.core.database import create_all_tables, get_database_url
from carmart.api import admin_sellers, admin_subscriptions, analytics, entitlements, health, listings, subscriptions
from carmart.api.dependencies import build_entitlement_gateway
from carmart.features.tiers.catalog import build_default_catalog

configure_logging(settings.ENV)
validate_env()
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("carmart")
    logger.info("Starting CarMart backend...")
    if get_database_url():
        try:
            create_all_tables()
        except Exception as e:
            logger.error(f"[startup] could not create tables: {e}")
            raise
    try:
        yield
    finally:
        logging.getLogger("carmart").info("Stopping CarMart backend...")


app = FastAPI(title="CarMart - Backend", lifespan=lifespan)

# Tier catalog is built once per process and shared through app.state
app.state.tier_catalog = build_default_catalog()
app.state.entitlement_gateway = build_entitlement_gateway(app.state.tier_catalog)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(ListingLimitReachedError, listing_limit_handler)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
app.include_router(entitlements.router, tags=["entitlements"])
app.include_router(subscriptions.router, tags=["subscriptions"])
app.include_router(admin_subscriptions.router, tags=["admin-subscriptions"])
app.include_router(admin_sellers.router, tags=["admin-sellers"])
app.include_router(listings.router, tags=["listings"])
app.include_router(analytics.router, tags=["analytics"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("carmart.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=False)
