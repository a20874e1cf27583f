# tuktuk/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from tuktuk.core.config import get_settings
from tuktuk.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from tuktuk.models import profile as _profile_models  # noqa: F401
from tuktuk.models import business as _business_models  # noqa: F401
from tuktuk.models import product as _product_models  # noqa: F401
from tuktuk.models import cart as _cart_models  # noqa: F401
from tuktuk.models import order as _order_models  # noqa: F401
from tuktuk.models import ledger as _ledger_models  # noqa: F401

# Routers
from tuktuk.routers.auth import router as auth_router
from tuktuk.routers.profiles import router as profiles_router
from tuktuk.routers.businesses import router as businesses_router
from tuktuk.routers.products import router as products_router
from tuktuk.routers.cart import router as cart_router
from tuktuk.routers.orders import router as orders_router
from tuktuk.routers.orders import vendor_router as vendor_orders_router
from tuktuk.routers.deliveries import router as deliveries_router
from tuktuk.routers.accounting import router as accounting_router
from tuktuk.routers.analytics import router as analytics_router
from tuktuk.routers.admin import router as admin_router
from tuktuk.routers.realtime import router as realtime_router
from tuktuk.routers.dashboard import router as dashboard_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error("Startup: DB connection FAILED: %s", e)
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
for router in (
    auth_router,
    profiles_router,
    businesses_router,
    products_router,
    cart_router,
    orders_router,
    vendor_orders_router,
    deliveries_router,
    accounting_router,
    analytics_router,
    admin_router,
    realtime_router,
    dashboard_router,
):
    app.include_router(router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "tuktuk-backend"}
