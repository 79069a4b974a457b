import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from backoffice.core.db import init_db, close_db
from backoffice.api.v1.inventory import router as inventory_router
from backoffice.api.v1.bills import router as bills_router
from backoffice.api.v1.disputes import router as disputes_router
from backoffice.api.v1.sales import router as sales_router
from backoffice.api.v1.menus import router as menus_router
from backoffice.core.config import LOG_FORMAT, LOG_LEVEL, PROJECT_NAME, VERSION
from backoffice.core.exception_handlers import setup_exception_handlers

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
log = logging.getLogger("backoffice")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    log.info(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db() # Connect to DB and generate schemas
    yield
    await close_db()
    log.info(f"{PROJECT_NAME} stopped.")

app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Include routers for modular API structure
app.include_router(inventory_router, prefix="/api/v1/inventory", tags=["Inventory"])
app.include_router(bills_router, prefix="/api/v1/bills", tags=["Bills"])
app.include_router(disputes_router, prefix="/api/v1/disputes", tags=["Disputes"])
app.include_router(sales_router, prefix="/api/v1/sales", tags=["Sales"])
app.include_router(menus_router, prefix="/api/v1/menu", tags=["Menu Costing"])


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}
