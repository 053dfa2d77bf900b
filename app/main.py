import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, status
from app.core.db import init_db, close_db, check_db
from app.api.v1.orders import router as orders_router
from app.api.v1.shifts import router as shifts_router
from app.api.v1.supplies import router as supplies_router
from app.api.v1.write_offs import router as write_offs_router
from app.api.v1.inventory import router as inventory_router
from app.api.v1.reports import router as reports_router
from app.core.config import LOG_LEVEL, PROJECT_NAME, VERSION
from app.core.exception_handlers import setup_exception_handlers

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("main")


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
    # Configure API documentation and paths
    docs_url="/docs",
    redoc_url="/redoc"
)

# Include routers for modular API structure
app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(shifts_router, prefix="/api/v1/shifts", tags=["Shifts"])
app.include_router(supplies_router, prefix="/api/v1/supplies", tags=["Supplies"])
app.include_router(write_offs_router, prefix="/api/v1/write-offs", tags=["Write-offs"])
app.include_router(inventory_router, prefix="/api/v1/inventory", tags=["Inventory"])
app.include_router(reports_router, prefix="/api/v1/reports", tags=["Reports"])


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Health check with database connectivity."""
    database = await check_db()
    return {
        "status": "ok" if database == "connected" else "degraded",
        "app_name": PROJECT_NAME,
        "version": VERSION,
        "database": database,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
