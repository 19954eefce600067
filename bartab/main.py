import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from bartab.core.db import init_db, close_db
from bartab.api.v1.orders import router as orders_router
from bartab.api.v1.inventory import router as inventory_router
from bartab.api.v1.audit import router as audit_router
from bartab.api.v1.snapshots import router as snapshots_router
from bartab.core.config import LOG_LEVEL, PROJECT_NAME, VERSION
from bartab.core.exception_handlers import setup_exception_handlers
from bartab.scripts.seed_data import build_seed_state
from bartab.services.session import BarSession
from bartab.services.snapshot_store import SnapshotStore

logging.basicConfig(level=LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
log = logging.getLogger("bartab")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    print(f"Starting {PROJECT_NAME} v{VERSION}...")
    await init_db() # Connect to DB and generate schemas
    session = BarSession(store=SnapshotStore())
    state = await session.load(fallback=build_seed_state)
    log.info(f"State loaded: {len(state.products)} products, {len(state.orders)} orders.")
    app.state.session = session
    yield
    await close_db()
    print(f"{PROJECT_NAME} stopped.")

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
app.include_router(inventory_router, prefix="/api/v1/inventory", tags=["Inventory & Catalog"])
app.include_router(audit_router, prefix="/api/v1/audit", tags=["Audit & Reports"])
app.include_router(snapshots_router, prefix="/api/v1/snapshots", tags=["Snapshots"])


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}
