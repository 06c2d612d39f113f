"""
RetailPOS - Main Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from .config import settings
from .backend import BackendAuthError, BackendError
from .dependencies import init_dependencies, close_dependencies, get_session_manager
from .routes import (
    auth_router,
    dashboard_router,
    sales_router,
    invoices_router,
    inventory_router,
    categories_router,
    suppliers_router,
    customers_router,
    finance_router,
    reports_router,
    users_router,
    data_router,
)
from .templating import render

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting RetailPOS...")
    await init_dependencies()
    logger.info(f"Application ready (backend: {settings.backend_url})")
    yield
    logger.info("Shutting down...")
    await close_dependencies()


# Create app
app = FastAPI(
    title="RetailPOS",
    description="Point-of-sale and retail management dashboard",
    version="1.0.0",
    lifespan=lifespan
)

# Include routers
app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(sales_router)
app.include_router(invoices_router)
app.include_router(inventory_router)
app.include_router(categories_router)
app.include_router(suppliers_router)
app.include_router(customers_router)
app.include_router(finance_router)
app.include_router(reports_router)
app.include_router(users_router)
app.include_router(data_router)


@app.exception_handler(BackendAuthError)
async def backend_auth_error(request: Request, exc: BackendAuthError):
    """The user's token expired or was revoked: sign them out."""
    logger.warning(f"Backend rejected credentials on {request.url.path}: {exc}")
    if request.url.path.startswith("/api/"):
        response = JSONResponse({"detail": "Session expired"}, status_code=401)
    else:
        response = RedirectResponse(url="/login?error=Your+session+has+expired", status_code=303)
    get_session_manager().clear_session(response)
    return response


@app.exception_handler(BackendError)
async def backend_error(request: Request, exc: BackendError):
    """Any other backend failure becomes a visible error, never a retry."""
    logger.error(f"Backend error on {request.url.path}: {exc}")
    if request.url.path.startswith("/api/"):
        return JSONResponse({"detail": exc.message}, status_code=502)
    return render(request, "error.html", {"message": exc.message, "hint": exc.hint}, status_code=502)


@app.get("/health")
async def health():
    """Health check endpoint (no auth required)."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "retailpos.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
