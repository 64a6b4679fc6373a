"""
FastAPI application entry point.

Ties together all components:
- API routes for bill generation, downloads and health
- Download directory setup
- CORS configuration for the bill form frontend
- Error handling and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fuelbill import __version__
from fuelbill.api.routes import bills, health
from fuelbill.config import get_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Ensures the download directory exists before the first request.
    """
    settings = get_settings()

    logger.info(f"Starting Fuel Bill Generator v{__version__}")
    logger.info(f"Bill form: {settings.fuel_bill_url}")
    logger.info(f"Debug mode: {settings.debug}")

    settings.download_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Download directory: {settings.download_dir}")

    yield  # Application runs here

    logger.info("Shutting down Fuel Bill Generator")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance ready to serve requests.
    """
    settings = get_settings()

    app = FastAPI(
        title="Fuel Bill Generator API",
        description=(
            "Generates a batch of fuel bills from one total amount.\n\n"
            "Splits the amount, schedules the bill dates, fills the online "
            "bill form for each bill and merges the PDFs."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health.router, prefix="/api")
    app.include_router(bills.router, prefix="/api")

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")

        # Don't expose internal errors in production
        detail = str(exc) if settings.debug else "Internal server error"

        return JSONResponse(
            status_code=500,
            content={"success": False, "error": detail},
        )

    return app


# Create the application instance
app = create_app()


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fuelbill.main:app",
        host="0.0.0.0",
        port=3000,
        reload=True,
    )
