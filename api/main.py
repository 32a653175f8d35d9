"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from database.connection import DatabaseConnection
from api.routes import imports_router
from api.services.scheduler import JobScheduler, get_scheduler
from consumer.sink import HttpObjectSink
from consumer.worker import ImportWorker
from shared.config import settings

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    redis_client = await DatabaseConnection.init_redis()
    sink = HttpObjectSink()
    app.state.scheduler = JobScheduler(ImportWorker(redis_client, sink))

    yield

    # Shutdown
    await app.state.scheduler.shutdown()
    await sink.close()
    await DatabaseConnection.close_connections()


# Create FastAPI app
app = FastAPI(
    title="Object Registry Bulk Import",
    description="Bulk import pipeline feeding objects into the material/object registry",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as {"error": ...}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


# Include routers
app.include_router(imports_router)


# Health check endpoint
@app.get("/health")
async def health_check(scheduler: JobScheduler = Depends(get_scheduler)):
    """Health check endpoint with the number of imports running in this process."""
    return {"status": "healthy", "activeJobs": scheduler.active_jobs}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Object Registry Bulk Import",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug
    )
