from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from match_patrol.routers import gateway, profiles
from match_patrol.utils.config import CORS_ORIGINS, EXTERNAL_API_BASE, HOST, PORT
from match_patrol.utils.exceptions import MatchPatrolError

# Import logging and middleware
from match_patrol.utils.logging_config import configure_for_environment, get_logger
from match_patrol.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
    match_patrol_exception_handler,
)

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("Match Patrol API starting up...")
    logger.info(f"EXTERNAL_API_BASE: {EXTERNAL_API_BASE}")

    try:
        from match_patrol.services.db import init_indexes
        await init_indexes()
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - profile lookups may be slower without indexes")

    logger.info("Match Patrol API startup completed")

    yield

    logger.info("Match Patrol API shutting down...")


app = FastAPI(
    title="Job Matching API",
    version="1.0.0",
    description="API for job matching application with domain filtering and user profile management",
    lifespan=lifespan,
    docs_url="/api-docs",
    openapi_url="/api-docs.json",
)

# Add middleware in order (LIFO - Last In, First Out)
# Exception handler wraps logging and timing; CORS sits outside everything
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionHandlerMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(MatchPatrolError, match_patrol_exception_handler)

app.include_router(gateway.router)
app.include_router(profiles.router)

logger.info("Match Patrol API initialized successfully")


def run():
    """Console entry point"""
    import uvicorn

    logger.info(f"Backend server running on port {PORT}")
    logger.info(f"API docs: http://localhost:{PORT}/api-docs")
    uvicorn.run(app, host=HOST, port=PORT, log_config=None)
