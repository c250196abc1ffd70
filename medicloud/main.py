"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from .auth.router import router as auth_router
from .patients.router import router as patients_router
from .auth.exceptions import StoreUnavailableError
from .patients.store import MongoPatientStore
from .database import get_store, close_client
from .config import settings
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Prepare the patient store on startup and release the database client on shutdown.
    """
    logger.info("🚀 Starting MediCloud Patient Portal API...")
    store = get_store()
    if isinstance(store, MongoPatientStore):
        try:
            store.ensure_indexes()
        except StoreUnavailableError as e:
            logger.error(f"❌ Patient store setup failed: {str(e)}")
    yield
    close_client()


# Create FastAPI application
app = FastAPI(
    title="MediCloud Patient Portal API",
    description="API for patient accounts, password and face login, and patient profiles",
    version="1.0.0",
    lifespan=lifespan,
)

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware
origins = [
    settings.frontend_url,
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(patients_router, prefix="/api/v1/patients", tags=["Patients"])

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.

    Returns:
        dict: Simple welcome message
    """
    return {"message": "Welcome to MediCloud Patient Portal API", "version": app.version}

# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    return {"status": "healthy", "store": settings.store_backend}
