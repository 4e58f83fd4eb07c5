import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ledger_core.api.v1 import api_router
from ledger_core.core.config import get_settings
from ledger_core.core.logging import configure_logging

settings = get_settings()

app = FastAPI(
    title=settings.project_name,
    openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": settings.project_name,
        "docs": "/docs",
    }


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.on_event("startup")
async def startup_event():
    """Configure logging and, for local runs, create the ledger tables."""
    configure_logging(settings.log_level, json_logs=settings.json_logs)
    logging.getLogger(__name__).info(f"Starting {settings.project_name}")

    if settings.create_tables_on_startup:
        from ledger_core.models import Base
        from ledger_core.db.session import engine
        Base.metadata.create_all(bind=engine)
