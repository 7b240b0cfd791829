"""FastAPI application entry point."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from token_tax.config import settings
from token_tax.api.routes import records
from token_tax.utils.logging_setup import configure_logging

configure_logging(settings.log_level)

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="TokenTax CSV record validation, normalization and export API"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(records.router, prefix=f"{settings.api_prefix}/records", tags=["records"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "TokenTax Records API",
        "version": settings.api_version,
        "docs": "/docs"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
