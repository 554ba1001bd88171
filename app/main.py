"""
Main application entry point.
"""

import logging
import os

from fastapi import FastAPI

from app.api.v1.book_search_endpoints import router as book_search_router
from app.api.v1.library_endpoints import router as library_router
from app.api.v1.statistics_endpoints import router as statistics_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="Reading Tracker API",
    description="Track the books you read: library, reading sessions and statistics.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Include API routers
app.include_router(library_router, prefix="/api/v1", tags=["library"])
app.include_router(book_search_router, prefix="/api/v1", tags=["books"])
app.include_router(statistics_router, prefix="/api/v1", tags=["statistics"])


@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Reading Tracker API",
        "docs": "/docs",
        "health": "/api/v1/health"
    }


@app.get("/api/v1/health", tags=["health"])
def health_check() -> dict:
    """Liveness check."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
