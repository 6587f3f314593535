"""
FastAPI Main Application

Entry point for the finance API.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..errors import ErrorKind, FinanceError
from .routes import (
    checkout_router,
    discounts_router,
    expenses_router,
    reports_router,
    taxes_router,
)

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INACTIVE: 422,
    ErrorKind.DATE_RANGE: 422,
    ErrorKind.USAGE_LIMIT_EXCEEDED: 422,
    ErrorKind.MINIMUM_AMOUNT: 422,
    ErrorKind.APPLICABILITY: 422,
    ErrorKind.RECONCILIATION_MISMATCH: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Finance API")
    yield
    logger.info("Shutting down Finance API")


app = FastAPI(
    title="Finance API",
    description="Discounts, checkout pricing, invoice taxes and financial reports",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration
cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FinanceError)
async def finance_error_handler(request: Request, exc: FinanceError) -> JSONResponse:
    """Map error kinds to HTTP statuses."""
    status_code = STATUS_BY_KIND.get(exc.kind, 400)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Include routers
app.include_router(discounts_router, prefix="/api/finance")
app.include_router(expenses_router, prefix="/api/finance")
app.include_router(reports_router, prefix="/api/finance")
app.include_router(checkout_router, prefix="/api/finance")
app.include_router(taxes_router, prefix="/api/finance")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "finance_core.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
