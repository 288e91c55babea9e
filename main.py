"""
Main FastAPI application entry point for the Contact Identity Resolver
This file sets up the FastAPI application with its configuration,
middleware, error mapping and endpoints. It serves as the entry point
for both local development and AWS Lambda deployment.
"""

from datetime import datetime, timezone
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import db_manager
from schemas.identify import IdentifyRequest, IdentifyResponse, ErrorResponse
from services import IdentityResolver, InvalidRequest, StorageFailure

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

_identity_resolver = None


def get_identity_resolver() -> IdentityResolver:
    """Process-wide resolver bound to the global database manager"""
    global _identity_resolver
    if _identity_resolver is None:
        _identity_resolver = IdentityResolver(db_manager)
    return _identity_resolver


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    debug=settings.DEBUG
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, message: str, details: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, message=message, details=details).model_dump(exclude_none=True)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies"""
    logger.warning(f"Validation error for {request.url}: {exc}")

    error_details = []
    for error in exc.errors():
        error_details.append({
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    return _error(400, "ValidationError", "Request validation failed", {"errors": error_details})


@app.exception_handler(InvalidRequest)
async def invalid_request_handler(request: Request, exc: InvalidRequest):
    logger.warning(f"Invalid request for {request.url}: {exc}")
    return _error(400, "InvalidRequest", str(exc))


@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure):
    """Storage errors are logged in full by the resolver; clients get a generic message"""
    return _error(500, "StorageFailure", str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors"""
    logger.exception(f"Unexpected error for {request.url}: {exc}")
    return _error(500, "InternalServerError", "An unexpected error occurred")


@app.get("/")
async def root():
    """
    Root endpoint that returns basic API information
    """
    return {
        "message": "Contact Identity Resolver is running",
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer health checks
    """
    db_connected = await db_manager.test_connection()

    return {
        "status": "healthy" if db_connected else "degraded",
        "environment": settings.ENVIRONMENT,
        "version": settings.API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "lambda": settings.is_lambda_environment(),
        "database": {
            "status": "connected" if db_connected else "disconnected",
            "dialect": db_manager.dialect_name
        }
    }


@app.post("/identify", response_model=IdentifyResponse)
async def identify_endpoint(
    request: IdentifyRequest,
    resolver: IdentityResolver = Depends(get_identity_resolver)
):
    """
    Main identity reconciliation endpoint

    Links customer identities based on email and/or phone number.
    Returns consolidated contact information including all linked emails,
    phone numbers, and secondary contact IDs.

    **Examples:**
    - New customer: creates a primary contact
    - Existing phone + new email: creates a secondary contact
    - Email of one primary + phone of another: the younger primary becomes
      a secondary of the older one
    """
    logger.info(f"Processing identify request: email={request.email}, phone={request.phoneNumber}")

    response = await resolver.resolve(request.email, request.phoneNumber)

    logger.info(f"Resolved to primary contact {response.contact.primaryContactId}")
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1
    )
