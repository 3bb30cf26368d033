"""FastAPI entrypoint for the admission test service."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlmodel import Session
from starlette.middleware.sessions import SessionMiddleware

from admission.config import SECRET_KEY, SEED_DEMO_DATA
from admission.database import create_db_and_tables, engine
from admission.errors import AdmissionError, InputValidationError, RateLimitedError
from admission.logging_config import configure_logging
from admission.routers import admin as admin_router_module
from admission.routers import attempts as attempts_router_module
from admission.routers import candidates as candidates_router_module
from admission.seed import ensure_default_admin, ensure_exam_settings, seed_demo_data

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Admission Test Service")

FIELD_NAME_MAPPING = {
    "fullName": "Full name",
    "email": "Email address",
    "phone": "Phone number",
    "candidateId": "Candidate ID",
    "attempt_id": "Attempt ID",
    "questionId": "Question ID",
    "selectedAnswer": "Selected answer",
    "timeTaken": "Time taken",
    "totalQuestions": "Total questions",
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Turn pydantic errors into a field -> message map with a 400 status."""
    errors_dict = {}
    for error in exc.errors():
        field_path = error.get("loc", [])
        if not field_path:
            continue
        # Get the last element (field name) from the path
        field_name = str(field_path[-1]) if len(field_path) > 1 else str(field_path[0])
        display_name = FIELD_NAME_MAPPING.get(field_name, field_name.replace("_", " ").title())
        if error.get("type") == "missing":
            errors_dict[field_name] = f"{display_name} is required."
        else:
            errors_dict[field_name] = f"{display_name}: {error.get('msg', 'Invalid input')}"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "errors": errors_dict},
    )


@app.exception_handler(AdmissionError)
async def admission_error_handler(request: Request, exc: AdmissionError):
    """Map the service error taxonomy onto HTTP statuses."""
    content = {"detail": exc.message}
    headers = None
    if isinstance(exc, InputValidationError):
        content["errors"] = {exc.field: exc.message}
    elif isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Anything else is a server fault: log it fully, tell the client nothing specific."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred"},
    )


# Session middleware for cookie-based admin authentication
app.add_middleware(SessionMiddleware, secret_key=SECRET_KEY)

# Routers
app.include_router(candidates_router_module.router, prefix="/api", tags=["verification"])
app.include_router(attempts_router_module.router, prefix="/api", tags=["test"])
app.include_router(admin_router_module.router, prefix="/admin", tags=["admin"])


@app.get("/health")
def health():
    return {"status": "ok"}


@app.on_event("startup")
def on_startup():
    """Initialize database schema and seed default data."""
    create_db_and_tables()
    with Session(engine) as session:
        ensure_exam_settings(session)
        ensure_default_admin(session)
        if SEED_DEMO_DATA:
            seed_demo_data(session)
