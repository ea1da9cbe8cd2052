"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from estatecalc.api.deps import init_db
from estatecalc.api.routes import calculator
from estatecalc.config import settings
from estatecalc.exceptions import (
    ComputationError,
    DocumentNotFound,
    PersistenceFailure,
    ValidationError,
)
from estatecalc.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    await init_db()
    yield


app = FastAPI(
    title="Estate Calc",
    description="Mortgage and installment-plan calculators for property listings",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(calculator.router)


def _error(status_code: int, message: str, field: str | None = None) -> JSONResponse:
    content = {"success": False, "error": message}
    if field:
        content["field"] = field
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(400, exc.message, exc.field)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    error_type = first.get("type", "")
    # JSON decode errors carry a character offset, not a field name
    if error_type == "json_invalid":
        return _error(400, "Invalid request body")

    loc = [p for p in first.get("loc", ()) if p != "body"]
    field = loc[-1] if loc and isinstance(loc[-1], str) else None
    if field is None:
        return _error(400, "Invalid request body")
    if error_type.startswith("bool_"):
        return _error(400, f"{field} must be true or false", field)
    return _error(400, f"{field} must be a number", field)


@app.exception_handler(ComputationError)
async def computation_error_handler(request: Request, exc: ComputationError):
    logger.error("Computation failed: %s", exc)
    return _error(422, str(exc), exc.field)


@app.exception_handler(DocumentNotFound)
async def not_found_handler(request: Request, exc: DocumentNotFound):
    return _error(404, "Calculation not found")


@app.exception_handler(PersistenceFailure)
async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
    logger.error("Document store failure: %s", exc)
    return _error(500, "Internal server error")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


@app.get("/health")
async def health():
    return {"status": "ok"}
