"""FastAPI glue shared by every router: domain context, error rendering and request logging context."""

import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.domain import Domain
from protean.exceptions import ValidationError

from shared.errors import TeashopError
from shared.logging import add_context, clear_context, get_logger

logger = get_logger(__name__)


def _validation_response(errors: list[dict]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Validation error",
            "statusCode": 400,
            "details": errors,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map the error taxonomy and validation failures to JSON responses."""

    @app.exception_handler(TeashopError)
    async def teashop_error_handler(request: Request, exc: TeashopError):
        if exc.status_code >= 500:
            logger.error("request_failed", error=exc.code, message=exc.message)
        else:
            logger.info("request_rejected", error=exc.code, message=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        return _validation_response(
            [
                {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
                for error in exc.errors()
            ]
        )

    @app.exception_handler(ValidationError)
    async def domain_validation_error_handler(request: Request, exc: ValidationError):
        logger.info("request_rejected", error="VALIDATION_ERROR", messages=exc.messages)
        return _validation_response(
            [
                {"field": field, "message": message}
                for field, messages in exc.messages.items()
                for message in messages
            ]
        )


def register_domain_context(app: FastAPI, domain: Domain) -> None:
    """Push the protean domain context for each request."""

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with domain.domain_context():
            return await call_next(request)


def register_request_context(app: FastAPI) -> None:
    """Bind a request id, method and path into the structlog context for each request."""

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        clear_context()
        add_context(request_id=request_id, method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_context()
        response.headers["x-request-id"] = request_id
        return response
