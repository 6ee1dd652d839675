from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.config import Settings, get_settings
from backend.exceptions import AppException, DispatchError, FieldError, RateLimitError, ValidationError
from backend.routers.contact import router as contact_router
from backend.routers.health import router as health_router
from backend.schemas.contact import INVALID_VALUE_MESSAGE
from backend.services.email_service import SmtpMailTransport
from backend.utils.logging import logger, setup_logging
from backend.utils.rate_limit import InMemorySlidingWindowLimiter


ROUTE_NOT_FOUND = {"message": "Route not found"}
INTERNAL_ERROR = {"success": False, "message": "Internal server error"}


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        logger.warning(
            "%s on %s %s: %s",
            exc.error_code,
            request.method,
            request.url.path,
            exc.details,
        )
        headers = exc.headers() if isinstance(exc, RateLimitError) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields: list[str] = []
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ()) if part != "body"]
            name = loc[0] if loc else "body"
            if name not in fields:
                fields.append(name)
        envelope = ValidationError([FieldError(name, INVALID_VALUE_MESSAGE) for name in fields])
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=envelope.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unmatched paths and unsupported methods both fall through to the JSON 404.
        if exc.status_code in {status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED}:
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=ROUTE_NOT_FOUND)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=INTERNAL_ERROR)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.contact_limiter = InMemorySlidingWindowLimiter(
        max_requests=settings.rate_limit_max,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.state.mail_transport = SmtpMailTransport.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(contact_router)
    app.include_router(health_router)
    _register_exception_handlers(app)

    @app.on_event("startup")
    async def startup_check() -> None:
        base_url = f"http://localhost:{settings.port}"
        logger.info("Server is running on %s", base_url)
        logger.info("Contact API: %s/api/contact", base_url)
        logger.info("Health check: %s/health", base_url)

        if not settings.mail_verify_on_startup:
            return
        if not settings.mail_configured:
            logger.warning("Email configuration error: mail server, sender or recipient is missing.")
            return
        try:
            await run_in_threadpool(app.state.mail_transport.verify)
        except DispatchError as exc:
            logger.error("Email configuration error: %s", exc.message)
        else:
            logger.info("Email server is ready to send messages")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)  # nosec B104
