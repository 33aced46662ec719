"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.api.http.middleware.limiter import (
    close_rate_limiter,
    configure_rate_limiter,
)
from src.storefront.api.http.routers import (
    attributes,
    cart,
    categories,
    coupons,
    favorites,
    health,
    media,
    orders,
    payments,
    products,
    users,
)
from src.storefront.api.utils.app_startup import configure_logging
from src.storefront.core.errors import DomainError
from src.storefront.core.services import (
    ClerkClient,
    CloudinaryService,
    DbSessionService,
    JWKSCacheInMemory,
    JwksService,
    JwtVerificationService,
    NewsletterService,
    PayPalService,
    RevalidationService,
    StripeService,
)
from src.storefront.runtime.context import get_config

# Initialize logging
configure_logging()


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        response.headers.setdefault(
            "Permissions-Policy", "geolocation=(), microphone=()"
        )
        # HSTS only in prod
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


# --- FastAPI app setup ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    try:
        yield
    finally:
        await shutdown()


app = FastAPI(
    title="Storefront API",
    lifespan=lifespan,
    docs_url=None if get_config().app.environment == "production" else "/docs",
    redoc_url=None if get_config().app.environment == "production" else "/redoc",
)

app.add_middleware(SecurityHeadersMiddleware)

# expose startup for tests
__all__ = ["app", "startup", "shutdown"]

# --- CORS configuration ---
if get_config().app.environment == "production" and (
    "*" in get_config().app.cors.origins
):
    raise RuntimeError(
        "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().app.cors.origins,
    allow_credentials=get_config().app.cors.allow_credentials,
    allow_methods=get_config().app.cors.allow_methods,
    allow_headers=get_config().app.cors.allow_headers,
)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _error_response(
    request: Request, status_code: int, content: dict, headers: dict | None = None
) -> JSONResponse:
    request_id = _request_id(request)
    merged = dict(headers or {})
    if request_id:
        merged["X-Request-ID"] = request_id
    return JSONResponse(
        status_code=status_code,
        content={**content, "request_id": request_id},
        headers=merged,
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may hold exception instances that JSON cannot encode
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


# --- Exception handlers ---
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.bind(status_code=exc.status_code, error_type=type(exc).__name__).warning(
        "request.domain_error: {}", exc.message
    )
    return _error_response(
        request, exc.status_code, {"detail": exc.message, **exc.extra}
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return _error_response(
        request,
        exc.status_code,
        {"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.bind(status_code=422, error_type=type(exc).__name__).info(
        "request.validation_error"
    )
    return _error_response(request, 422, {"detail": jsonable_errors(exc)})


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    # Correlation / tracing
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    # Prefer proxy headers if you run behind a reverse proxy (set up trust chain!)
    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
        "http_version": request.scope.get("http_version", "1.1"),
        "scheme": request.url.scheme,
        "host": request.headers.get("host", request.url.hostname or "-"),
    }

    start = time.perf_counter()

    # Everything that logs within this block inherits base_ctx
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")

            # Attach correlation id
            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )


# --- Router registration ---
app.include_router(health.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(attributes.router)
app.include_router(orders.router)
app.include_router(coupons.router)
app.include_router(favorites.router)
app.include_router(cart.router)
app.include_router(payments.router)
app.include_router(media.router)


def build_dependencies() -> ApplicationDependencies:
    config = get_config()
    jwks_cache = JWKSCacheInMemory()
    jwks_service = JwksService(jwks_cache)
    return ApplicationDependencies(
        jwks_cache=jwks_cache,
        jwks_service=jwks_service,
        jwt_verify_service=JwtVerificationService(jwks_service),
        database_service=DbSessionService(),
        clerk_client=ClerkClient(config.clerk),
        cloudinary_service=CloudinaryService(config.cloudinary),
        stripe_service=StripeService(config.stripe, config.app.public_url),
        paypal_service=PayPalService(config.paypal, config.app.public_url),
        newsletter_service=NewsletterService(config.resend, config.app.environment),
        revalidation_service=RevalidationService(config.frontend),
    )


# --- Lifecycle hooks ---
async def startup() -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)

    app.state.app_dependencies = build_dependencies()

    # Verify the JWKS endpoint so auth failures surface early
    if config.clerk.jwks_uri:
        jwks_service: JwksService = app.state.app_dependencies.jwks_service
        try:
            await jwks_service.fetch_jwks(config.clerk.jwks_uri)
        except Exception as exc:
            logger.error("Failed to fetch JWKS from {}: {}", config.clerk.jwks_uri, exc)
            if config.app.environment == "production":
                raise RuntimeError(f"JWKS readiness check failed: {exc}") from exc

    for name, configured in (
        ("stripe", app.state.app_dependencies.stripe_service.is_configured),
        ("paypal", app.state.app_dependencies.paypal_service.is_configured),
        ("cloudinary", app.state.app_dependencies.cloudinary_service.is_configured),
        ("resend", app.state.app_dependencies.newsletter_service.is_configured),
    ):
        if not configured:
            logger.warning("{} is not configured; its endpoints will return 500", name)

    if config.rate_limiter.enabled:
        configure_rate_limiter()


async def shutdown() -> None:
    logger.info("Shutting down application")
    await close_rate_limiter()
    app_dependencies: ApplicationDependencies | None = getattr(
        app.state, "app_dependencies", None
    )
    if app_dependencies is not None:
        app_dependencies.database_service.dispose()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,  # We handle access logging in middleware
    )
