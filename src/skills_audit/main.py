"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.skills_audit.auth import (
    AdmissionRejected,
    JWKSCache,
    JWTValidator,
    RequestIdentityMiddleware,
    SupabaseIdentityProvider,
    set_identity_provider,
)
from src.skills_audit.auth.gates import admission_rejected_handler
from src.skills_audit.config import settings
from src.skills_audit.errors import ServiceError, service_error_handler, unhandled_error_handler
from src.skills_audit.features.auth import router as auth_router
from src.skills_audit.features.profile import router as profile_router
from src.skills_audit.features.skills import router as skills_router
from src.skills_audit.features.training import router as training_router
from src.skills_audit.features.users import router as users_router
from src.skills_audit.logging_config import configure_logging
from src.skills_audit.middleware import RequestLoggingMiddleware
from src.skills_audit.services.database import (
    SupabaseDocumentStore,
    create_supabase_admin_client,
    create_supabase_client,
    set_document_store,
)
from src.skills_audit.services.rate_limiter import limiter

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Global JWKS cache instance for cleanup
_jwks_cache: JWKSCache | None = None


async def _create_jwt_validator() -> JWTValidator:
    global _jwks_cache

    # Supabase JWKS endpoint is at /auth/v1/.well-known/jwks.json
    jwks_url = f"{settings.supabase_url}/auth/v1/.well-known/jwks.json"
    _jwks_cache = JWKSCache(jwks_url=jwks_url, cache_ttl=settings.jwks_cache_ttl_seconds)
    await _jwks_cache.refresh_keys()

    # Supabase JWT issuer is the auth endpoint URL
    issuer = f"{settings.supabase_url}/auth/v1"
    validator = JWTValidator(
        jwks_cache=_jwks_cache,
        issuer=issuer,
        audience=settings.jwt_audience,
        leeway=settings.jwt_leeway_seconds,
    )
    logger.info(
        "JWT validator initialized successfully",
        extra={"jwks_url": jwks_url, "cache_ttl": settings.jwks_cache_ttl_seconds, "issuer": issuer},
    )
    return validator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    # Startup
    try:
        client = await create_supabase_client()
        admin_client = await create_supabase_admin_client()

        jwt_validator = None
        if settings.use_local_jwt_verification:
            jwt_validator = await _create_jwt_validator()
        else:
            logger.info("Local JWT verification disabled, using remote validation")

        set_identity_provider(SupabaseIdentityProvider(client, admin_client, jwt_validator))
        set_document_store(SupabaseDocumentStore(admin_client))
        logger.info("Identity provider and document store initialized")
    except Exception as e:
        logger.error(
            f"Failed to initialize application services: {e}",
            exc_info=True,
            extra={"error_type": "startup_failed"},
        )
        raise

    yield

    # Shutdown
    set_identity_provider(None)
    set_document_store(None)
    if _jwks_cache is not None:
        try:
            await _jwks_cache.close()
            logger.info("JWT validator cleanup completed")
        except Exception as e:
            logger.error(f"Error during JWT validator cleanup: {e}", exc_info=True)


app = FastAPI(
    title=settings.app_name,
    description="API for employee skills and training records",
    version="0.1.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(AdmissionRejected, admission_rejected_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Middleware runs outermost-last-added: logging wraps CORS wraps identity resolution
app.add_middleware(RequestIdentityMiddleware)

origins = settings.cors_origins.split(",")
logger.info(f"Origins : {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization", settings.ajax_header_name],
)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth_router, prefix=settings.api_v1_prefix)
app.include_router(profile_router, prefix=settings.api_v1_prefix)
app.include_router(users_router, prefix=settings.api_v1_prefix)
app.include_router(skills_router, prefix=settings.api_v1_prefix)
app.include_router(training_router, prefix=settings.api_v1_prefix)


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str


@app.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint."""
    return HealthCheckResponse(status="healthy")
