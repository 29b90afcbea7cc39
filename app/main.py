import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.core.errors import AccessDeniedError, UnknownEntityError
from app.core.middleware import SecurityHeadersMiddleware
from app.modules.auth import routes as auth_routes
from app.modules.rbac import routes as rbac_routes
from app.modules.automation import routes as automation_routes
from app.modules.audit import routes as audit_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger("nino360")

API_PREFIX = "/api/v1"


def _log_bypass_state():
    if not settings.bypass_requested:
        return
    if settings.is_production:
        logger.warning("DEV_BYPASS/ADMIN_BYPASS is set but ignored in production")
    else:
        logger.warning("Permission bypass is ACTIVE for authenticated users in %s", settings.environment)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s starting (environment=%s)", settings.app_name, settings.environment)
    _log_bypass_state()
    yield
    logger.info("%s stopping", settings.app_name)


limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    description="Multi-tenant RBAC and workflow automation backend",
    debug=settings.debug,
    redirect_slashes=False,
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(AccessDeniedError)
async def access_denied_handler(request: Request, exc: AccessDeniedError):
    logger.info("Access denied on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(UnknownEntityError)
async def unknown_entity_handler(request: Request, exc: UnknownEntityError):
    logger.warning("Unknown entity on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail})


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

for module_routes in (auth_routes, rbac_routes, automation_routes, audit_routes):
    app.include_router(module_routes.router, prefix=API_PREFIX)


@app.get("/")
async def root():
    return {"service": settings.app_name, "environment": settings.environment}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: reports whether Supabase is configured."""
    configured = bool(settings.supabase_url and settings.supabase_key)
    return {"status": "ready" if configured else "degraded", "supabase_configured": configured}
