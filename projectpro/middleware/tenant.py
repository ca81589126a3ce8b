"""
Tenant Middleware

Resolves the tenant of every request and stores it on request.state.

Resolution order:
1. X-Tenant-Slug header (API clients, the web app)
2. Subdomain of the Host header: acme.projectpro.app -> "acme"
3. X-Tenant-ID header

Public endpoints (signup, login, invitation acceptance, the plan
catalogue, docs, health) skip resolution.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from projectpro.database import SessionLocal
from projectpro.models.tenant import Tenant

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

PUBLIC_PATH_PREFIXES = (
    "/docs",
    "/redoc",
    "/openapi.json",
    "/health",
    f"{API_PREFIX}/auth/signup",
    f"{API_PREFIX}/auth/login",
    f"{API_PREFIX}/invitations/lookup",
    f"{API_PREFIX}/invitations/accept",
    f"{API_PREFIX}/billing/plans",
)

NON_TENANT_SUBDOMAINS = ("www", "api", "app")


def is_public_path(path: str) -> bool:
    return path == "/" or any(path.startswith(prefix) for prefix in PUBLIC_PATH_PREFIXES)


class TenantMiddleware(BaseHTTPMiddleware):
    """
    Extract and validate the tenant for each request.

    Sets request.state.tenant and request.state.tenant_id. get_db binds
    the tenant id to the request's database session for RLS.
    """

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or is_public_path(request.url.path):
            return await call_next(request)

        tenant_identifier = extract_tenant_identifier(request)

        if not tenant_identifier:
            logger.warning(f"No tenant identifier in request: {request.url.path}")
            return JSONResponse(
                status_code=400,
                content={
                    "detail": "Tenant identifier required (subdomain or X-Tenant-Slug header)",
                    "type": "tenant_required",
                }
            )

        db = SessionLocal()
        try:
            tenant = load_tenant(db, tenant_identifier)
        finally:
            db.close()

        if not tenant:
            logger.warning(f"Tenant not found: {tenant_identifier}")
            return JSONResponse(
                status_code=404,
                content={"detail": f"Tenant not found: {tenant_identifier}", "type": "tenant_not_found"}
            )

        if not tenant.is_active:
            logger.warning(f"Inactive tenant attempted access: {tenant_identifier}")
            return JSONResponse(
                status_code=403,
                content={"detail": "Tenant account is inactive", "type": "tenant_inactive"}
            )

        request.state.tenant = tenant
        request.state.tenant_id = tenant.id
        logger.debug(f"Request for tenant: {tenant.slug} ({tenant.id})")

        return await call_next(request)


def extract_tenant_identifier(request: Request) -> Optional[str]:
    tenant_slug = request.headers.get("X-Tenant-Slug")
    if tenant_slug:
        return tenant_slug.strip().lower()

    host = request.headers.get("Host", "").split(":")[0]
    parts = host.split(".")
    if len(parts) >= 3:  # subdomain.domain.tld
        subdomain = parts[0].lower()
        if subdomain not in NON_TENANT_SUBDOMAINS:
            return subdomain

    tenant_id = request.headers.get("X-Tenant-ID")
    if tenant_id:
        return tenant_id.strip()

    return None


def load_tenant(db: Session, identifier: str) -> Optional[Tenant]:
    """Look the identifier up as slug, then subdomain, then id."""
    for column in (Tenant.slug, Tenant.subdomain, Tenant.id):
        tenant = db.query(Tenant).filter(column == identifier).first()
        if tenant:
            return tenant
    return None
