import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from avatar_service.config import config

logger = logging.getLogger(__name__)

DOCS_PATHS = {"/docs", "/docs/oauth2-redirect", "/redoc", "/openapi.json"}


class RestrictDocsAccessMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else None

        if request.url.path in DOCS_PATHS and client_ip not in config.app.allowed_ips:
            logger.warning(f"Access denied for IP: {client_ip} to {request.url.path}")
            return JSONResponse(status_code=403, content={"detail": "Access to documentation is restricted"})

        return await call_next(request)
