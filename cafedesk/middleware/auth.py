"""
Cafe Desk - JWT Authentication Middleware
Validates the Bearer token on every admin route; returns 401 on failure.
Role allow-lists are checked per endpoint (see api/deps.py).
"""
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware

from cafedesk.core.config import get_settings
from cafedesk.core.security import decode_token

settings = get_settings()

# Paths that do NOT require authentication
PUBLIC_PATHS = {
    "/",
    "/health",
    "/metrics",
    "/docs",
    "/openapi.json",
    "/auth/login",
    "/auth/employee-login",
}

# Customer-facing menu, gallery, tables and ordering
PUBLIC_PREFIXES = ("/public", "/metrics")


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": detail, "error": "authentication_error"},
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Intercepts every request. Validates JWT Bearer token.
    Attaches decoded claims to request.state.user on success.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path.rstrip("/") or "/"
        if path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return _unauthorized("Missing or invalid Authorization header. Expected: Bearer <token>")

        token = auth_header.split(" ", 1)[1]
        try:
            claims = decode_token(token)
        except JWTError as exc:
            return _unauthorized(f"Invalid or expired JWT: {str(exc)}")
        if claims.get("type") != "access":
            return _unauthorized("Wrong token type.")

        request.state.user = claims
        return await call_next(request)
