"""
GreenPantry API — JWT Authentication Middleware
Validates the Bearer access token on every protected route; returns 401 on failure.
"""
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.security import decode_token

# Paths that do NOT require authentication
PUBLIC_PATHS = {
    "/",
    "/health",
    "/metrics",
    "/docs",
    "/openapi.json",
    "/api/auth/register",
    "/api/auth/login",
    "/api/auth/refresh",
}
PUBLIC_PREFIXES = ("/metrics", "/api/payment/webhook/")
# Catalogue browsing is anonymous; writes still need a token
PUBLIC_READ_PREFIXES = ("/api/restaurants", "/api/menu")


def is_public(method: str, path: str) -> bool:
    if path in PUBLIC_PATHS or path.rstrip("/") in PUBLIC_PATHS:
        return True
    if path.startswith(PUBLIC_PREFIXES):
        return True
    return method in ("GET", "HEAD") and path.startswith(PUBLIC_READ_PREFIXES)


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Intercepts every request. Validates the JWT Bearer token.
    Attaches decoded claims to request.state.user on success.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)

        if is_public(request.method, request.url.path):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return _unauthorized("Missing or invalid Authorization header. Expected: Bearer <token>")

        token = auth_header.split(" ", 1)[1]
        try:
            claims = decode_token(token)
        except JWTError as exc:
            return _unauthorized(f"Invalid or expired JWT: {exc}")

        if claims.get("type") != "access":
            return _unauthorized("Refresh tokens cannot be used to call the API.")

        request.state.user = claims
        return await call_next(request)
