"""
Security Middleware
Adds hardening headers to every response.
"""

from typing import Any, Callable, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..core.settings import get_settings

settings = get_settings()


class SecurityHeaders:
    """Security headers configuration"""

    @staticmethod
    def get_default_headers() -> Dict[str, str]:
        return {
            # Prevent clickjacking
            "X-Frame-Options": "DENY",
            # Prevent MIME type sniffing
            "X-Content-Type-Options": "nosniff",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Permissions-Policy": "camera=(), microphone=(), geolocation=(), payment=()",
        }


class SecurityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self.headers = SecurityHeaders.get_default_headers()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for header, value in self.headers.items():
            response.headers[header] = value
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        response.headers["Server"] = f"{settings.PROJECT_NAME}/{settings.VERSION}"
        return response
