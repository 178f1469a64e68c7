"""
Secure HTTP headers middleware.

Every gateway response carries nosniff, frame denial, a referrer policy
and a content policy. Relayed upstream bodies keep their own content
type; nosniff stops browsers from reinterpreting them.

Data routes get ``default-src 'none'``. The interactive docs pages (only
mounted in debug) load Swagger/ReDoc assets from a CDN and get a policy
that allows exactly those.
"""

from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

DATA_CSP = "default-src 'none'; frame-ancestors 'none'"
DOCS_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net https://fonts.googleapis.com; "
    "font-src 'self' https://fonts.gstatic.com; "
    "img-src 'self' data: https://fastapi.tiangolo.com https://cdn.redoc.ly; "
    "worker-src 'self' blob:; "
    "frame-ancestors 'none'"
)

SECURE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-XSS-Protection": "1; mode=block",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the secure header set and a per-path content policy.

    Args:
        app: The wrapped ASGI application.
        docs_paths: Paths serving the interactive API docs.
    """

    def __init__(self, app: ASGIApp, docs_paths: Iterable[str] = ()) -> None:
        super().__init__(app)
        self._docs_paths = frozenset(docs_paths)

    def content_policy(self, path: str) -> str:
        return DOCS_CSP if path in self._docs_paths else DATA_CSP

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for header_name, header_value in SECURE_HEADERS.items():
            response.headers.setdefault(header_name, header_value)
        response.headers.setdefault("Content-Security-Policy", self.content_policy(request.url.path))
        return response
