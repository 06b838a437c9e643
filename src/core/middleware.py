"""Cross-cutting HTTP middleware.

Registered in app.py; the request passes through them in this order:
request logging, security headers, rate limiting, CORS, authentication
(identity attachment) and the response cache.
"""

import logging
import time
from typing import Callable, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from config import API_PREFIX, CACHE_TTL_SECONDS
from core.cache import ResponseCache, build_cache_key, get_response_cache
from core.exceptions import InvalidTokenError
from core.rate_limit import RateLimiter, rate_limiter
from core.security import decode_access_token, parse_bearer_header

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; base-uri 'self'; font-src 'self' https: data:; "
    "form-action 'self'; frame-ancestors 'self'; img-src 'self' data:; "
    "object-src 'none'; script-src 'self'; style-src 'self' https: 'unsafe-inline'"
)

# The built-in docs pages load their assets from a CDN
_CSP_EXEMPT_PREFIXES = ("/docs", "/redoc", "/openapi.json")

RATE_LIMIT_MESSAGE = "Too many requests, try again later"


def client_address(request: Request) -> str:
    if request.client is None:
        return "unknown"
    return request.client.host


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        logger.info(
            ">>> %s %s from %s",
            request.method,
            request.url.path,
            client_address(request),
        )
        response = await call_next(request)
        logger.info(
            "<<< %s %s %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers to every response that does not set them itself."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if not request.url.path.startswith(_CSP_EXEMPT_PREFIXES):
            response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed the request limit with 429."""

    def __init__(self, app: ASGIApp, limiter: Optional[RateLimiter] = None):
        super().__init__(app)
        self.limiter = limiter or rate_limiter

    async def dispatch(self, request: Request, call_next):
        address = client_address(request)
        allowed, retry_after = self.limiter.hit(address)
        if not allowed:
            logger.warning("Rate limit exceeded for %s", address)
            return JSONResponse(
                status_code=429,
                content={"error": RATE_LIMIT_MESSAGE},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Attach the identity asserted by the bearer token to request.state.

    The request is never rejected here; routes that need an identity ask for
    it through core.dependencies.get_current_identity.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.identity = None
        request.state.auth_error = None

        token = parse_bearer_header(request.headers.get("Authorization"))
        if token is not None:
            try:
                request.state.identity = decode_access_token(token)
            except InvalidTokenError as e:
                logger.info("Rejected bearer token on %s: %s", request.url.path, e)
                request.state.auth_error = "Invalid or expired token"
        return await call_next(request)


class ResponseCacheMiddleware(BaseHTTPMiddleware):
    """Read-through cache for authenticated GET requests.

    Hits are served verbatim. On a miss the response body is captured and
    stored when the status is 200. Cache failures fall through to the route.
    Auth endpoints are never cached.
    """

    def __init__(
        self,
        app: ASGIApp,
        cache_getter: Callable[[], ResponseCache] = get_response_cache,
        ttl_seconds: int = CACHE_TTL_SECONDS,
        path_prefix: str = API_PREFIX,
        exclude_prefixes: Tuple[str, ...] = (f"{API_PREFIX}/auth",),
    ):
        super().__init__(app)
        self.cache_getter = cache_getter
        self.ttl_seconds = ttl_seconds
        self.path_prefix = path_prefix
        self.exclude_prefixes = exclude_prefixes

    async def dispatch(self, request: Request, call_next):
        identity = getattr(request.state, "identity", None)
        if (
            request.method != "GET"
            or identity is None
            or not request.url.path.startswith(self.path_prefix)
            or request.url.path.startswith(self.exclude_prefixes)
        ):
            return await call_next(request)

        cache = self.cache_getter()
        if not cache.is_available():
            return await call_next(request)

        key = build_cache_key(
            identity.user_id, request.method, request.url.path, request.url.query
        )
        cached = await run_in_threadpool(cache.get, key)
        if cached is not None:
            return Response(
                content=cached,
                media_type="application/json",
                headers={"X-Cache": "HIT"},
            )

        response = await call_next(request)
        if response.status_code != 200:
            return response

        body = b"".join([chunk async for chunk in response.body_iterator])
        await run_in_threadpool(cache.set, key, body, self.ttl_seconds)
        headers = dict(response.headers)
        headers["X-Cache"] = "MISS"
        return Response(
            content=body,
            status_code=response.status_code,
            headers=headers,
            media_type=response.media_type,
        )
