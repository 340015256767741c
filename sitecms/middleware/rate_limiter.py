"""Per-action rate limiting middleware backed by the key/value store.

Each public endpoint maps to a named action with its own quota. Requests are
counted per (action, requester IP) in a fixed window. Admin, auth, health and
docs routes are not throttled.
"""
import re

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from sitecms.dependencies import client_ip
from sitecms.exceptions import RateLimitExceeded
from sitecms.middleware.error_handler import rate_limited_response
from sitecms.services import rate_limit_service

_API = r"^/api/v1"
_CATEGORY_LOOKUPS = "stats|search|analytics"

# (method, path pattern, action); first match wins
ROUTES: list[tuple[str, re.Pattern, str]] = [
    ("POST", re.compile(_API + r"/contact/?$"), "contact"),
    ("POST", re.compile(_API + r"/faqs/[^/]+/helpful/?$"), "faq_vote"),
    ("GET", re.compile(_API + r"/faqs(/[^/]+)?/?$"), "faq_read"),
    ("GET", re.compile(_API + r"/faq-categories/?$"), "faq_read"),
    ("POST", re.compile(_API + r"/resources/[^/]+/share/?$"), "share"),
    ("GET", re.compile(_API + r"/resources/(search|tags|categories)/?$"), "resource_lookup"),
    ("GET", re.compile(_API + r"/resources(/.*)?$"), "resource_read"),
    ("GET", re.compile(_API + rf"/resource-categories/({_CATEGORY_LOOKUPS})/?$"), "resource_lookup"),
    ("GET", re.compile(_API + r"/resource-categories(/.*)?$"), "category_read"),
]


def action_for(method: str, path: str) -> str | None:
    for route_method, pattern, action in ROUTES:
        if method == route_method and pattern.match(path):
            return action
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        action = action_for(request.method, request.url.path)
        if action is None:
            return await call_next(request)

        # exceptions raised here bypass the app's exception handlers
        try:
            remaining = await rate_limit_service.hit(action, client_ip(request))
        except RateLimitExceeded as exc:
            return rate_limited_response(exc)

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rate_limit_service.limit_for(action))
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
