"""Request metrics middleware and the ``/metrics`` text exposition endpoint.

Tracks request totals per API area and status class, in-flight requests,
latency quantiles and rate-limited responses.
"""
import logging
import re
import time
from collections import defaultdict, deque

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 0.5
_AREA = re.compile(r"^/api/v1/(admin/)?([a-z-]+)")

_counters: dict[str, float] = defaultdict(float)
_by_area: dict[tuple[str, str], int] = defaultdict(int)
_durations: deque[float] = deque(maxlen=10_000)


def area_of(path: str) -> str:
    match = _AREA.match(path)
    if match is None:
        return "other"
    admin, name = match.groups()
    return f"admin/{name}" if admin else name


def reset_metrics() -> None:
    _counters.clear()
    _by_area.clear()
    _durations.clear()


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        area = area_of(request.url.path)
        _counters["http_requests_active"] += 1
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
        finally:
            duration = time.perf_counter() - start
            _counters["http_requests_active"] -= 1
            _counters["http_requests_total"] += 1
            if status == 429:
                _counters["http_requests_rate_limited_total"] += 1
            _by_area[(area, f"{status // 100}xx")] += 1
            _durations.append(duration)
            if duration > SLOW_REQUEST_SECONDS:
                logger.warning("slow_request", extra={
                    "method": request.method, "path": request.url.path,
                    "duration_ms": round(duration * 1000, 2), "status": status,
                })
        return response


def _percentile(data, p: float) -> float:
    if not data:
        return 0.0
    ordered = sorted(data)
    return ordered[min(int(len(ordered) * p / 100), len(ordered) - 1)]


def render_metrics() -> str:
    durations = list(_durations)
    lines = [
        "# HELP http_requests_total Total HTTP requests",
        "# TYPE http_requests_total counter",
        f'http_requests_total {_counters["http_requests_total"]:.0f}',
        "# HELP http_requests_active In-flight HTTP requests",
        "# TYPE http_requests_active gauge",
        f'http_requests_active {_counters["http_requests_active"]:.0f}',
        "# HELP http_requests_rate_limited_total Requests rejected by rate limits",
        "# TYPE http_requests_rate_limited_total counter",
        f'http_requests_rate_limited_total {_counters["http_requests_rate_limited_total"]:.0f}',
        "# HELP http_requests_by_area HTTP requests by API area and status class",
        "# TYPE http_requests_by_area counter",
    ]
    for (area, status), count in sorted(_by_area.items()):
        lines.append(f'http_requests_by_area{{area="{area}",status="{status}"}} {count}')
    lines += [
        "# HELP http_request_duration_seconds Request duration",
        "# TYPE http_request_duration_seconds summary",
        *(
            f'http_request_duration_seconds{{quantile="{q / 100}"}} {_percentile(durations, q):.6f}'
            for q in (50, 90, 95, 99)
        ),
        f"http_request_duration_seconds_count {len(durations)}",
    ]
    return "\n".join(lines) + "\n"


def setup_metrics(app: FastAPI) -> None:
    @app.get("/metrics", tags=["monitoring"], include_in_schema=False)
    async def metrics_endpoint():
        return PlainTextResponse(render_metrics(), media_type="text/plain")
