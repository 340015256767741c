"""CORS configuration for the public site and the admin panel."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sitecms.config import settings


def allowed_origins() -> list[str]:
    origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]
    if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
        origins.append(settings.FRONTEND_URL)
    return origins


def setup_cors(app: FastAPI) -> None:
    """Register CORS middleware. Rate limit headers are exposed to browsers."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
    )
