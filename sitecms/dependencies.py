"""FastAPI dependency injection utilities."""
import uuid as _uuid
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.database import async_session_factory
from sitecms.models.user import User
from sitecms.services.auth_service import decode_access_token

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def _user_from_token(db: AsyncSession, token: str) -> User:
    try:
        payload = decode_access_token(token)
    except JWTError as e:
        detail = "Token expired" if "expired" in str(e).lower() else "Invalid token"
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
    user_id = payload.get("sub")
    try:
        user = await db.get(User, _uuid.UUID(user_id)) if user_id else None
    except ValueError:
        user = None
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or inactive user")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract current user from JWT access token."""
    return await _user_from_token(db, credentials.credentials)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Current user when a valid token is sent, otherwise None (public endpoints)."""
    if credentials is None:
        return None
    try:
        return await _user_from_token(db, credentials.credentials)
    except HTTPException:
        return None


def require_role(*roles: str):
    """Role-based access control dependency."""
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role.value not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user
    return Depends(dependency)


def client_ip(request: Request) -> str:
    """Requester IP. X-Forwarded-For is only honoured when the peer is a trusted proxy."""
    peer = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and peer in settings.trusted_proxies:
        return forwarded.split(",")[0].strip() or peer
    return peer


async def get_viewer_key(
    request: Request,
    user: User | None = Depends(get_optional_user),
) -> str:
    """Identity used for view-count dedup: staff id when authenticated, else IP."""
    if user is not None:
        return f"user:{user.id}"
    return f"ip:{client_ip(request)}"
