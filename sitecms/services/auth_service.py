"""Staff authentication: password hashing, access tokens and login."""
from datetime import timedelta

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.config import settings
from sitecms.models.user import User
from sitecms.utils.helpers import utc_now

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TOKEN_SCOPE = "cms-admin"

# Checked against for unknown emails.
_UNKNOWN_USER_HASH = pwd_context.hash("unknown-user-placeholder")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def token_lifetime_seconds() -> int:
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def create_access_token(user_id: str, role: str) -> str:
    issued = utc_now()
    claims = {
        "sub": user_id,
        "role": role,
        "scope": TOKEN_SCOPE,
        "iat": issued,
        "exp": issued + timedelta(seconds=token_lifetime_seconds()),
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and verify a staff token. Raises ``JWTError`` when invalid or expired."""
    claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if claims.get("scope", TOKEN_SCOPE) != TOKEN_SCOPE:
        raise JWTError("Token not issued for the admin surface")
    return claims


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    user = (
        await db.execute(select(User).where(User.email == email.strip().lower()))
    ).scalar_one_or_none()
    if user is None:
        verify_password(password, _UNKNOWN_USER_HASH)
        return None
    if not user.is_active or not verify_password(password, user.password_hash):
        return None
    return user


async def login(db: AsyncSession, email: str, password: str) -> tuple[User, str] | None:
    """Authenticate, stamp ``last_login_at`` and issue a token. None on bad credentials."""
    user = await authenticate_user(db, email, password)
    if user is None:
        logger.info("staff_login_failed")
        return None
    user.last_login_at = utc_now()
    await db.flush()
    logger.info("staff_login", user_id=str(user.id), role=user.role.value)
    return user, create_access_token(str(user.id), user.role.value)
