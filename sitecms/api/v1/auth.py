"""Staff auth endpoints backing the admin surface."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.dependencies import get_current_user, get_db
from sitecms.models.user import User
from sitecms.schemas.auth import LoginRequest, StaffProfile, TokenResponse
from sitecms.schemas.common import APIResponse
from sitecms.services import auth_service

router = APIRouter()


@router.post("/login", response_model=APIResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await auth_service.login(db, body.email, body.password)
    if result is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    user, access_token = result
    token = TokenResponse(
        access_token=access_token,
        expires_in=auth_service.token_lifetime_seconds(),
        user=StaffProfile.model_validate(user),
    )
    return APIResponse(data=token.model_dump(mode="json"))


@router.get("/me", response_model=APIResponse)
async def me(current_user: User = Depends(get_current_user)):
    return APIResponse(data=StaffProfile.model_validate(current_user).model_dump(mode="json"))
