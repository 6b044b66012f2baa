from fastapi import APIRouter, Depends, HTTPException, status

from carbon_market.config import get_settings
from carbon_market.dependencies import (
    create_access_token, create_refresh_token,
    decode_token, get_current_user, get_store, token_user_id,
)
from carbon_market.schemas import (
    LoginRequest, RefreshRequest, SignupRequest, TokenResponse, UserRecord, UserResponse,
)
from carbon_market.services import users as user_service
from carbon_market.storage import Store

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


def _issue_tokens(user: UserRecord) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.role.value),
        refresh_token=create_refresh_token(user.id),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(req: SignupRequest, store: Store = Depends(get_store)):
    user = await user_service.register_user(
        store,
        username=req.username,
        password=req.password,
        name=req.name,
        role=req.role,
        organization_id=req.organization_id,
    )
    return _issue_tokens(user)


@router.post("/login", response_model=TokenResponse)
async def login(req: LoginRequest, store: Store = Depends(get_store)):
    user = await user_service.authenticate(store, req.username, req.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(req: RefreshRequest, store: Store = Depends(get_store)):
    payload = decode_token(req.refresh_token)
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=400, detail="Invalid token type")

    user = await user_service.get_user(store, token_user_id(payload))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return _issue_tokens(user)


@router.get("/me", response_model=UserResponse)
async def get_me(user: UserRecord = Depends(get_current_user)):
    return user
