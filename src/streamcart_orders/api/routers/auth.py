"""
streamcart_orders.api.routers.auth

Public registration and login endpoints.

Responsibilities:
- Register a user and hand back a fresh bearer token.
- Exchange username/password for a bearer token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from starlette.status import HTTP_201_CREATED

from streamcart_orders.api.deps import token_service, user_directory
from streamcart_orders.auth.jwt import TokenService
from streamcart_orders.services.user_directory import UserDirectory

router = APIRouter(prefix="/auth", tags=["auth"])


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(_ApiModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)

    @field_validator("username", "first_name", "last_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class LoginRequest(_ApiModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AuthResponse(_ApiModel):
    token: str
    username: str
    email: str
    message: str


@router.post("/register", response_model=AuthResponse, status_code=HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    directory: UserDirectory = Depends(user_directory),
    tokens: TokenService = Depends(token_service),
) -> AuthResponse:
    user = await directory.register(
        username=body.username,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return AuthResponse(
        token=tokens.issue(user.username),
        username=user.username,
        email=user.email,
        message="User registered successfully",
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    directory: UserDirectory = Depends(user_directory),
    tokens: TokenService = Depends(token_service),
) -> AuthResponse:
    user = await directory.authenticate(username=body.username, password=body.password)
    return AuthResponse(
        token=tokens.issue(user.username),
        username=user.username,
        email=user.email,
        message="Login successful",
    )
