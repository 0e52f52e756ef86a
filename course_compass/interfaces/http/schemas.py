from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator

class RegisterReq(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    avatar_url: HttpUrl | None = None

    @field_validator("avatar_url", mode="before")
    @classmethod
    def empty_avatar_is_none(cls, v):
        return v or None

class LoginReq(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)

class UserResp(BaseModel):
    id: int
    hash_id: str
    username: str
    email: EmailStr
    role: str
    avatar_url: str | None = None
    created_at: datetime | None = None

class IdentityResp(BaseModel):
    id: int
    hash_id: str
    username: str
    role: str
    avatar_url: str | None = None

class AuthResp(BaseModel):
    success: bool
    user: UserResp | None = None
    error: str | None = None
    redirect_to: str | None = None

class PageResp(BaseModel):
    page: str
    role: str | None = None
    user: UserResp | None = None
