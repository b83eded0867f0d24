from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from taskboard.models import Role


class UserCreate(BaseModel):
    email: str
    password: str
    full_name: str = Field(alias="fullName")

    model_config = ConfigDict(populate_by_name=True)


class InvitedUserCreate(UserCreate):
    role: Optional[Role] = None


class Token(BaseModel):
    access_token: str
    token_type: str
    user_id: str
    full_name: str
    role: Role


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: Role
    avatar_url: Optional[str] = None
    status: str
    created_at: Optional[str] = None


class ProvisioningResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    user: Optional[UserResponse] = None


class TokenRequest(BaseModel):
    token: str


class EmailRequest(BaseModel):
    email: str


class PasswordUpdate(BaseModel):
    token: str
    password: str


class ProfileUpdate(BaseModel):
    """Only fields sent by the client change; an empty avatar_url clears it."""
    full_name: Optional[str] = Field(default=None, alias="fullName")
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")

    model_config = ConfigDict(populate_by_name=True)
