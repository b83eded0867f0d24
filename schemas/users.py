from typing import List

from pydantic import BaseModel

from schemas.auth import UserResponse
from taskboard.models import Role


class RoleUpdate(BaseModel):
    role: Role


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int
