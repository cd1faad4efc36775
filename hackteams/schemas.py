"""
Request commands and response views. Everything on the wire is camelCase.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_MAX_MEMBERS, MAX_TEAM_SIZE
from .models.user import UserRole


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class ApiResponse(CamelModel):
    """Success envelope returned by every endpoint."""
    status_code: int
    data: Any = None
    message: str = "Success"
    success: bool = True


def envelope(data: Any, message: str, status_code: int = 200) -> ApiResponse:
    return ApiResponse(
        status_code=status_code,
        data=jsonable_encoder(data, by_alias=True),
        message=message,
        success=status_code < 400
    )


# --- Commands -------------------------------------------------------------

class RegisterCommand(CamelModel):
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=255)
    user_name: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=6, max_length=72)


class LoginCommand(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class CreateTeamCommand(CamelModel):
    hackathon_id: uuid.UUID
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    max_members: int = Field(default=DEFAULT_MAX_MEMBERS, ge=1, le=MAX_TEAM_SIZE)


class UpdateTeamCommand(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    max_members: Optional[int] = Field(default=None, ge=1, le=MAX_TEAM_SIZE)

    @model_validator(mode="after")
    def require_one_field(self):
        if all(value is None for value in (self.name, self.description, self.max_members)):
            raise ValueError("At least one of name, description or maxMembers is required")
        return self


class UpdateProfileCommand(CamelModel):
    first_name: Optional[str] = Field(default=None, max_length=120)
    last_name: Optional[str] = Field(default=None, max_length=120)
    user_name: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    bio: Optional[str] = Field(default=None, max_length=2000)
    location: Optional[str] = Field(default=None, max_length=255)
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None
    social_links: Optional[Dict[str, str]] = None


class UpdateRoleCommand(CamelModel):
    role: UserRole


# --- Views ----------------------------------------------------------------

class UserProfileView(CamelModel):
    id: uuid.UUID
    full_name: str
    user_name: Optional[str] = None
    bio: str
    location: Optional[str] = None
    avatar_url: str
    social_links: Dict[str, str] = Field(default_factory=dict)
    skills: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)


class UserSearchView(CamelModel):
    id: uuid.UUID
    full_name: str
    user_name: Optional[str] = None
    email: str
    avatar_url: str
    bio: str


class UserRoleView(CamelModel):
    id: uuid.UUID
    full_name: str
    user_name: Optional[str] = None
    role: UserRole


class AuthTokenView(CamelModel):
    token: str
    expires_at: datetime
    user: UserProfileView


class TeamMemberView(CamelModel):
    user_id: uuid.UUID
    full_name: str
    user_name: Optional[str] = None
    avatar_url: str
    is_leader: bool
    joined_at: datetime


class TeamView(CamelModel):
    id: uuid.UUID
    hackathon_id: uuid.UUID
    name: str
    description: str
    leader_id: uuid.UUID
    max_members: int
    member_count: int
    members: List[TeamMemberView] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
