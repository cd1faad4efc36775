import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class UserRole(str, Enum):
    USER = "USER"
    ORGANIZER = "ORGANIZER"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    full_name: str = Field(max_length=255)
    user_name: Optional[str] = Field(default=None, unique=True, index=True, max_length=255)
    password_hash: str
    avatar_url: str = Field(default="avatar")
    bio: str = Field(default="--")
    location: Optional[str] = Field(default=None, max_length=255)
    skills: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    interests: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    social_links: Dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON))
    role: UserRole = Field(default=UserRole.USER)
    is_verified: bool = Field(default=False)
    verification_code: str
    code_expires_at: datetime
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
