import uuid
from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class Team(SQLModel, table=True):
    """A hackathon team. The leader is always one of its members."""
    __tablename__ = "teams"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hackathon_id: uuid.UUID = Field(index=True)
    name: str = Field(index=True, max_length=100)
    description: str = Field(default="", max_length=1000)
    leader_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    max_members: int
    member_count: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class TeamMembership(SQLModel, table=True):
    __tablename__ = "team_memberships"
    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="unique_team_user"),
        UniqueConstraint("exclusive_hackathon_id", "user_id", name="one_team_per_hackathon"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: uuid.UUID = Field(foreign_key="teams.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    # Set only while the one-team-per-hackathon rule is on; NULLs never collide
    exclusive_hackathon_id: Optional[uuid.UUID] = Field(default=None, index=True)
    joined_at: datetime = Field(default_factory=datetime.utcnow)
