from .user import User, UserRole
from .session import Session
from .team import Team, TeamMembership

__all__ = [
    "User",
    "UserRole",
    "Session",
    "Team",
    "TeamMembership",
]
