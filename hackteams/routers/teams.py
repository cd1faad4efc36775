import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..models.user import User
from ..schemas import ApiResponse, CreateTeamCommand, UpdateTeamCommand, envelope
from ..services import teams as team_service

router = APIRouter(prefix="/teams", tags=["teams"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_team(
    command: CreateTeamCommand,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    team = team_service.create_team(
        db,
        hackathon_id=command.hackathon_id,
        creator_id=current_user.id,
        name=command.name,
        description=command.description,
        max_members=command.max_members
    )
    return envelope(team, "Team created successfully", status.HTTP_201_CREATED)


@router.get("/hackathon/{hackathon_id}")
async def get_teams_by_hackathon(
    hackathon_id: uuid.UUID,
    db: Session = Depends(get_session)
) -> ApiResponse:
    teams = team_service.get_teams_by_hackathon(db, hackathon_id)
    return envelope(teams, "Teams retrieved successfully")


@router.get("/user/my-teams")
async def get_user_teams(
    hackathon_id: Optional[uuid.UUID] = Query(None, alias="hackathonId"),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    """Teams the caller belongs to, optionally limited to one hackathon (?hackathonId=)."""
    teams = team_service.get_user_teams(db, current_user.id, hackathon_id)
    return envelope(teams, "User teams retrieved successfully")


@router.get("/{team_id}")
async def get_team(
    team_id: uuid.UUID,
    db: Session = Depends(get_session)
) -> ApiResponse:
    team = team_service.get_team_by_id(db, team_id)
    return envelope(team, "Team retrieved successfully")


@router.put("/{team_id}")
async def update_team_info(
    team_id: uuid.UUID,
    command: UpdateTeamCommand,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    team = team_service.update_team_info(
        db,
        team_id,
        current_user.id,
        name=command.name,
        description=command.description,
        max_members=command.max_members
    )
    return envelope(team, "Team updated successfully")


@router.post("/{team_id}/join")
async def join_team(
    team_id: uuid.UUID,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    team = team_service.join_team(db, team_id, current_user.id)
    return envelope(team, "Joined team successfully")


@router.delete("/{team_id}/leave")
async def leave_team(
    team_id: uuid.UUID,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    team = team_service.leave_team(db, team_id, current_user.id)
    if team is None:
        return envelope(None, "Left team; the team was deleted as it has no members left")
    return envelope(team, "Left team successfully")


@router.delete("/{team_id}/members/{user_id}")
async def remove_member(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    team = team_service.remove_member(db, team_id, current_user.id, user_id)
    return envelope(team, "Member removed successfully")


@router.put("/{team_id}/transfer/{user_id}")
async def transfer_leadership(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
) -> ApiResponse:
    team = team_service.transfer_leadership(db, team_id, current_user.id, user_id)
    return envelope(team, "Leadership transferred successfully")
