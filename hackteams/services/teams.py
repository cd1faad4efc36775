"""
Team lifecycle and membership rules.

Operations on an existing team lock its row (``SELECT ... FOR UPDATE``; SQLite
opens every transaction with BEGIN IMMEDIATE instead), run their checks and
writes, and commit once. Seats are claimed with a conditional UPDATE on
``teams.member_count`` and memberships carry a unique hackathon slot, so the
capacity and one-team-per-hackathon rules also hold at the row level.
"""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .. import config
from ..errors import (
    CapacityError,
    ConflictError,
    ForbiddenError,
    LeadershipRequiredError,
    NotFoundError,
    ValidationError,
)
from ..models.team import Team, TeamMembership
from ..models.user import User
from ..schemas import TeamMemberView, TeamView

logger = logging.getLogger(__name__)


def _lock_team(db: Session, team_id: uuid.UUID) -> Team:
    statement = select(Team).where(Team.id == team_id).with_for_update()
    team = db.exec(statement).first()
    if not team:
        raise NotFoundError("Team not found")
    return team


def _get_membership(db: Session, team_id: uuid.UUID, user_id: uuid.UUID) -> Optional[TeamMembership]:
    return db.exec(
        select(TeamMembership)
        .where(
            TeamMembership.team_id == team_id,
            TeamMembership.user_id == user_id
        )
    ).first()


def _claim_seat(db: Session, team_id: uuid.UUID) -> bool:
    """Bump member_count only while the team has room. False when it is full."""
    statement = (
        update(Team)
        .where(Team.id == team_id, Team.member_count < Team.max_members)
        .values(member_count=Team.member_count + 1, updated_at=datetime.utcnow())
    )
    return db.connection().execute(statement).rowcount == 1


def _new_membership(team: Team, user_id: uuid.UUID) -> TeamMembership:
    exclusive = team.hackathon_id if config.ONE_TEAM_PER_HACKATHON else None
    return TeamMembership(team_id=team.id, user_id=user_id, exclusive_hackathon_id=exclusive)


def _membership_conflict_message() -> str:
    if config.ONE_TEAM_PER_HACKATHON:
        return "You are already in a team for this hackathon"
    return "Already a member of this team"


def _team_in_hackathon(db: Session, user_id: uuid.UUID, hackathon_id: uuid.UUID) -> Optional[Team]:
    return db.exec(
        select(Team)
        .join(TeamMembership, TeamMembership.team_id == Team.id)
        .where(
            TeamMembership.user_id == user_id,
            Team.hackathon_id == hackathon_id
        )
    ).first()


def _check_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    name = name.strip()
    if not name:
        raise ValidationError("Team name is required")
    return name


def _check_max_members(max_members: int) -> None:
    if max_members < 1:
        raise ValidationError("maxMembers must be at least 1")
    if max_members > config.MAX_TEAM_SIZE:
        raise ValidationError(f"maxMembers cannot exceed {config.MAX_TEAM_SIZE}")


def _commit(db: Session, conflict_message: str) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(conflict_message)


def build_team_views(db: Session, teams: List[Team]) -> List[TeamView]:
    """Attach rosters to teams with a single membership query."""
    if not teams:
        return []

    team_ids = [team.id for team in teams]
    rows = db.exec(
        select(TeamMembership, User)
        .join(User, User.id == TeamMembership.user_id)
        .where(TeamMembership.team_id.in_(team_ids))
        .order_by(TeamMembership.joined_at, TeamMembership.id)
    ).all()

    leaders = {team.id: team.leader_id for team in teams}
    rosters: Dict[uuid.UUID, List[TeamMemberView]] = {team_id: [] for team_id in team_ids}
    for membership, user in rows:
        rosters[membership.team_id].append(
            TeamMemberView(
                user_id=user.id,
                full_name=user.full_name,
                user_name=user.user_name,
                avatar_url=user.avatar_url,
                is_leader=user.id == leaders[membership.team_id],
                joined_at=membership.joined_at
            )
        )

    return [
        TeamView(
            id=team.id,
            hackathon_id=team.hackathon_id,
            name=team.name,
            description=team.description,
            leader_id=team.leader_id,
            max_members=team.max_members,
            member_count=len(rosters[team.id]),
            members=rosters[team.id],
            created_at=team.created_at,
            updated_at=team.updated_at
        )
        for team in teams
    ]


def build_team_view(db: Session, team: Team) -> TeamView:
    return build_team_views(db, [team])[0]


def create_team(
    db: Session,
    hackathon_id: uuid.UUID,
    creator_id: uuid.UUID,
    name: str,
    description: str = "",
    max_members: Optional[int] = None
) -> TeamView:
    """Create a team led by its creator, who also becomes its first member."""
    name = _check_name(name)
    if max_members is None:
        max_members = config.DEFAULT_MAX_MEMBERS
    _check_max_members(max_members)

    if not db.get(User, creator_id):
        raise NotFoundError("User not found")

    if config.ONE_TEAM_PER_HACKATHON:
        existing = _team_in_hackathon(db, creator_id, hackathon_id)
        if existing:
            raise ConflictError("You are already in a team for this hackathon")

    team = Team(
        hackathon_id=hackathon_id,
        name=name,
        description=description or "",
        leader_id=creator_id,
        max_members=max_members,
        member_count=1
    )
    db.add(team)
    db.flush()
    db.add(_new_membership(team, creator_id))
    _commit(db, _membership_conflict_message())
    db.refresh(team)

    logger.info("Team %s created by %s for hackathon %s", team.id, creator_id, hackathon_id)
    return build_team_view(db, team)


def join_team(db: Session, team_id: uuid.UUID, user_id: uuid.UUID) -> TeamView:
    team = _lock_team(db, team_id)

    if _get_membership(db, team_id, user_id):
        raise ConflictError("Already a member of this team")

    if config.ONE_TEAM_PER_HACKATHON:
        existing = _team_in_hackathon(db, user_id, team.hackathon_id)
        if existing:
            raise ConflictError("You are already in a team for this hackathon")

    if not _claim_seat(db, team_id):
        db.rollback()
        raise CapacityError("Team is full")

    db.add(_new_membership(team, user_id))
    _commit(db, _membership_conflict_message())
    db.refresh(team)

    logger.info("User %s joined team %s", user_id, team_id)
    return build_team_view(db, team)


def leave_team(
    db: Session,
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    delete_if_empty: Optional[bool] = None
) -> Optional[TeamView]:
    """
    Remove the caller's membership. Returns the updated team, or None when the
    team was deleted because its last member left.

    A leader with other members still on the team must transfer leadership
    first. A leader who is the only member either deletes the team or, when
    ``delete_if_empty`` is off, is refused.
    """
    if delete_if_empty is None:
        delete_if_empty = config.DELETE_EMPTY_TEAMS

    team = _lock_team(db, team_id)
    membership = _get_membership(db, team_id, user_id)
    if not membership:
        raise NotFoundError("You are not a member of this team")

    if team.leader_id == user_id:
        if team.member_count > 1:
            raise LeadershipRequiredError(
                "Transfer leadership to another member before leaving the team"
            )
        if not delete_if_empty:
            raise LeadershipRequiredError(
                "The last member cannot leave a team while team deletion is disabled"
            )
        db.delete(membership)
        db.flush()
        db.delete(team)
        db.commit()
        logger.info("Team %s deleted after its last member %s left", team_id, user_id)
        return None

    db.delete(membership)
    team.member_count -= 1
    team.updated_at = datetime.utcnow()
    db.add(team)
    db.commit()
    db.refresh(team)

    logger.info("User %s left team %s", user_id, team_id)
    return build_team_view(db, team)


def remove_member(
    db: Session,
    team_id: uuid.UUID,
    actor_id: uuid.UUID,
    target_user_id: uuid.UUID
) -> TeamView:
    team = _lock_team(db, team_id)

    if team.leader_id != actor_id:
        raise ForbiddenError("Only the team leader can remove members")

    if target_user_id == team.leader_id:
        raise ForbiddenError("The team leader cannot be removed; transfer leadership first")

    membership = _get_membership(db, team_id, target_user_id)
    if not membership:
        raise NotFoundError("User is not a member of this team")

    db.delete(membership)
    team.member_count -= 1
    team.updated_at = datetime.utcnow()
    db.add(team)
    db.commit()
    db.refresh(team)

    logger.info("User %s removed from team %s by %s", target_user_id, team_id, actor_id)
    return build_team_view(db, team)


def transfer_leadership(
    db: Session,
    team_id: uuid.UUID,
    actor_id: uuid.UUID,
    new_leader_id: uuid.UUID
) -> TeamView:
    team = _lock_team(db, team_id)

    if team.leader_id != actor_id:
        raise ForbiddenError("Only the team leader can transfer leadership")

    if new_leader_id == team.leader_id:
        raise ValidationError("You are already the team leader")

    if not _get_membership(db, team_id, new_leader_id):
        raise NotFoundError("New leader must be a member of this team")

    team.leader_id = new_leader_id
    team.updated_at = datetime.utcnow()
    db.add(team)
    db.commit()
    db.refresh(team)

    logger.info("Leadership of team %s moved from %s to %s", team_id, actor_id, new_leader_id)
    return build_team_view(db, team)


def update_team_info(
    db: Session,
    team_id: uuid.UUID,
    actor_id: uuid.UUID,
    name: Optional[str] = None,
    description: Optional[str] = None,
    max_members: Optional[int] = None
) -> TeamView:
    """Partial update of name, description and capacity. Leader only."""
    team = _lock_team(db, team_id)

    if team.leader_id != actor_id:
        raise ForbiddenError("Only the team leader can update the team")

    name = _check_name(name)
    if max_members is not None:
        _check_max_members(max_members)
        current = team.member_count
        if max_members < current:
            raise CapacityError(
                f"maxMembers cannot be lower than the current member count ({current})"
            )
        team.max_members = max_members

    if name is not None:
        team.name = name
    if description is not None:
        team.description = description

    team.updated_at = datetime.utcnow()
    db.add(team)
    db.commit()
    db.refresh(team)

    logger.info("Team %s updated by %s", team_id, actor_id)
    return build_team_view(db, team)


def get_team_by_id(db: Session, team_id: uuid.UUID) -> TeamView:
    team = db.get(Team, team_id)
    if not team:
        raise NotFoundError("Team not found")
    return build_team_view(db, team)


def get_teams_by_hackathon(db: Session, hackathon_id: uuid.UUID) -> List[TeamView]:
    teams = db.exec(
        select(Team)
        .where(Team.hackathon_id == hackathon_id)
        .order_by(Team.created_at)
    ).all()
    return build_team_views(db, list(teams))


def get_user_teams(
    db: Session,
    user_id: uuid.UUID,
    hackathon_id: Optional[uuid.UUID] = None
) -> List[TeamView]:
    statement = (
        select(Team)
        .join(TeamMembership, TeamMembership.team_id == Team.id)
        .where(TeamMembership.user_id == user_id)
    )
    if hackathon_id is not None:
        statement = statement.where(Team.hackathon_id == hackathon_id)

    teams = db.exec(statement.order_by(Team.created_at)).all()
    return build_team_views(db, list(teams))
