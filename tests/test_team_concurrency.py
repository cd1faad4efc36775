"""
Joins racing on separate threads and sessions against a file-backed SQLite
database, the way concurrent requests reach the service.
"""

import threading
import uuid

import pytest
from sqlmodel import Session, SQLModel, select

from hackteams.database import build_engine
from hackteams.errors import ApiError
from hackteams.models import Team, TeamMembership
from hackteams.services import teams as team_service
from hackteams.services.auth import register_user

JOINERS = 6


@pytest.fixture(name="file_engine")
def file_engine_fixture(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'teams.db'}", connect_args={"timeout": 30})
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


def add_users(engine, count):
    with Session(engine) as db:
        return [
            register_user(
                db,
                email=f"{uuid.uuid4().hex[:8]}@example.com",
                full_name=f"User {n}",
                password="password123"
            ).id
            for n in range(count)
        ]


def run_together(engine, calls):
    """Run each call on its own thread and session, all released at once."""
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def worker(index, call):
        with Session(engine) as db:
            barrier.wait()
            try:
                call(db)
                outcomes[index] = "ok"
            except ApiError as exc:
                outcomes[index] = type(exc).__name__
            except Exception as exc:
                outcomes[index] = repr(exc)

    threads = [
        threading.Thread(target=worker, args=(index, call))
        for index, call in enumerate(calls)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return outcomes


def test_concurrent_joins_never_overfill_a_team(file_engine):
    leader_id, *joiner_ids = add_users(file_engine, JOINERS + 1)
    with Session(file_engine) as db:
        team_id = team_service.create_team(
            db, uuid.uuid4(), leader_id, "Crew", max_members=2
        ).id

    outcomes = run_together(file_engine, [
        lambda db, user_id=user_id: team_service.join_team(db, team_id, user_id)
        for user_id in joiner_ids
    ])

    assert outcomes.count("ok") == 1
    assert outcomes.count("CapacityError") == JOINERS - 1
    with Session(file_engine) as db:
        memberships = db.exec(
            select(TeamMembership).where(TeamMembership.team_id == team_id)
        ).all()
        assert len(memberships) == 2
        assert db.get(Team, team_id).member_count == 2


def test_concurrent_joins_within_one_hackathon_admit_one(file_engine):
    first_leader, second_leader, member_id = add_users(file_engine, 3)
    hackathon_id = uuid.uuid4()
    with Session(file_engine) as db:
        team_ids = [
            team_service.create_team(db, hackathon_id, first_leader, "First").id,
            team_service.create_team(db, hackathon_id, second_leader, "Second").id,
        ]

    outcomes = run_together(file_engine, [
        lambda db, team_id=team_id: team_service.join_team(db, team_id, member_id)
        for team_id in team_ids
    ])

    assert sorted(outcomes) == ["ConflictError", "ok"]
    with Session(file_engine) as db:
        memberships = db.exec(
            select(TeamMembership).where(TeamMembership.user_id == member_id)
        ).all()
        assert len(memberships) == 1
        counts = sorted(db.get(Team, team_id).member_count for team_id in team_ids)
        assert counts == [1, 2]
