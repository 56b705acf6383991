from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from interview_practice.core.exceptions import PersistenceError
from interview_practice.db.base import Base
from interview_practice.models.practice import InterviewPractice  # noqa: F401
from interview_practice.practice.gateway import SqlPracticeSessionGateway
from interview_practice.practice.models import QuestionScore, Scorecard, SessionRecord
from interview_practice.repositories.practice_repository import PracticeRepository


def _engine(create_tables=True):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    if create_tables:
        Base.metadata.create_all(bind=engine)
    return engine


def _record(session_id="abc", user_id="user-1"):
    scorecard = Scorecard(
        overall_score=64,
        per_question=(
            QuestionScore(question_id="q0", category="Introduction", score=72, feedback="Good start"),
            QuestionScore(question_id="q1", category="Behavioral", score=55, feedback="Too brief"),
        ),
        strengths=(),
        improvements=("Behavioral: Too brief",),
        recommendations=("Practice the STAR method for behavioral questions.",),
    )
    return SessionRecord(
        session_id=session_id,
        user_id=user_id,
        session_type="behavioral",
        job_title="Backend Engineer",
        questions=("Tell me about yourself.", "Describe a conflict."),
        answers=("I build payment systems.", ""),
        scorecard=scorecard,
        overall_score=64,
        duration_minutes=12,
        completed_at=datetime.now(timezone.utc),
    )


@pytest.mark.asyncio
async def test_save_writes_practice_row():
    factory = sessionmaker(bind=_engine(), autocommit=False, autoflush=False)
    gateway = SqlPracticeSessionGateway(factory)

    record_id = await gateway.save(_record())

    with factory() as db:
        repo = PracticeRepository(db)
        practice = repo.get_by_session_id("abc")
        assert practice.id == record_id
        assert practice.score == 64
        assert practice.duration == 12
        assert repo.parse_answers(practice) == ["I build payment systems.", ""]
        analysis = repo.parse_analysis(practice)
        assert analysis["overall_score"] == 64
        assert analysis["per_question"][1]["feedback"] == "Too brief"
        assert [item.session_id for item in repo.list_all(user_id="user-1")] == ["abc"]
        assert repo.list_all(user_id="someone-else") == []


@pytest.mark.asyncio
async def test_database_errors_become_persistence_errors():
    factory = sessionmaker(bind=_engine(create_tables=False), autocommit=False, autoflush=False)

    with pytest.raises(PersistenceError):
        await SqlPracticeSessionGateway(factory).save(_record())


@pytest.mark.asyncio
async def test_duplicate_session_is_rejected():
    factory = sessionmaker(bind=_engine(), autocommit=False, autoflush=False)
    gateway = SqlPracticeSessionGateway(factory)
    await gateway.save(_record())

    with pytest.raises(PersistenceError):
        await gateway.save(_record())
