import json
from dataclasses import asdict
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from interview_practice.models.practice import InterviewPractice
from interview_practice.practice.models import SessionRecord


class PracticeRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, record: SessionRecord) -> InterviewPractice:
        practice = InterviewPractice(
            session_id=record.session_id,
            user_id=record.user_id,
            session_type=record.session_type,
            job_title=record.job_title,
            questions_json=json.dumps(list(record.questions)),
            answers_json=json.dumps(list(record.answers)),
            analysis_json=json.dumps(asdict(record.scorecard)),
            score=record.overall_score,
            duration=record.duration_minutes,
            completed_at=record.completed_at.replace(tzinfo=None),
        )
        self.db.add(practice)
        self.db.commit()
        self.db.refresh(practice)
        return practice

    def list_all(self, user_id: str | None = None) -> List[InterviewPractice]:
        stmt = select(InterviewPractice)
        if user_id:
            stmt = stmt.where(InterviewPractice.user_id == user_id)
        stmt = stmt.order_by(InterviewPractice.completed_at.desc())
        return list(self.db.scalars(stmt).all())

    def get_by_session_id(self, session_id: str) -> InterviewPractice | None:
        stmt = select(InterviewPractice).where(InterviewPractice.session_id == session_id)
        return self.db.scalars(stmt).first()

    @staticmethod
    def parse_questions(practice: InterviewPractice) -> List[str]:
        return json.loads(practice.questions_json)

    @staticmethod
    def parse_answers(practice: InterviewPractice) -> List[str]:
        return json.loads(practice.answers_json)

    @staticmethod
    def parse_analysis(practice: InterviewPractice) -> dict:
        return json.loads(practice.analysis_json)
