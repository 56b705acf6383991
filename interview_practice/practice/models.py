from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class SessionStatus(str, Enum):
    CONFIGURING = "configuring"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    DISCARDED = "discarded"


ACTIVE_STATUSES = frozenset({SessionStatus.IN_PROGRESS, SessionStatus.PAUSED})


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    category: str
    time_limit_seconds: int


@dataclass(frozen=True)
class SessionConfig:
    job_title: str
    industry: str
    difficulty: str
    language: str = "en"
    session_type: str = "behavioral"


@dataclass(frozen=True)
class Response:
    question_id: str
    text: str = ""
    time_spent_seconds: int = 0
    submitted_at: datetime | None = None

    @property
    def is_answered(self) -> bool:
        return bool(self.text.strip())


@dataclass(frozen=True)
class ScoreResult:
    score: int
    feedback: str


@dataclass(frozen=True)
class QuestionScore:
    question_id: str
    category: str
    score: int
    feedback: str


@dataclass(frozen=True)
class Scorecard:
    overall_score: int
    per_question: tuple[QuestionScore, ...]
    strengths: tuple[str, ...]
    improvements: tuple[str, ...]
    recommendations: tuple[str, ...]

    @property
    def performance_label(self) -> str:
        if self.overall_score >= 80:
            return "Excellent Performance"
        if self.overall_score >= 60:
            return "Good Performance"
        return "Needs Improvement"


@dataclass(frozen=True)
class SessionRecord:
    """Finalized session as handed to the persistence gateway."""

    session_id: str
    user_id: str | None
    session_type: str
    job_title: str
    questions: tuple[str, ...]
    answers: tuple[str, ...]
    scorecard: Scorecard
    overall_score: int
    duration_minutes: int
    completed_at: datetime


@dataclass
class Session:
    id: str
    config: SessionConfig
    questions: tuple[Question, ...]
    user_id: str | None = None
    deck_source: str = "generated"
    current_index: int = 0
    responses: Mapping[str, Response] = field(default_factory=dict)
    status: SessionStatus = SessionStatus.CONFIGURING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    scorecard: Scorecard | None = None
    record: SessionRecord | None = None

    def __post_init__(self):
        self.questions = tuple(self.questions)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_frozen(self) -> bool:
        return self.status is SessionStatus.COMPLETED

    def question_ids(self) -> list[str]:
        return [question.id for question in self.questions]

    def freeze(self):
        self.responses = MappingProxyType(dict(self.responses))
