from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class PracticeSetupPayload(BaseModel):
    user_id: Optional[str] = None
    job_title: str
    industry: str
    difficulty: str
    language: str = "en"
    session_type: str = "behavioral"


class QuestionItem(BaseModel):
    id: str
    text: str
    category: str
    time_limit_seconds: int


class AnswerItem(BaseModel):
    question_id: str
    text: str
    time_spent_seconds: int
    submitted_at: Optional[datetime] = None


class TimerState(BaseModel):
    remaining: int
    limit: int
    running: bool
    paused: bool
    clock: str
    urgency: str


class RecordingState(BaseModel):
    is_audio_enabled: bool
    is_video_enabled: bool
    is_capturing: bool


class QuestionScoreItem(BaseModel):
    question_id: str
    category: str
    score: int
    feedback: str


class ScorecardResponse(BaseModel):
    overall_score: int
    performance_label: str
    per_question: List[QuestionScoreItem]
    strengths: List[str]
    improvements: List[str]
    recommendations: List[str]


class PracticeSessionResponse(BaseModel):
    session_id: str
    user_id: Optional[str] = None
    status: str
    job_title: str
    industry: str
    difficulty: str
    deck_source: str
    question_index: int
    current_question: Optional[QuestionItem] = None
    questions: List[QuestionItem]
    answers: List[AnswerItem]
    completion_ratio: float
    timer: TimerState
    recording: RecordingState
    notices: List[str]
    scorecard: Optional[ScorecardResponse] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class PracticeAnswerRequest(BaseModel):
    text: str
    question_id: Optional[str] = None


class PracticeJumpRequest(BaseModel):
    index: int


class PracticeToggleResponse(BaseModel):
    session_id: str
    enabled: bool


class PracticeHistoryItem(BaseModel):
    id: int
    session_id: str
    user_id: Optional[str] = None
    session_type: str
    job_title: str
    questions: List[str]
    answers: List[str]
    analysis: dict
    score: int
    duration: int
    completed_at: datetime
