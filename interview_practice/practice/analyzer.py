import logging
import math
import re
from datetime import datetime, timezone
from typing import Callable

from interview_practice.core.exceptions import InvalidTransitionError, NoActiveSessionError
from interview_practice.practice.models import (
    Question,
    QuestionScore,
    Response,
    Scorecard,
    ScoreResult,
    Session,
    SessionRecord,
    SessionStatus,
)

logger = logging.getLogger(__name__)

ScoreFn = Callable[[Question, Response], ScoreResult]

STRENGTH_THRESHOLD = 85
IMPROVEMENT_THRESHOLD = 70

CATEGORY_RECOMMENDATIONS = {
    "Introduction": "Rehearse a concise two-minute introduction that ties your background to the role.",
    "Experience": "Prepare more detailed examples with specific metrics from your past roles.",
    "Behavioral": "Practice the STAR method for behavioral questions.",
    "Career Goals": "Connect your long-term goals explicitly to what this role offers.",
    "Questions": "Research company-specific information and prepare thoughtful questions.",
}
DEFAULT_RECOMMENDATION = "Keep practicing with new question sets to maintain your momentum."

EVIDENCE_PATTERN = re.compile(r"\d|%|\b(result|resulted|increased|reduced|led|delivered|improved)\b", re.IGNORECASE)


def baseline_score(question: Question, response: Response) -> ScoreResult:
    """Rule-based placeholder scorer; swap in a real ScoreFn for model-backed scoring."""
    text = response.text.strip()
    if not text:
        return ScoreResult(0, "No answer was provided.")

    words = len(text.split())
    if words < 15:
        score, feedback = 55, "Answer is brief; expand it with a concrete example."
    elif words < 40:
        score, feedback = 72, "Good start; add more detail about your specific contribution."
    else:
        score, feedback = 80, "Well-developed answer with a clear structure."

    if EVIDENCE_PATTERN.search(text):
        score += 10
        feedback += " Concrete results strengthen the response."
    return ScoreResult(min(score, 100), feedback)


def _clamp_score(value) -> int:
    try:
        return max(0, min(100, int(round(float(value)))))
    except (TypeError, ValueError, OverflowError):
        return 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class SessionCompletionAnalyzer:
    def __init__(self, score_fn: ScoreFn | None = None):
        self.score_fn = score_fn or baseline_score

    def analyze(self, session: Session) -> Scorecard:
        per_question: list[QuestionScore] = []
        for question in session.questions:
            response = session.responses.get(question.id) or Response(question_id=question.id)
            result = self.score_fn(question, response)
            per_question.append(
                QuestionScore(
                    question_id=question.id,
                    category=question.category,
                    score=_clamp_score(result.score),
                    feedback=str(result.feedback or ""),
                )
            )

        overall = 0
        if per_question:
            overall = _round_half_up(sum(item.score for item in per_question) / len(per_question))

        strengths = [f"{item.category}: {item.feedback}" for item in per_question if item.score >= STRENGTH_THRESHOLD]
        weak = [item for item in per_question if item.score < IMPROVEMENT_THRESHOLD]
        improvements = [f"{item.category}: {item.feedback}" for item in weak]

        recommendations: list[str] = []
        for item in weak:
            recommendation = CATEGORY_RECOMMENDATIONS.get(
                item.category, f"Prepare stronger answers for {item.category.lower()} questions."
            )
            if recommendation not in recommendations:
                recommendations.append(recommendation)
        if not recommendations:
            recommendations.append(DEFAULT_RECOMMENDATION)

        return Scorecard(
            overall_score=overall,
            per_question=tuple(per_question),
            strengths=tuple(strengths),
            improvements=tuple(improvements),
            recommendations=tuple(recommendations),
        )

    def finalize(self, session: Session) -> tuple[Scorecard, SessionRecord]:
        if session.status is SessionStatus.COMPLETED and session.scorecard is not None:
            return session.scorecard, session.record
        if session.status is SessionStatus.DISCARDED:
            raise NoActiveSessionError("Session was discarded and cannot be finalized")
        if not session.is_active:
            raise InvalidTransitionError("finalize", session.status.value)

        scorecard = self.analyze(session)
        completed_at = datetime.now(timezone.utc)
        started_at = session.started_at or completed_at

        session.status = SessionStatus.COMPLETED
        session.current_index = len(session.questions)
        session.completed_at = completed_at
        session.freeze()
        session.scorecard = scorecard
        session.record = SessionRecord(
            session_id=session.id,
            user_id=session.user_id,
            session_type=session.config.session_type,
            job_title=session.config.job_title,
            questions=tuple(question.text for question in session.questions),
            answers=tuple(
                session.responses[question.id].text if question.id in session.responses else ""
                for question in session.questions
            ),
            scorecard=scorecard,
            overall_score=scorecard.overall_score,
            duration_minutes=int((completed_at - started_at).total_seconds() // 60),
            completed_at=completed_at,
        )
        logger.info("Session %s finalized with overall score %s", session.id, scorecard.overall_score)
        return scorecard, session.record
