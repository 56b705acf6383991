from datetime import datetime, timezone

from interview_practice.core.exceptions import OutOfRangeError, SessionFinalizedError
from interview_practice.practice.models import Response, Session


class ResponseStore:
    """One answer per question, keyed by question id so navigation order never matters."""

    def __init__(self, session: Session):
        self.session = session

    def set_answer(self, question_id: str, text: str, time_spent_seconds: int = 0) -> Response:
        if self.session.is_frozen:
            raise SessionFinalizedError("Session is completed; answers can no longer change")
        if question_id not in self.session.question_ids():
            raise OutOfRangeError(f"Unknown question id: {question_id}")

        response = Response(
            question_id=question_id,
            text=text or "",
            time_spent_seconds=max(0, int(time_spent_seconds)),
            submitted_at=datetime.now(timezone.utc),
        )
        self.session.responses[question_id] = response
        return response

    def get_answer(self, question_id: str) -> str:
        response = self.session.responses.get(question_id)
        return response.text if response else ""

    def get_response(self, question_id: str) -> Response:
        return self.session.responses.get(question_id) or Response(question_id=question_id)

    def answered_count(self) -> int:
        return sum(1 for response in self.session.responses.values() if response.is_answered)

    def completion_ratio(self) -> float:
        total = len(self.session.questions)
        if not total:
            return 0.0
        return self.answered_count() / total
