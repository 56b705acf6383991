from interview_practice.core.exceptions import OutOfRangeError
from interview_practice.practice.models import Question, Session


class QuestionSequencer:
    """Owns the position of a session inside its deck.

    The index stays within ``0 <= index <= len(questions)``; an index equal to
    the deck length means the deck is exhausted.
    """

    def __init__(self, session: Session):
        self.session = session

    @property
    def index(self) -> int:
        return self.session.current_index

    @property
    def total(self) -> int:
        return len(self.session.questions)

    @property
    def is_exhausted(self) -> bool:
        return self.index >= self.total

    def current(self) -> Question | None:
        if self.is_exhausted:
            return None
        return self.session.questions[self.index]

    def advance(self) -> bool:
        """Move forward one question. Returns True only on the call that exhausts the deck."""
        if self.is_exhausted:
            return False
        self.session.current_index = min(self.index + 1, self.total)
        return self.is_exhausted

    def retreat(self) -> bool:
        if self.index == 0:
            return False
        self.session.current_index = self.index - 1
        return True

    def jump_to(self, index: int) -> bool:
        if not isinstance(index, int) or index < 0 or index >= self.total:
            raise OutOfRangeError(f"Question index {index} is outside 0..{self.total - 1}")
        moved = index != self.index
        self.session.current_index = index
        return moved
