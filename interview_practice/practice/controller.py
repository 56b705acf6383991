import logging
from datetime import datetime, timezone

from interview_practice.core.exceptions import (
    InvalidTransitionError,
    NoActiveSessionError,
    PersistenceError,
    SessionFinalizedError,
)
from interview_practice.practice.analyzer import SessionCompletionAnalyzer
from interview_practice.practice.gateway import PracticeSessionGateway
from interview_practice.practice.models import Question, Response, Scorecard, Session, SessionStatus
from interview_practice.practice.recording import RecordingController
from interview_practice.practice.responses import ResponseStore
from interview_practice.practice.sequencer import QuestionSequencer
from interview_practice.practice.timer import TickSchedule, TimerController

logger = logging.getLogger(__name__)

GENERATION_FALLBACK_NOTICE = "Failed to generate questions. Using sample questions."
DEVICE_NOTICE = "Camera and microphone are unavailable. Continuing in text-only mode."
PERSISTENCE_NOTICE = "Could not save practice session."


class PracticeSessionController:
    """Single owner of one practice Session.

    Every mutation of the session goes through this class so the state machine
    is enforced in one place. The tick schedule and the capture device are
    released on every exit path: completion, exit, ``close()`` and leaving an
    ``async with`` block.
    """

    def __init__(
        self,
        session: Session,
        *,
        recorder: RecordingController | None = None,
        analyzer: SessionCompletionAnalyzer | None = None,
        gateway: PracticeSessionGateway | None = None,
        tick_interval: float = 1.0,
    ):
        self.session = session
        self.sequencer = QuestionSequencer(session)
        self.responses = ResponseStore(session)
        self.timer = TimerController(on_expire=self._on_expire)
        self.schedule = TickSchedule(self.tick, interval=tick_interval)
        self.recorder = recorder or RecordingController()
        self.analyzer = analyzer or SessionCompletionAnalyzer()
        self.gateway = gateway
        self.notices: list[str] = []
        self.record_id: int | None = None
        self._expiry_pending = False
        self._settled = False
        self._time_banked: dict[str, int] = {}

        if session.deck_source == "fallback":
            self.notices.append(GENERATION_FALLBACK_NOTICE)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self.session.status in (SessionStatus.CONFIGURING, SessionStatus.IN_PROGRESS, SessionStatus.PAUSED):
            await self.exit()
        else:
            await self.close()
        return False

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def scorecard(self) -> Scorecard | None:
        return self.session.scorecard

    def current_question(self) -> Question | None:
        return self.sequencer.current()

    def _require_active(self, action: str):
        status = self.session.status
        if status is SessionStatus.DISCARDED:
            raise NoActiveSessionError("Practice session was discarded")
        if status in (SessionStatus.CONFIGURING, SessionStatus.COMPLETED):
            raise InvalidTransitionError(action, status.value)

    def _bank_time(self, question: Question | None, elapsed: int):
        if question is not None and elapsed > 0:
            self._time_banked[question.id] = self._time_banked.get(question.id, 0) + elapsed

    def _on_question_changed(self):
        question = self.sequencer.current()
        if question is not None:
            self.timer.reset(question.time_limit_seconds)

    def _on_expire(self):
        logger.info("Time expired on question %s of session %s", self.sequencer.index, self.session.id)
        self._expiry_pending = True

    async def start(self) -> Session:
        if self.session.status is not SessionStatus.CONFIGURING:
            if self.session.status is SessionStatus.DISCARDED:
                raise NoActiveSessionError("Practice session was discarded")
            raise InvalidTransitionError("start", self.session.status.value)

        self.session.status = SessionStatus.IN_PROGRESS
        self.session.started_at = datetime.now(timezone.utc)
        question = self.sequencer.current()
        if question is not None:
            self.timer.start(question.time_limit_seconds)
        self.schedule.start()
        logger.info("Session %s started with %s questions", self.session.id, self.sequencer.total)

        if not await self.recorder.start():
            self.notices.append(DEVICE_NOTICE)
        elif not self.session.is_active:
            # Exited or finished while the permission prompt was open.
            await self.recorder.stop()
            return self.session

        if question is None:
            await self._complete()
        return self.session

    def pause(self) -> Session:
        if self.session.status is not SessionStatus.IN_PROGRESS:
            self._require_active("pause")
            raise InvalidTransitionError("pause", self.session.status.value)
        self.session.status = SessionStatus.PAUSED
        self.timer.pause()
        self.schedule.cancel()
        return self.session

    def resume(self) -> Session:
        if self.session.status is not SessionStatus.PAUSED:
            self._require_active("resume")
            raise InvalidTransitionError("resume", self.session.status.value)
        self.session.status = SessionStatus.IN_PROGRESS
        self.timer.resume()
        self.schedule.start()
        return self.session

    async def tick(self):
        if self.session.status is not SessionStatus.IN_PROGRESS:
            return
        self.timer.tick()
        if self._expiry_pending:
            self._expiry_pending = False
            await self.advance()

    async def advance(self) -> Session:
        if self.session.status is SessionStatus.COMPLETED:
            return self.session
        self._require_active("advance")

        leaving, elapsed, index = self.sequencer.current(), self.timer.elapsed, self.sequencer.index
        if self.sequencer.advance():
            try:
                await self._complete()
            except Exception:
                # Scoring failed before the session was finalized; stay on the last question.
                if self.session.status is not SessionStatus.COMPLETED:
                    self.session.current_index = index
                raise
        else:
            self._bank_time(leaving, elapsed)
            self._on_question_changed()
        return self.session

    def retreat(self) -> Session:
        self._require_active("go back in")
        leaving, elapsed = self.sequencer.current(), self.timer.elapsed
        if self.sequencer.retreat():
            self._bank_time(leaving, elapsed)
            self._on_question_changed()
        return self.session

    def jump_to(self, index: int) -> Session:
        self._require_active("navigate")
        leaving, elapsed = self.sequencer.current(), self.timer.elapsed
        if self.sequencer.jump_to(index):
            self._bank_time(leaving, elapsed)
            self._on_question_changed()
        return self.session

    def answer(self, text: str, question_id: str | None = None) -> Response:
        status = self.session.status
        if status is SessionStatus.DISCARDED:
            raise NoActiveSessionError("Practice session was discarded")

        current = self.sequencer.current()
        if question_id is None:
            if current is None:
                raise SessionFinalizedError("There is no current question to answer")
            question_id = current.id

        if current is not None and current.id == question_id:
            time_spent = self._time_banked.get(question_id, 0) + self.timer.elapsed
        else:
            time_spent = self._time_banked.get(
                question_id, self.responses.get_response(question_id).time_spent_seconds
            )
        return self.responses.set_answer(question_id, text, time_spent_seconds=time_spent)

    def toggle_audio(self) -> bool:
        return self.recorder.toggle_audio()

    def toggle_video(self) -> bool:
        return self.recorder.toggle_video()

    async def finish(self) -> Scorecard:
        if self.session.status is SessionStatus.COMPLETED:
            return self.session.scorecard
        self._require_active("finish")
        await self._complete()
        return self.session.scorecard

    async def exit(self) -> Session:
        status = self.session.status
        if status in (SessionStatus.CONFIGURING, SessionStatus.IN_PROGRESS, SessionStatus.PAUSED):
            self.session.status = SessionStatus.DISCARDED
            logger.info("Session %s discarded", self.session.id)
        await self.close()
        return self.session

    async def close(self):
        self.timer.stop()
        self.schedule.cancel()
        await self.recorder.stop()

    async def _complete(self):
        self.analyzer.finalize(self.session)
        if self._settled:
            return
        self._settled = True
        try:
            await self.close()
        finally:
            await self._hand_off()

    async def _hand_off(self):
        if self.gateway is None:
            return
        try:
            self.record_id = await self.gateway.save(self.session.record)
        except PersistenceError as exc:
            logger.warning("Practice session %s not saved: %s", self.session.id, exc.message)
            self.notices.append(PERSISTENCE_NOTICE)
