import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from interview_practice.core.config import settings
from interview_practice.core.exceptions import InvalidTransitionError
from interview_practice.db.session import SessionLocal, get_db
from interview_practice.practice.configurator import SessionConfigurator
from interview_practice.practice.controller import PracticeSessionController
from interview_practice.practice.gateway import SqlPracticeSessionGateway
from interview_practice.practice.models import Question, Scorecard, SessionConfig
from interview_practice.practice.registry import ActiveSessionRegistry, session_registry
from interview_practice.repositories.practice_repository import PracticeRepository
from interview_practice.schemas.practice import (
    AnswerItem,
    PracticeAnswerRequest,
    PracticeHistoryItem,
    PracticeJumpRequest,
    PracticeSessionResponse,
    PracticeSetupPayload,
    PracticeToggleResponse,
    QuestionItem,
    QuestionScoreItem,
    RecordingState,
    ScorecardResponse,
    TimerState,
)
from interview_practice.services.openai_service import OpenAIService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/practice", tags=["practice"])


def get_registry() -> ActiveSessionRegistry:
    return session_registry


def get_question_source():
    try:
        return OpenAIService()
    except RuntimeError as exc:
        logger.warning("Question generation disabled: %s", exc)
        return None


def get_gateway():
    return SqlPracticeSessionGateway(SessionLocal)


async def _exit_stale(registry: ActiveSessionRegistry):
    for stale in registry.purge_expired():
        await stale.exit()


async def _lookup(registry: ActiveSessionRegistry, session_id: str) -> PracticeSessionController:
    await _exit_stale(registry)
    return registry.get(session_id)


def _question_item(question: Question) -> QuestionItem:
    return QuestionItem(
        id=question.id,
        text=question.text,
        category=question.category,
        time_limit_seconds=question.time_limit_seconds,
    )


def _scorecard_response(scorecard: Scorecard) -> ScorecardResponse:
    return ScorecardResponse(
        overall_score=scorecard.overall_score,
        performance_label=scorecard.performance_label,
        per_question=[
            QuestionScoreItem(
                question_id=item.question_id,
                category=item.category,
                score=item.score,
                feedback=item.feedback,
            )
            for item in scorecard.per_question
        ],
        strengths=list(scorecard.strengths),
        improvements=list(scorecard.improvements),
        recommendations=list(scorecard.recommendations),
    )


def _session_response(controller: PracticeSessionController) -> PracticeSessionResponse:
    session = controller.session
    current = controller.current_question()
    timer = controller.timer
    recorder = controller.recorder

    return PracticeSessionResponse(
        session_id=session.id,
        user_id=session.user_id,
        status=session.status.value,
        job_title=session.config.job_title,
        industry=session.config.industry,
        difficulty=session.config.difficulty,
        deck_source=session.deck_source,
        question_index=session.current_index,
        current_question=_question_item(current) if current else None,
        questions=[_question_item(question) for question in session.questions],
        answers=[
            AnswerItem(
                question_id=response.question_id,
                text=response.text,
                time_spent_seconds=response.time_spent_seconds,
                submitted_at=response.submitted_at,
            )
            for response in (session.responses.get(question.id) for question in session.questions)
            if response is not None
        ],
        completion_ratio=controller.responses.completion_ratio(),
        timer=TimerState(
            remaining=timer.remaining,
            limit=timer.limit,
            running=timer.running,
            paused=timer.paused,
            clock=timer.format_clock(),
            urgency=timer.urgency,
        ),
        recording=RecordingState(
            is_audio_enabled=recorder.is_audio_enabled,
            is_video_enabled=recorder.is_video_enabled,
            is_capturing=recorder.is_capturing,
        ),
        notices=list(controller.notices),
        scorecard=_scorecard_response(session.scorecard) if session.scorecard else None,
        started_at=session.started_at,
        completed_at=session.completed_at,
    )


@router.post("/sessions", response_model=PracticeSessionResponse)
async def create_practice_session(
    body: PracticeSetupPayload,
    registry: ActiveSessionRegistry = Depends(get_registry),
    question_source=Depends(get_question_source),
    gateway=Depends(get_gateway),
):
    await _exit_stale(registry)
    registry.ensure_available(body.user_id)

    config = SessionConfig(
        job_title=body.job_title,
        industry=body.industry,
        difficulty=body.difficulty,
        language=body.language,
        session_type=body.session_type,
    )
    configurator = SessionConfigurator(
        question_source,
        timeout_seconds=settings.question_generation_timeout_seconds,
    )
    session = await configurator.generate(config, user_id=body.user_id)

    controller = PracticeSessionController(
        session,
        gateway=gateway,
        tick_interval=settings.tick_interval_seconds,
    )
    displaced = registry.register(controller)
    if displaced is not None:
        await displaced.exit()
    return _session_response(controller)


@router.get("/sessions/{session_id}", response_model=PracticeSessionResponse)
async def get_practice_session(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    return _session_response(await _lookup(registry, session_id))


@router.post("/sessions/{session_id}/start", response_model=PracticeSessionResponse)
async def start_practice_session(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    await controller.start()
    return _session_response(controller)


@router.post("/sessions/{session_id}/pause", response_model=PracticeSessionResponse)
async def pause_practice_session(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    controller.pause()
    return _session_response(controller)


@router.post("/sessions/{session_id}/resume", response_model=PracticeSessionResponse)
async def resume_practice_session(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    controller.resume()
    return _session_response(controller)


@router.post("/sessions/{session_id}/advance", response_model=PracticeSessionResponse)
async def advance_practice_session(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    await controller.advance()
    return _session_response(controller)


@router.post("/sessions/{session_id}/retreat", response_model=PracticeSessionResponse)
async def retreat_practice_session(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    controller.retreat()
    return _session_response(controller)


@router.post("/sessions/{session_id}/jump", response_model=PracticeSessionResponse)
async def jump_practice_session(
    session_id: str,
    body: PracticeJumpRequest,
    registry: ActiveSessionRegistry = Depends(get_registry),
):
    controller = await _lookup(registry, session_id)
    controller.jump_to(body.index)
    return _session_response(controller)


@router.put("/sessions/{session_id}/answer", response_model=PracticeSessionResponse)
async def answer_practice_question(
    session_id: str,
    body: PracticeAnswerRequest,
    registry: ActiveSessionRegistry = Depends(get_registry),
):
    controller = await _lookup(registry, session_id)
    controller.answer(body.text, question_id=body.question_id)
    return _session_response(controller)


@router.post("/sessions/{session_id}/audio", response_model=PracticeToggleResponse)
async def toggle_practice_audio(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    return PracticeToggleResponse(session_id=session_id, enabled=controller.toggle_audio())


@router.post("/sessions/{session_id}/video", response_model=PracticeToggleResponse)
async def toggle_practice_video(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    return PracticeToggleResponse(session_id=session_id, enabled=controller.toggle_video())


@router.post("/sessions/{session_id}/finish", response_model=PracticeSessionResponse)
async def finish_practice_session(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    await controller.finish()
    return _session_response(controller)


@router.get("/sessions/{session_id}/scorecard", response_model=ScorecardResponse)
async def get_practice_scorecard(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    if controller.scorecard is None:
        raise InvalidTransitionError("score", controller.status.value)
    return _scorecard_response(controller.scorecard)


@router.delete("/sessions/{session_id}", response_model=PracticeSessionResponse)
async def exit_practice_session(session_id: str, registry: ActiveSessionRegistry = Depends(get_registry)):
    controller = await _lookup(registry, session_id)
    await controller.exit()
    registry.release(session_id)
    return _session_response(controller)


@router.get("/history", response_model=list[PracticeHistoryItem])
def list_practice_history(user_id: str | None = None, db: Session = Depends(get_db)):
    repo = PracticeRepository(db)
    return [
        PracticeHistoryItem(
            id=item.id,
            session_id=item.session_id,
            user_id=item.user_id,
            session_type=item.session_type,
            job_title=item.job_title,
            questions=repo.parse_questions(item),
            answers=repo.parse_answers(item),
            analysis=repo.parse_analysis(item),
            score=item.score,
            duration=item.duration,
            completed_at=item.completed_at,
        )
        for item in repo.list_all(user_id=user_id)
    ]
