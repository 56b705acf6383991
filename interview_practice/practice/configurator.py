import asyncio
import logging
import uuid
from typing import Protocol

from interview_practice.core.exceptions import ConfigValidationError, QuestionGenerationError
from interview_practice.practice.models import Question, Session, SessionConfig

logger = logging.getLogger(__name__)

DEFAULT_TIME_LIMIT = 120
REQUIRED_FIELDS = ("job_title", "industry", "difficulty")


class QuestionSource(Protocol):
    def generate_practice_questions(self, job_title: str, industry: str, difficulty: str) -> list[dict]:
        ...


def fallback_deck(config: SessionConfig) -> list[Question]:
    templates = [
        ("Tell me about yourself and why you're interested in this role.", "Introduction", 120),
        (
            f"What experience do you have in {config.industry} and specifically with "
            f"{config.job_title} responsibilities?",
            "Experience",
            180,
        ),
        ("Describe a challenging project you worked on and how you overcame the obstacles.", "Behavioral", 180),
        (
            "Where do you see yourself in 5 years and how does this role fit into your career goals?",
            "Career Goals",
            120,
        ),
        ("Do you have any questions for me about the role or the company?", "Questions", 90),
    ]
    return [
        Question(id=f"question_{index}", text=text, category=category, time_limit_seconds=limit)
        for index, (text, category, limit) in enumerate(templates)
    ]


def _time_limit(value) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_TIME_LIMIT
    return limit if limit > 0 else DEFAULT_TIME_LIMIT


def normalize_questions(raw_questions) -> list[Question]:
    if not isinstance(raw_questions, list):
        raise QuestionGenerationError("Question service returned a non-list payload")

    questions: list[Question] = []
    seen_ids: set[str] = set()
    for item in raw_questions:
        if isinstance(item, str):
            item = {"question": item}
        if not isinstance(item, dict):
            continue
        text = str(item.get("question") or item.get("text") or "").strip()
        if not text:
            continue

        question_id = str(item.get("id") or "").strip()
        if not question_id or question_id in seen_ids:
            question_id = f"question_{len(questions)}"
            while question_id in seen_ids:
                question_id = f"{question_id}_"
        seen_ids.add(question_id)

        questions.append(
            Question(
                id=question_id,
                text=text,
                category=str(item.get("category") or "General").strip() or "General",
                time_limit_seconds=_time_limit(item.get("timeLimit", item.get("time_limit_seconds"))),
            )
        )

    if not questions:
        raise QuestionGenerationError("Question service returned no usable questions")
    return questions


class SessionConfigurator:
    def __init__(self, question_source: QuestionSource | None = None, timeout_seconds: float = 15.0):
        self.question_source = question_source
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def validate(config: SessionConfig):
        missing = [name for name in REQUIRED_FIELDS if not str(getattr(config, name) or "").strip()]
        if missing:
            raise ConfigValidationError(missing)

    async def _fetch_questions(self, config: SessionConfig) -> list[Question]:
        if self.question_source is None:
            raise QuestionGenerationError("No question generation service is configured")
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(
                    self.question_source.generate_practice_questions,
                    config.job_title,
                    config.industry,
                    config.difficulty,
                ),
                timeout=self.timeout_seconds,
            )
        except QuestionGenerationError:
            raise
        except asyncio.TimeoutError as exc:
            raise QuestionGenerationError(
                f"Question service timed out after {self.timeout_seconds}s"
            ) from exc
        except Exception as exc:
            raise QuestionGenerationError(f"Question service failed: {exc}") from exc
        return normalize_questions(raw)

    async def generate(self, config: SessionConfig, user_id: str | None = None) -> Session:
        self.validate(config)

        deck_source = "generated"
        try:
            questions = await self._fetch_questions(config)
        except QuestionGenerationError as exc:
            logger.warning("Falling back to sample questions: %s", exc.message)
            questions = fallback_deck(config)
            deck_source = "fallback"

        return Session(
            id=uuid.uuid4().hex,
            config=config,
            questions=tuple(questions),
            user_id=user_id,
            deck_source=deck_source,
        )
