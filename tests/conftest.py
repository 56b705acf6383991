import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite:///{Path(tempfile.gettempdir()) / 'interview_practice_tests.db'}",
)
os.environ.pop("OPENAI_API_KEY", None)

from interview_practice.core.exceptions import DeviceAccessError, PersistenceError  # noqa: E402
from interview_practice.practice.models import Question, Session, SessionConfig  # noqa: E402


class FailingQuestionSource:
    def __init__(self):
        self.calls = 0

    def generate_practice_questions(self, job_title, industry, difficulty):
        self.calls += 1
        raise RuntimeError("upstream unavailable")


class StaticQuestionSource:
    def __init__(self, questions):
        self.questions = questions

    def generate_practice_questions(self, job_title, industry, difficulty):
        return self.questions


class GrantingCaptureDevice:
    def __init__(self):
        self.acquired = 0
        self.released = 0

    async def acquire(self):
        self.acquired += 1
        return {"stream": self.acquired}

    async def release(self, handle):
        self.released += 1


class DenyingCaptureDevice:
    async def acquire(self):
        raise DeviceAccessError("Permission denied by user")

    async def release(self, handle):
        raise AssertionError("nothing was acquired")


class InMemoryGateway:
    def __init__(self):
        self.records = []

    async def save(self, record):
        self.records.append(record)
        return len(self.records)


class FailingGateway:
    def __init__(self):
        self.attempts = 0

    async def save(self, record):
        self.attempts += 1
        raise PersistenceError("database offline")


@pytest.fixture
def config() -> SessionConfig:
    return SessionConfig(job_title="Backend Engineer", industry="Fintech", difficulty="medium")


@pytest.fixture
def make_session(config):
    def _make(limits=(120, 180, 180, 120, 90), user_id=None) -> Session:
        questions = [
            Question(id=f"q{index}", text=f"Question {index}?", category=category, time_limit_seconds=limit)
            for index, (limit, category) in enumerate(
                zip(limits, ["Introduction", "Experience", "Behavioral", "Career Goals", "Questions"] * 4)
            )
        ]
        return Session(id=f"session-{len(questions)}", config=config, questions=questions, user_id=user_id)

    return _make


@pytest.fixture
def failing_source():
    return FailingQuestionSource()


@pytest.fixture
def static_source():
    return StaticQuestionSource


@pytest.fixture
def granting_device():
    return GrantingCaptureDevice()


@pytest.fixture
def denying_device():
    return DenyingCaptureDevice()


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def failing_gateway():
    return FailingGateway()
