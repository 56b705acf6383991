from threading import Lock
from time import time

from interview_practice.core.config import settings
from interview_practice.core.exceptions import NoActiveSessionError, SessionAlreadyActiveError
from interview_practice.practice.controller import PracticeSessionController
from interview_practice.practice.models import SessionStatus

ANONYMOUS_USER = "anonymous"


class ActiveSessionRegistry:
    """In-memory map of live practice controllers.

    A user holds at most one in-progress or paused session; registering another
    is rejected. A session that is still configuring is displaced by the new one.
    Completed sessions stay readable until their entry expires.
    """

    def __init__(self, ttl_seconds: int = 7200):
        self.ttl_seconds = ttl_seconds
        self._lock = Lock()
        self._sessions: dict[str, tuple[float, PracticeSessionController]] = {}
        self._user_sessions: dict[str, str] = {}
        self._evicted: list[PracticeSessionController] = []

    @staticmethod
    def _user_key(controller: PracticeSessionController) -> str:
        return controller.session.user_id or ANONYMOUS_USER

    def ensure_available(self, user_id: str | None):
        user_key = user_id or ANONYMOUS_USER
        with self._lock:
            session_id = self._user_sessions.get(user_key)
            item = self._sessions.get(session_id) if session_id else None
            if item and item[1].session.is_active:
                raise SessionAlreadyActiveError(
                    f"Practice session {session_id} is still in progress for this user"
                )

    def register(self, controller: PracticeSessionController) -> PracticeSessionController | None:
        """Store ``controller``; returns a displaced configuring controller, if any."""
        user_key = self._user_key(controller)
        with self._lock:
            displaced = None
            previous_id = self._user_sessions.get(user_key)
            item = self._sessions.get(previous_id) if previous_id else None
            if item:
                previous = item[1]
                if previous.session.is_active:
                    raise SessionAlreadyActiveError(
                        f"Practice session {previous_id} is still in progress for this user"
                    )
                if previous.status is SessionStatus.CONFIGURING:
                    del self._sessions[previous_id]
                    displaced = previous

            self._sessions[controller.session.id] = (time() + self.ttl_seconds, controller)
            self._user_sessions[user_key] = controller.session.id
            return displaced

    def get(self, session_id: str) -> PracticeSessionController:
        """Return a live controller. An expired entry is dropped and queued for ``purge_expired``."""
        with self._lock:
            item = self._sessions.get(session_id)
            if item and item[0] < time():
                self._evicted.append(self._pop(session_id))
                item = None
            if not item:
                raise NoActiveSessionError(f"Practice session {session_id} not found")
            controller = item[1]
            self._sessions[session_id] = (time() + self.ttl_seconds, controller)
            return controller

    def _pop(self, session_id: str) -> PracticeSessionController | None:
        # caller holds the lock
        item = self._sessions.pop(session_id, None)
        if not item:
            return None
        controller = item[1]
        user_key = self._user_key(controller)
        if self._user_sessions.get(user_key) == session_id:
            del self._user_sessions[user_key]
        return controller

    def release(self, session_id: str) -> PracticeSessionController | None:
        with self._lock:
            return self._pop(session_id)

    def purge_expired(self) -> list[PracticeSessionController]:
        """Drop expired entries; returns them, with any evicted by ``get``, so the caller can exit them."""
        now_ts = time()
        with self._lock:
            expired_ids = [session_id for session_id, (expires_at, _) in self._sessions.items() if expires_at < now_ts]
            stale = self._evicted + [self._pop(session_id) for session_id in expired_ids]
            self._evicted = []
        return stale

    def release_all(self) -> list[PracticeSessionController]:
        with self._lock:
            session_ids = list(self._sessions)
        return [controller for controller in map(self.release, session_ids) if controller is not None]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


session_registry = ActiveSessionRegistry(ttl_seconds=settings.active_session_ttl_seconds)
