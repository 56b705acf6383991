import logging
from contextlib import asynccontextmanager
from typing import Any, Protocol

from interview_practice.core.exceptions import DeviceAccessError

logger = logging.getLogger(__name__)


class CaptureDevice(Protocol):
    async def acquire(self) -> Any:
        """Open audio+video streams. Raises DeviceAccessError when denied."""

    async def release(self, handle: Any) -> None:
        ...


class UnavailableCaptureDevice:
    """Server-side stand-in: media is captured by the client, never here."""

    async def acquire(self):
        raise DeviceAccessError("No capture device is attached to this session")

    async def release(self, handle):
        return None


class RecordingController:
    def __init__(self, device: CaptureDevice | None = None):
        self.device = device or UnavailableCaptureDevice()
        self.is_audio_enabled = False
        self.is_video_enabled = False
        self.last_error: str | None = None
        self._handle: Any = None
        self._acquired = False

    @property
    def is_capturing(self) -> bool:
        return self._acquired

    async def start(self) -> bool:
        if self._acquired:
            return True
        try:
            self._handle = await self.device.acquire()
        except DeviceAccessError as exc:
            self.is_audio_enabled = False
            self.is_video_enabled = False
            self.last_error = exc.message
            logger.warning("Capture device unavailable, continuing text-only: %s", exc.message)
            return False

        self._acquired = True
        self.last_error = None
        self.is_audio_enabled = True
        self.is_video_enabled = True
        return True

    async def stop(self):
        if not self._acquired:
            return
        handle = self._handle
        self._acquired = False
        self._handle = None
        self.is_audio_enabled = False
        self.is_video_enabled = False
        await self.device.release(handle)

    def toggle_audio(self) -> bool:
        self.is_audio_enabled = not self.is_audio_enabled
        return self.is_audio_enabled

    def toggle_video(self) -> bool:
        self.is_video_enabled = not self.is_video_enabled
        return self.is_video_enabled

    @asynccontextmanager
    async def capture(self):
        await self.start()
        try:
            yield self
        finally:
            await self.stop()
