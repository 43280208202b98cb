"""Lifecycle of a single voice interview attempt, as seen by the client.

The controller drives a :class:`CallChannel` (the voice platform's live call)
and a local :class:`CameraDevice` preview through::

    Idle -> Connecting -> Live -> Ending -> Ended
                           \\-> Aborted   (camera toggled while live)

Each attempt gets its own channel from ``channel_factory``; listeners are
attached to that instance only and detached when it is released. Camera
tracks and the channel are released on every exit path: normal end, abort,
failed connect and teardown.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

# Channel events
CALL_START = "call-start"
CALL_END = "call-end"
SPEECH_START = "speech-start"
SPEECH_END = "speech-end"
MESSAGE = "message"
ERROR = "error"


class SessionState(str, Enum):
    IDLE = "Idle"
    CONNECTING = "Connecting"
    LIVE = "Live"
    ENDING = "Ending"
    ENDED = "Ended"
    ABORTED = "Aborted"


TERMINAL_STATES = (SessionState.ENDED, SessionState.ABORTED)


class CallChannelError(Exception):
    """The voice call could not be started or was lost."""


class CameraPermissionDenied(Exception):
    """The user (or the OS) refused access to the camera."""


class CallChannel(ABC):
    """A single voice call. Not reusable across attempts."""

    def __init__(self):
        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)
        self._stopped = False

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._listeners[event].append(handler)

    def off(self, event: str, handler: Callable[..., Any]) -> None:
        handlers = self._listeners.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, ()))
        return sum(len(handlers) for handlers in self._listeners.values())

    async def emit(self, event: str, *args: Any) -> None:
        """Deliver an event to listeners in registration order."""
        for handler in list(self._listeners.get(event, ())):
            result = handler(*args)
            if inspect.isawaitable(result):
                await result

    @property
    def stopped(self) -> bool:
        return self._stopped

    async def stop(self) -> None:
        """Hang up. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        await self._hangup()

    @abstractmethod
    async def start(self, assistant_id: str, variable_values: dict) -> Optional[str]:
        """Open the call; returns the platform call id when known up front."""

    @abstractmethod
    async def _hangup(self) -> None:
        ...


class MediaStream(ABC):
    @abstractmethod
    def stop(self) -> None:
        """Stop every track in the stream."""


class CameraDevice(ABC):
    @abstractmethod
    async def open(self) -> MediaStream:
        """Acquire a preview stream; raises CameraPermissionDenied."""


@dataclass
class Notice:
    message: str
    blocking: bool = False
    acknowledged: bool = False


@dataclass
class Session:
    user_id: Optional[str] = None
    state: SessionState = SessionState.IDLE
    call_id: Optional[str] = None
    camera_enabled: bool = False
    transcript: str = ""  # latest partial utterance only
    assistant_talking: bool = False
    saved: bool = False  # latch: a result was written, or must never be


ResultSink = Callable[[Session], Awaitable[Any]]


class InterviewSessionController:
    def __init__(
        self,
        channel_factory: Callable[[], CallChannel],
        camera: CameraDevice,
        assistant_id: str,
        record_fallback: Optional[ResultSink] = None,
        navigate: Optional[Callable[[str], Any]] = None,
        redirect_path: str = "/dashboard",
    ):
        self._channel_factory = channel_factory
        self._camera = camera
        self._assistant_id = assistant_id
        self._record_fallback = record_fallback
        self._navigate = navigate
        self._redirect_path = redirect_path

        self.session = Session()
        self.notices: list[Notice] = []
        self._channel: Optional[CallChannel] = None
        self._stream: Optional[MediaStream] = None
        self._hangup_requested = False
        self._handlers = {
            CALL_START: self._on_call_start,
            CALL_END: self._on_call_end,
            SPEECH_START: self._on_speech_start,
            SPEECH_END: self._on_speech_end,
            MESSAGE: self._on_message,
            ERROR: self._on_error,
        }

    async def __aenter__(self) -> "InterviewSessionController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def blocking_notice(self) -> Optional[Notice]:
        return next(
            (n for n in reversed(self.notices) if n.blocking and not n.acknowledged),
            None,
        )

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    async def start_session(self, user_id: Optional[str]) -> bool:
        """Open a call bound to ``user_id``. Returns False if it did not start."""
        if self.state not in (SessionState.IDLE,):
            logger.warning("[Session] start requested while %s", self.state.value)
            return False
        if not user_id:
            logger.warning("[Session] start rejected: no signed-in user")
            self._notify("You need to be signed in to start an interview.", blocking=True)
            return False

        self.session = Session(user_id=user_id, camera_enabled=self.session.camera_enabled)
        self.session.state = SessionState.CONNECTING

        channel = self._channel_factory()
        self._channel = channel
        for event, handler in self._handlers.items():
            channel.on(event, handler)

        try:
            call_id = await channel.start(self._assistant_id, {"userId": user_id})
        except (CallChannelError, OSError, asyncio.TimeoutError) as e:
            logger.warning("[Session] Could not connect call: %s", e)
            await self._reset_after_failed_start()
            return False
        except Exception:
            logger.exception("[Session] Call channel failed to start")
            await self._reset_after_failed_start()
            raise

        if call_id and not self.session.call_id:
            self.session.call_id = call_id
        logger.info("[Session] Call requested for user %s (call_id=%s)", user_id, self.session.call_id)
        return True

    async def toggle_camera(self) -> None:
        """Turn the preview on or off; during a live call this aborts the session."""
        if self.state == SessionState.LIVE:
            await self._abort(
                "Camera change detected during a live interview. "
                "This session has been terminated and will not be scored."
            )
            return

        # No new preview once the session is winding down or over
        if self.state == SessionState.ENDING or self.state in TERMINAL_STATES:
            self._release_camera()
            return

        if self._stream is not None:
            self._release_camera()
            return

        try:
            self._stream = await self._camera.open()
        except CameraPermissionDenied as e:
            logger.info("[Session] Camera permission denied: %s", e)
            self.session.camera_enabled = False
            self._notify("Camera access was denied. Check your browser permissions.")
            return
        self.session.camera_enabled = True

    async def end_session(self) -> None:
        """Ask the platform to hang up; recording happens in the end handler."""
        channel = self._channel
        if channel is None or self.state not in (SessionState.CONNECTING, SessionState.LIVE):
            return
        self._hangup_requested = True
        try:
            await channel.stop()
            # Some transports never echo call-end after a local hangup
            if self.state in (SessionState.CONNECTING, SessionState.LIVE):
                await self._handle_termination()
        finally:
            self._hangup_requested = False

    async def acknowledge(self) -> None:
        """Dismiss the blocking notice; leaves the room if the session is over."""
        notice = self.blocking_notice
        if notice is None:
            return
        notice.acknowledged = True
        if self.state == SessionState.ABORTED:
            await self._release_media()
            self._go(self._redirect_path)

    async def close(self) -> None:
        """Release everything. Called on teardown from any state."""
        await self._release_media()
        if self.state != SessionState.ABORTED:
            self.session.state = SessionState.ENDED
        self.session.assistant_talking = False

    # ------------------------------------------------------------------
    # Channel events
    # ------------------------------------------------------------------

    def _on_call_start(self, call_id: Optional[str] = None) -> None:
        if self.state != SessionState.CONNECTING:
            return
        if call_id:
            self.session.call_id = call_id
        self.session.state = SessionState.LIVE
        logger.info("[Session] Live (call_id=%s)", self.session.call_id)

    def _on_speech_start(self, *_: Any) -> None:
        self.session.assistant_talking = True

    def _on_speech_end(self, *_: Any) -> None:
        self.session.assistant_talking = False

    def _on_message(self, message: Any) -> None:
        if not isinstance(message, dict):
            return
        if message.get("type") == "transcript" and message.get("transcriptType") == "partial":
            self.session.transcript = str(message.get("transcript") or "")

    async def _on_call_end(self, *_: Any) -> None:
        await self._handle_termination()

    async def _on_error(self, error: Any = None) -> None:
        logger.warning("[Session] Call channel error: %s", error)
        await self._handle_termination()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _handle_termination(self) -> None:
        state = self.state
        if state in (SessionState.IDLE, SessionState.ENDING) or state in TERMINAL_STATES:
            return

        if state == SessionState.CONNECTING:
            await self._release_channel()
            self.session.state = SessionState.IDLE
            if self._hangup_requested:
                logger.info("[Session] Call cancelled before it connected")
            else:
                self._notify("The call ended before it connected. Please try again.")
            return

        self.session.state = SessionState.ENDING
        self.session.assistant_talking = False
        self.session.transcript = ""
        try:
            await self._write_fallback()
        finally:
            await self._release_media()
            self.session.state = SessionState.ENDED
        logger.info("[Session] Ended (call_id=%s, saved=%s)", self.session.call_id, self.session.saved)
        self._go(self._redirect_path)

    async def _write_fallback(self) -> None:
        if self._record_fallback is None or self.session.saved:
            return
        if not self.session.call_id:
            logger.warning("[Session] No call id; leaving the result to the platform callback")
            return
        try:
            await self._record_fallback(self.session)
        except Exception:
            logger.exception("[Session] Fallback result write failed for %s", self.session.call_id)
            self._notify("We could not save this session yet. It will appear once evaluated.")
            return
        self.session.saved = True

    async def _abort(self, message: str) -> None:
        logger.warning("[Session] Integrity violation, aborting call %s", self.session.call_id)
        self.session.saved = True
        self.session.state = SessionState.ABORTED
        self.session.assistant_talking = False
        self.session.transcript = ""
        await self._release_media()
        self._notify(message, blocking=True)

    async def _reset_after_failed_start(self) -> None:
        await self._release_channel()
        self.session.state = SessionState.IDLE
        self._notify("Could not connect to the interviewer. Please try again.")

    def _release_camera(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
        self.session.camera_enabled = False

    async def _release_channel(self) -> None:
        channel, self._channel = self._channel, None
        if channel is None:
            return
        for event, handler in self._handlers.items():
            channel.off(event, handler)
        try:
            await channel.stop()
        except CallChannelError as e:
            logger.warning("[Session] Error while stopping call channel: %s", e)

    async def _release_media(self) -> None:
        try:
            self._release_camera()
        finally:
            await self._release_channel()

    def _notify(self, message: str, blocking: bool = False) -> None:
        self.notices.append(Notice(message=message, blocking=blocking))

    def _go(self, path: str) -> None:
        if self._navigate is not None:
            self._navigate(path)
