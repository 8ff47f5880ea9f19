"""Session controller: the core of evichat.

Owns the EVI websocket, dispatches decoded frames to side effects (audio
playback, chat log, retrieval queries) and serializes everything written
to the socket.

All state is mutated on the event loop that runs the controller. Frames
are handled one at a time by a single receive task; retrieval and
synthesis calls run in tracked background tasks so they never block
frame dispatch. Results that resolve after the session has been torn
down are discarded.
"""

import asyncio
import base64
import contextlib
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

import websockets

from ..audio.base import AudioBridge
from ..chat import APPENDED, ChatEntry, ChatLog, Role
from ..config import ChatConfig, Credentials
from ..errors import TransportError
from ..protocol import (
    AssistantMessageEvent,
    AudioOutputEvent,
    ChatMetadataEvent,
    ErrorEvent,
    InboundEvent,
    UnknownEvent,
    UserInterruptionEvent,
    UserMessageEvent,
    decode_frame,
    encode_audio_input,
    encode_session_settings,
    encode_user_input,
    top_three,
)
from ..retrieval import RetrievalProvider, retrieval_from_settings
from ..tts import SpeechSynthesizer, create_speech_synthesizer
from .events import (
    ConnectionChanged,
    EntryAppended,
    EntryRetracted,
    MuteChanged,
    SessionEvent,
    Subscription,
)
from .state import ConnectionState, SessionState
from .url import build_chat_url, redact_url

logger = logging.getLogger(__name__)

SEARCHING_MESSAGE = "Searching knowledge base..."
KNOWLEDGE_BASE_PREFIX = "Knowledge Base: "
KNOWLEDGE_INSIGHT_PREFIX = "Knowledge Insight: "
RETRIEVAL_FAILED_MESSAGE = "Could not fetch from knowledge base. Please try again."

# audio_output frames carry whole base64 segments
MAX_FRAME_SIZE = 16 * 1024 * 1024

Connector = Callable[[str], Awaitable[Any]]


async def default_connector(url: str) -> Any:
    """Open the EVI websocket with the websockets library."""
    return await websockets.connect(url, max_size=MAX_FRAME_SIZE)


class SessionController:
    """Drives one EVI voice session plus knowledge-base side queries.

    Example:
        controller = SessionController(ChatConfig.from_env(), audio_bridge)
        async with controller:
            await controller.connect()
            await controller.send_text("What should I know about tire pressure?")
    """

    def __init__(
        self,
        config: ChatConfig,
        audio: AudioBridge,
        chat_log: ChatLog | None = None,
        retrieval: RetrievalProvider | None = None,
        synthesizer: SpeechSynthesizer | None = None,
        connector: Connector | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            config: Session configuration
            audio: Audio capture/playback device to drive
            chat_log: Log to append to (a new one is created if omitted)
            retrieval: Knowledge-base client; built from config.retrieval if omitted
            synthesizer: TTS client; built from the Hume API key if omitted
            connector: Coroutine function opening the websocket for a URL
        """
        self._config = config
        self._audio = audio
        self.chat_log = chat_log if chat_log is not None else ChatLog()
        self._connector = connector or default_connector
        self._owned: list[RetrievalProvider | SpeechSynthesizer] = []

        if retrieval is None and config.retrieval is not None:
            retrieval = retrieval_from_settings(config.retrieval)
            self._owned.append(retrieval)
        self._retrieval = retrieval

        if synthesizer is None and config.tts_enabled and config.credentials.api_key:
            synthesizer = create_speech_synthesizer("hume", api_key=config.credentials.api_key)
            self._owned.append(synthesizer)
        self._synthesizer = synthesizer if config.tts_enabled else None

        self.state = SessionState()
        self._ws: Any | None = None
        self._receive_task: asyncio.Task | None = None
        self._capture_task: asyncio.Task | None = None
        self._send_lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()
        # Bumped on teardown so late HTTP results are dropped
        self._epoch = 0
        self._subscribers: list[Subscription] = []

        self._handlers: dict[type[InboundEvent], Callable[[Any], Awaitable[None]]] = {
            ErrorEvent: self._on_error,
            ChatMetadataEvent: self._on_chat_metadata,
            AudioOutputEvent: self._on_audio_output,
            UserInterruptionEvent: self._on_user_interruption,
            AssistantMessageEvent: self._on_assistant_message,
            UserMessageEvent: self._on_user_message,
            UnknownEvent: self._on_unknown,
        }

        self.chat_log.add_listener(self._on_log_change)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self.state.connected and self._ws is not None

    @property
    def is_muted(self) -> bool:
        return self.state.muted

    @property
    def is_playing(self) -> bool:
        return self._audio.is_playing

    @property
    def retrieval_enabled(self) -> bool:
        return self._retrieval is not None

    @property
    def pending_tasks(self) -> int:
        """Number of retrieval/synthesis calls still in flight."""
        return len(self._pending)

    def subscribe(self) -> Subscription:
        """Subscribe to chat log and connection notifications."""
        subscription = Subscription(on_close=self._unsubscribe)
        self._subscribers.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def _publish(self, event: SessionEvent) -> None:
        for subscription in list(self._subscribers):
            subscription.push(event)

    def _on_log_change(self, change: str, entry: ChatEntry) -> None:
        if change == APPENDED:
            self._publish(EntryAppended(entry=entry))
        else:
            self._publish(EntryRetracted(entry=entry))

    def _set_connection(self, connection: ConnectionState) -> None:
        if self.state.connection is connection:
            return
        self.state.connection = connection
        self._publish(ConnectionChanged(state=connection))

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(
        self,
        credentials: Credentials | None = None,
        config_id: str | None = None,
    ) -> None:
        """Open the EVI socket and start processing inbound frames.

        Args:
            credentials: Overrides config.credentials
            config_id: Overrides config.config_id

        Raises:
            ConfigurationError: If credentials are invalid (no socket is opened)
            TransportError: If the socket could not be opened
        """
        if self.state.connection is not ConnectionState.DISCONNECTED:
            logger.debug("connect() ignored, session is %s", self.state.connection.value)
            return

        credentials = credentials or self._config.credentials
        if config_id is None:
            config_id = self._config.config_id
        url = build_chat_url(credentials, config_id, host=self._config.evi_host)

        self.state = SessionState(muted=self.state.muted)
        self._set_connection(ConnectionState.CONNECTING)
        logger.info("Connecting to %s", redact_url(url))

        epoch = self._epoch
        try:
            ws = await self._connector(url)
        except Exception as e:
            logger.error("Failed to connect: %s", e)
            if self._epoch == epoch:
                self._set_connection(ConnectionState.DISCONNECTED)
            raise TransportError(str(e)) from e

        # disconnect() ran while the socket was opening
        if self._epoch != epoch or self.state.connection is not ConnectionState.CONNECTING:
            logger.info("Connect abandoned, session was disconnected")
            await self._close_socket(ws)
            return

        self._ws = ws
        self._set_connection(ConnectionState.CONNECTED)
        self._receive_task = asyncio.create_task(self._receive_loop(ws))
        logger.info("Connected")

    async def _receive_loop(self, ws: Any) -> None:
        """Process inbound frames sequentially until the socket closes."""
        try:
            async for raw in ws:
                try:
                    await self.on_frame(raw)
                except Exception as e:
                    logger.error("Error handling frame: %s", e, exc_info=True)
        except websockets.ConnectionClosed as e:
            logger.info("Connection closed: %s", e)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Connection error: %s", e)
        finally:
            if self._ws is ws:
                await self._handle_connection_closed(ws)

    async def _handle_connection_closed(self, ws: Any) -> None:
        """Common path for socket errors and closures initiated by the server."""
        self._ws = None
        self._epoch += 1
        await self._stop_recording()
        await self._close_socket(ws)
        self._set_connection(ConnectionState.DISCONNECTED)
        logger.info("Connection closed")

    async def _close_socket(self, ws: Any) -> None:
        try:
            await ws.close()
        except Exception as e:
            logger.warning("Error closing socket: %s", e)

    async def disconnect(self, wait_pending: bool = False) -> None:
        """Stop playback and capture, then close the socket.

        Safe to call repeatedly and before any connect.

        Args:
            wait_pending: Await in-flight retrieval/synthesis calls first and
                keep their results; otherwise their results are discarded
        """
        if wait_pending:
            await self.drain()

        ws, self._ws = self._ws, None
        self._interrupt()
        await self._stop_recording()

        if ws is not None:
            await self._close_socket(ws)

        task, self._receive_task = self._receive_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self._epoch += 1
        if self.state.connection is not ConnectionState.DISCONNECTED:
            self._set_connection(ConnectionState.DISCONNECTED)
            logger.info("Disconnected")

    async def drain(self) -> None:
        """Wait until no retrieval/synthesis call is in flight."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """Disconnect, abandon in-flight calls and release HTTP clients."""
        await self.disconnect()

        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for client in self._owned:
            await client.close()
        self._owned.clear()

        for subscription in list(self._subscribers):
            subscription.close()

    async def __aenter__(self) -> "SessionController":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Inbound dispatch
    # ------------------------------------------------------------------

    async def on_frame(self, raw: str | bytes) -> None:
        """Decode one inbound frame and apply its side effects."""
        event = decode_frame(raw)
        logger.debug("Received message: %s", event.type)
        handler = self._handlers.get(type(event), self._on_unknown)
        await handler(event)

    async def _on_error(self, event: ErrorEvent) -> None:
        logger.warning("EVI error %s (%s): %s", event.code, event.slug, event.message)

    async def _on_chat_metadata(self, event: ChatMetadataEvent) -> None:
        logger.info("Chat metadata: chat_id=%s chat_group_id=%s", event.chat_id, event.chat_group_id)
        await self._send(encode_session_settings())
        if not self.state.muted:
            await self._start_recording()

    async def _on_audio_output(self, event: AudioOutputEvent) -> None:
        self.state.interrupted = False
        self._audio.enqueue_audio(event.data)

    async def _on_user_interruption(self, event: UserInterruptionEvent) -> None:
        self._interrupt()

    async def _on_assistant_message(self, event: AssistantMessageEvent) -> None:
        self._append_transcript(event)

    async def _on_user_message(self, event: UserMessageEvent) -> None:
        self._append_transcript(event)
        # Barge-in: new user speech always halts assistant audio
        self._interrupt()

        transcript = event.message.content.strip()
        if self._retrieval is not None and transcript:
            self._spawn(self._answer_voice_query(transcript))

    async def _on_unknown(self, event: InboundEvent) -> None:
        logger.debug("Unknown message: %.200s", event.raw)

    def _append_transcript(self, event: AssistantMessageEvent | UserMessageEvent) -> None:
        role = Role.ASSISTANT if event.message.role == "assistant" else Role.USER
        self.chat_log.append(ChatEntry(
            role=role,
            content=event.message.content,
            scores=top_three(event.prosody_scores),
        ))

    def _interrupt(self) -> None:
        self._audio.stop_playback()
        self.state.interrupted = True

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def _send(self, frame: str) -> bool:
        """Write one frame; writes never interleave. Returns False if dropped."""
        ws = self._ws
        if ws is None:
            return False
        async with self._send_lock:
            try:
                await ws.send(frame)
            except websockets.ConnectionClosed as e:
                logger.warning("Dropped outbound frame, connection closed: %s", e)
                return False
        return True

    async def send_audio(self, data: str) -> bool:
        """Send one base64 linear16 chunk if the socket is open."""
        if not self.is_connected:
            return False
        return await self._send(encode_audio_input(data))

    async def send_text(self, text: str) -> None:
        """Submit typed user text.

        The text goes to EVI as user_input when connected and, independently,
        to the knowledge base when retrieval is configured. Both answers are
        appended to the chat log in the order they resolve.
        """
        text = text.strip()
        if not text:
            return

        self.chat_log.append(ChatEntry.user(text))

        if self._retrieval is not None:
            placeholder = self.chat_log.append(ChatEntry.loading(SEARCHING_MESSAGE))
            self._spawn(self._answer_text_query(text, placeholder))

        if self.is_connected:
            await self._send(encode_user_input(text))

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    async def mute(self) -> None:
        """Stop microphone capture. No socket I/O."""
        await self._stop_recording()
        if not self.state.muted:
            self.state.muted = True
            self._publish(MuteChanged(muted=True))

    async def unmute(self) -> None:
        """Resume microphone capture. No socket I/O."""
        if self.state.muted:
            self.state.muted = False
            self._publish(MuteChanged(muted=False))
        if self.is_connected:
            await self._start_recording()

    async def _start_recording(self) -> None:
        if self._capture_task is not None and not self._capture_task.done():
            return
        try:
            await self._audio.start_recording()
        except Exception as e:
            logger.error("Error starting audio capture: %s", e)
            return
        self._capture_task = asyncio.create_task(self._capture_loop())

    async def _capture_loop(self) -> None:
        try:
            async for chunk in self._audio.audio_stream():
                await self.send_audio(chunk)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Error recording audio: %s", e)

    async def _stop_recording(self) -> None:
        task, self._capture_task = self._capture_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        try:
            await self._audio.stop_recording()
        except Exception as e:
            logger.error("Error stopping audio capture: %s", e)

    # ------------------------------------------------------------------
    # Knowledge base and speech
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task failed: %s", exc, exc_info=exc)

    async def _answer_text_query(self, text: str, placeholder: ChatEntry) -> None:
        epoch = self._epoch
        try:
            answer = await self._retrieval.query(text)
        except Exception as e:
            logger.error("Error querying knowledge base: %s", e)
            self.chat_log.retract(placeholder)
            if self._epoch == epoch:
                self.chat_log.append(ChatEntry.assistant(RETRIEVAL_FAILED_MESSAGE))
            return

        self.chat_log.retract(placeholder)
        if self._epoch != epoch:
            logger.debug("Discarding knowledge base answer from a closed session")
            return
        if answer is None:
            logger.warning("Knowledge base returned no answer for: %.50s", text)
            return

        self.chat_log.append(ChatEntry.assistant(f"{KNOWLEDGE_BASE_PREFIX}{answer}"))
        await self.speak(answer)

    async def _answer_voice_query(self, transcript: str) -> None:
        epoch = self._epoch
        try:
            answer = await self._retrieval.query(transcript)
        except Exception as e:
            logger.error("Error querying knowledge base for voice input: %s", e)
            return

        if answer is None or self._epoch != epoch:
            return

        self.chat_log.append(ChatEntry.assistant(f"{KNOWLEDGE_INSIGHT_PREFIX}{answer}"))
        await self.speak(answer)

    async def speak(self, text: str) -> bool:
        """Synthesize text and queue it for playback.

        Returns:
            True if audio was queued
        """
        if self._synthesizer is None:
            return False

        epoch = self._epoch
        try:
            audio = await self._synthesizer.synthesize(text)
        except Exception as e:
            logger.error("Error converting text to speech: %s", e)
            return False

        if audio is None or self._epoch != epoch:
            return False

        self.state.interrupted = False
        self._audio.enqueue_audio(base64.b64encode(audio).decode("ascii"))
        logger.debug("Playing TTS audio for: %.50s...", text)
        return True
