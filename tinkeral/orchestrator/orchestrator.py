"""Streaming conversation orchestrator.

``ConversationOrchestrator`` owns the in-memory conversation list and drives
one reply stream at a time:

1. The user message is appended in memory first (it cannot fail), then
   persisted best-effort.
2. The credential is read; a missing key ends the send with an error and no
   network call.
3. An empty ``model`` placeholder is inserted before the stream starts.
4. Stream deltas are accumulated and committed to the placeholder at most
   once per commit interval; the final content is always committed.
5. Finish reason and usage are merged into metadata only at finalization.
6. On failure the partial content is committed before the error is surfaced.
   Cancellation never populates ``error``.

The orchestrator is a plain object: construct one per session and pass it to
whatever needs it. Observers ``subscribe`` and receive ``(event, SessionState)``
after each change. Mutations are guarded by a re-entrant lock and listeners
run outside it, so a listener may call ``abort_generation``.
"""

from __future__ import annotations

import copy
import threading
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Set

from ..base.errors import ErrorType, ProviderError, normalize_error
from ..base.factory import ProviderFactory
from ..base.interfaces import LLMProvider, SettingsProvider
from ..base.logging import LogContext, get_logger, log_event, normalized_log_event
from ..base.models import (
    ChatRequest,
    Conversation,
    ConversationMetadata,
    Message,
    MessageMetadata,
    ModelParameters,
)
from ..base.streaming import CommitThrottle
from ..config.defaults import (
    COMMIT_INTERVAL_MS,
    DEFAULT_CONVERSATION_TITLE,
    DEFAULT_PROVIDER,
    FALLBACK_MODEL,
)
from ..persistence.interfaces import ConversationNotFoundError, ConversationRepository
from .errors import GenerationInProgressError
from .send_phase import SendPhase
from .session_state import SessionState
from .stream_session import StreamSession

Listener = Callable[[str, SessionState], None]
ClientFactory = Callable[[str, str], LLMProvider]

LOAD_FAILED = "Failed to load conversations"
DELETE_FAILED = "Failed to delete conversation"
UPDATE_FAILED = "Failed to update message"
ABORT_REASON = "aborted by user"


def _default_client_factory(provider_id: str, api_key: str) -> LLMProvider:
    return ProviderFactory.create(provider_id, api_key=api_key)


class ConversationOrchestrator:
    """Conversation state holder and reply-stream driver.

    Parameters
    ----------
    repository: ConversationRepository
        Durable store; every write is best-effort.
    settings: SettingsProvider
        Source of the credential and conversation defaults.
    provider_id: str
        Provider used for replies (``"google"`` by default).
    client_factory: Callable[[str, str], LLMProvider]
        Builds a provider client from ``(provider_id, api_key)``.
    clock: Callable[[], float]
        Monotonic clock (seconds) driving commit throttling.
    commit_interval_ms: float
        Minimum spacing between in-memory commits while streaming.
    """

    def __init__(
        self,
        repository: ConversationRepository,
        settings: SettingsProvider,
        *,
        provider_id: str = DEFAULT_PROVIDER,
        client_factory: Optional[ClientFactory] = None,
        clock: Callable[[], float] = time.monotonic,
        commit_interval_ms: float = COMMIT_INTERVAL_MS,
    ) -> None:
        self._repository = repository
        self._settings = settings
        self._provider_id = provider_id
        self._client_factory = client_factory or _default_client_factory
        self._clock = clock
        self._commit_interval_ms = commit_interval_ms
        self._logger = get_logger("tinkeral.orchestrator")

        self._lock = threading.RLock()
        self._conversations: List[Conversation] = []
        self._active_id: Optional[str] = None
        self._is_loading = False
        self._is_streaming = False
        self._error: Optional[str] = None
        self._error_type: Optional[ErrorType] = None
        self._phase = SendPhase.IDLE
        self._session: Optional[StreamSession] = None
        self._pending: Set[str] = set()
        self._listeners: Dict[int, Listener] = {}
        self._next_listener = 0

    # ------------------------------------------------------------------
    # Observation

    @property
    def state(self) -> SessionState:
        """Return an immutable snapshot of the current state."""
        with self._lock:
            return SessionState(
                conversations=tuple(copy.deepcopy(self._conversations)),
                active_conversation_id=self._active_id,
                is_loading=self._is_loading,
                is_streaming=self._is_streaming,
                error=self._error,
                error_type=self._error_type,
                phase=self._phase,
            )

    @property
    def pending_writes(self) -> Set[str]:
        """Ids of conversations whose last write failed and awaits a retry."""
        with self._lock:
            return set(self._pending)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for ``(event, state)`` notifications; return the unsubscriber."""
        with self._lock:
            handle = self._next_listener
            self._next_listener += 1
            self._listeners[handle] = listener

        def _unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(handle, None)

        return _unsubscribe

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """Return a copy of one in-memory conversation."""
        with self._lock:
            conversation = self._find(conversation_id)
            return copy.deepcopy(conversation) if conversation is not None else None

    # ------------------------------------------------------------------
    # Conversation management

    def load_conversations(self) -> List[Conversation]:
        """Replace the in-memory list with the repository contents.

        The conversation currently streaming keeps its in-memory version.
        On failure the list is left unchanged and ``error`` is set.
        """
        with self._lock:
            streaming = self._session is not None
            if not streaming:
                self._is_loading = True
        self._emit("conversation.loading")
        try:
            loaded = self._repository.get_all()
        except Exception as exc:  # surfaced through ``error``
            log_event(self._logger, "load.error", error=str(exc))
            with self._lock:
                self._error = LOAD_FAILED
                self._error_type = normalize_error(exc).type
                if not streaming:
                    self._is_loading = False
            self._emit("conversation.load_failed")
            return []
        with self._lock:
            live_id = self._session.conversation_id if self._session is not None else None
            live = self._find(live_id) if live_id else None
            merged = [c for c in loaded if c.id != live_id]
            if live is not None:
                merged.append(live)
            self._conversations = merged
            self._sort()
            if self._active_id is not None and self._find(self._active_id) is None:
                self._active_id = None
            if self._session is None:
                self._is_loading = False
            result = copy.deepcopy(self._conversations)
        self._emit("conversation.loaded")
        return result

    def create_conversation(
        self,
        model_id: Optional[str] = None,
        parameters: Optional[ModelParameters] = None,
        system_prompt: Optional[str] = None,
        *,
        title: str = DEFAULT_CONVERSATION_TITLE,
    ) -> Conversation:
        """Create a conversation, make it active and persist it best-effort."""
        with self._lock:
            conversation = self._new_conversation(model_id, parameters, system_prompt, title)
            snapshot = copy.deepcopy(conversation)
        self._emit("conversation.created")
        self._persist_new(snapshot)
        return copy.deepcopy(snapshot)

    def delete_conversation(self, conversation_id: str) -> None:
        """Remove a conversation; an active stream targeting it is aborted first."""
        with self._lock:
            streaming_here = self._session is not None and self._session.conversation_id == conversation_id
        if streaming_here:
            self.abort_generation()
        with self._lock:
            self._conversations = [c for c in self._conversations if c.id != conversation_id]
            if self._active_id == conversation_id:
                self._active_id = None
            self._pending.discard(conversation_id)
        self._emit("conversation.deleted")
        try:
            self._repository.delete(conversation_id)
        except Exception as exc:  # surfaced through ``error``
            log_event(self._logger, "persist.error", LogContext(conversation_id=conversation_id), op="delete", error=str(exc))
            with self._lock:
                self._error = DELETE_FAILED
                self._error_type = normalize_error(exc).type
            self._emit("conversation.delete_failed")

    def set_active_conversation(self, conversation_id: Optional[str]) -> None:
        """Select the conversation used by ``send_message`` (``None`` clears it)."""
        with self._lock:
            if conversation_id is not None and self._find(conversation_id) is None:
                raise ConversationNotFoundError(conversation_id)
            self._active_id = conversation_id
        self._emit("conversation.activated")

    def update_message(self, conversation_id: str, message_id: str, new_content: str) -> None:
        """Replace a message's content, bump ``updated_at`` and re-persist.

        Raises
        ------
        ConversationNotFoundError
            When the conversation or message does not exist in memory.
        """
        with self._lock:
            conversation = self._find(conversation_id)
            message = conversation.find_message(message_id) if conversation is not None else None
            if conversation is None or message is None:
                raise ConversationNotFoundError(f"{conversation_id}/{message_id}")
            message.content = new_content
            conversation.touch()
            self._sort()
        self._emit("message.updated")
        if not self._persist(conversation_id):
            with self._lock:
                self._error = UPDATE_FAILED
            self._emit("message.update_failed")

    def flush_pending(self) -> int:
        """Retry failed best-effort writes; return how many are still pending."""
        for conversation_id in sorted(self.pending_writes):
            self._persist(conversation_id)
        return len(self.pending_writes)

    # ------------------------------------------------------------------
    # Sending and streaming

    def send_message(self, content: str) -> Optional[Message]:
        """Send ``content`` to the active conversation and stream the reply.

        A conversation is created from settings defaults when none is active.

        Returns
        -------
        Optional[Message]
            Copy of the assistant message as last committed (complete,
            partial after a failure or abort), or ``None`` when the send ended
            before a placeholder existed.

        Raises
        ------
        GenerationInProgressError
            When a previous reply is still streaming.
        ValueError
            When ``content`` is blank.
        """
        if not content or not content.strip():
            raise ValueError("message content must not be empty")
        if self._pending:
            self.flush_pending()

        created: Optional[Conversation] = None
        with self._lock:
            if self._session is not None:
                raise GenerationInProgressError("a reply is already streaming")
            conversation = self._find(self._active_id) if self._active_id else None
            if conversation is None:
                conversation = self._new_conversation(None, None, None, DEFAULT_CONVERSATION_TITLE)
                created = copy.deepcopy(conversation)
            conversation.messages.append(Message(role="user", content=content))
            conversation.touch()
            self._sort()
            session = StreamSession(conversation_id=conversation.id)
            self._session = session
            self._is_loading = True
            self._is_streaming = True
            self._error = None
            self._error_type = None
            self._phase = SendPhase.USER_MESSAGE_COMMITTED
            ctx = LogContext(provider=self._provider_id, model=conversation.model_id, conversation_id=conversation.id)
        if created is not None:
            self._emit("conversation.created")
            self._persist_new(created)
        self._emit("message.user")
        self._persist(session.conversation_id)
        normalized_log_event(self._logger, "send.start", ctx, phase="start")

        api_key = self._settings.get_api_key(self._provider_id)
        if not api_key:
            message = f"API key not found for {self._provider_id} provider"
            log_event(self._logger, "send.missing_key", ctx)
            self._end_before_stream(session, message, ErrorType.AUTH)
            return None
        try:
            client = self._client_factory(self._provider_id, api_key)
        except Exception as exc:  # surfaced through ``error``
            err = normalize_error(exc, self._provider_id)
            log_event(self._logger, "send.client_error", ctx, error=str(exc))
            self._end_before_stream(session, err.user_message if isinstance(exc, ProviderError) else str(exc), err.type)
            return None

        with self._lock:
            if self._session is not session:
                return None
            conversation = self._find(session.conversation_id)
            if conversation is None:  # deleted between the user message and now
                self._release(session, SendPhase.CANCELLED)
                return None
            placeholder = Message(role="model", content="", metadata=MessageMetadata(model=conversation.model_id))
            request = ChatRequest(
                messages=copy.deepcopy(conversation.messages),
                model=conversation.model_id,
                parameters=copy.deepcopy(conversation.parameters),
                system_prompt=conversation.system_prompt,
            )
            conversation.messages.append(placeholder)
            session.message_id = placeholder.id
            self._phase = SendPhase.ASSISTANT_PLACEHOLDER_CREATED
        ctx.message_id = placeholder.id
        self._emit("message.placeholder")

        try:
            self._stream(client, request, session)
        except Exception as exc:
            self._fail(session, exc, ctx)
        else:
            self._finalize(session, ctx)
        return self._message_copy(session)

    def abort_generation(self) -> bool:
        """Cancel the active stream and clear the busy flags immediately.

        Returns ``False`` (no-op) when nothing is streaming, including after
        the stream has already finished.
        """
        with self._lock:
            session = self._session
            if session is None:
                return False
            self._release(session, SendPhase.CANCELLED)
        session.token.cancel(ABORT_REASON)
        log_event(
            self._logger,
            "stream.abort",
            LogContext(provider=self._provider_id, conversation_id=session.conversation_id, message_id=session.message_id),
        )
        self._emit("stream.abort")
        return True

    def _stream(self, client: LLMProvider, request: ChatRequest, session: StreamSession) -> None:
        throttle = CommitThrottle(self._commit_interval_ms, self._clock)
        session.throttle = throttle
        with self._lock:
            if self._session is session:
                self._phase = SendPhase.STREAMING
        stream: Iterator[Any] = iter(client.stream_chat(request, session.token))
        try:
            for chunk in stream:
                session.token.raise_if_cancelled()
                if chunk.delta:
                    session.buffer.append(chunk.delta)
                if chunk.finish_reason is not None:
                    session.finish_reason = chunk.finish_reason
                if chunk.usage is not None:
                    session.usage = chunk.usage
                if throttle.should_commit():
                    self._commit(session, "stream.commit")
            session.token.raise_if_cancelled()
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()

    def _commit(self, session: StreamSession, event: str) -> None:
        with self._lock:
            message = self._session_message(session)
            if message is None:
                return
            message.content = session.content
        self._emit(event)

    def _finalize(self, session: StreamSession, ctx: LogContext) -> None:
        usage = session.usage
        with self._lock:
            conversation = self._find(session.conversation_id)
            message = self._session_message(session)
            if message is not None and conversation is not None:
                message.content = session.content
                terminal = MessageMetadata(
                    tokens=usage.total_tokens if usage is not None else None,
                    finish_reason=session.finish_reason,
                )
                message.metadata = (message.metadata or MessageMetadata()).merged(terminal)
                if usage is not None:
                    meta = conversation.metadata or ConversationMetadata()
                    meta.total_tokens += usage.total_tokens
                    conversation.metadata = meta
                conversation.touch()
                self._sort()
            if session.throttle is not None:
                session.throttle.force()
            if self._session is session:
                self._release(session, SendPhase.FINALIZED)
        normalized_log_event(
            self._logger,
            "send.complete",
            ctx,
            phase="finalize",
            emitted=bool(session.buffer),
            tokens=usage,
            finish_reason=session.finish_reason,
            commits=session.throttle.commits if session.throttle is not None else None,
        )
        self._emit("stream.final")
        self._persist(session.conversation_id)

    def _fail(self, session: StreamSession, exc: BaseException, ctx: LogContext) -> None:
        err = normalize_error(exc, self._provider_id, cancellation_token=session.token)
        cancelled = err.is_cancellation
        with self._lock:
            conversation = self._find(session.conversation_id)
            message = self._session_message(session)
            if message is not None:
                message.content = session.content
            if conversation is not None:
                conversation.touch()
                self._sort()
            if session.throttle is not None:
                session.throttle.force()
            if self._session is session:
                if not cancelled:
                    self._error = err.user_message if isinstance(exc, ProviderError) else (str(exc) or err.user_message)
                    self._error_type = err.type
                self._release(session, SendPhase.CANCELLED if cancelled else SendPhase.FAILED)
        if cancelled:
            log_event(self._logger, "stream.cancelled", ctx, emitted=bool(session.buffer))
        else:
            normalized_log_event(
                self._logger,
                "send.error",
                ctx,
                phase="finalize",
                emitted=bool(session.buffer),
                error_code=err.type.value,
                error=err.message,
            )
        self._emit("stream.abort" if cancelled else "stream.error")
        self._persist(session.conversation_id)

    def _end_before_stream(self, session: StreamSession, message: str, error_type: ErrorType) -> None:
        with self._lock:
            if self._session is not session:
                return
            self._error = message
            self._error_type = error_type
            self._release(session, SendPhase.FAILED)
        self._emit("stream.error")

    # ------------------------------------------------------------------
    # Internals (callers hold ``self._lock`` unless noted)

    def _release(self, session: StreamSession, phase: SendPhase) -> None:
        if self._session is session:
            self._session = None
        self._is_loading = False
        self._is_streaming = False
        self._phase = phase

    def _find(self, conversation_id: Optional[str]) -> Optional[Conversation]:
        return next((c for c in self._conversations if c.id == conversation_id), None)

    def _session_message(self, session: StreamSession) -> Optional[Message]:
        conversation = self._find(session.conversation_id)
        if conversation is None or session.message_id is None:
            return None
        return conversation.find_message(session.message_id)

    def _sort(self) -> None:
        self._conversations.sort(key=lambda c: c.updated_at, reverse=True)

    def _new_conversation(
        self,
        model_id: Optional[str],
        parameters: Optional[ModelParameters],
        system_prompt: Optional[str],
        title: str,
    ) -> Conversation:
        conversation = Conversation(
            title=title,
            model_id=model_id or self._settings.default_model or FALLBACK_MODEL,
            parameters=copy.deepcopy(parameters or self._settings.default_parameters),
            system_prompt=system_prompt,
        )
        self._conversations.insert(0, conversation)
        self._active_id = conversation.id
        self._sort()
        return conversation

    def _message_copy(self, session: StreamSession) -> Optional[Message]:
        with self._lock:
            message = self._session_message(session)
            return copy.deepcopy(message) if message is not None else None

    def _persist_new(self, conversation: Conversation) -> None:
        """Store a new conversation; called without the lock."""
        try:
            self._repository.create(conversation)
        except Exception as exc:  # best-effort write, retried by flush_pending
            log_event(self._logger, "persist.error", LogContext(conversation_id=conversation.id), op="create", error=str(exc))
            with self._lock:
                self._pending.add(conversation.id)

    def _persist(self, conversation_id: str) -> bool:
        """Write the in-memory conversation to the repository; called without the lock.

        Unknown ids are created (their initial write may have failed). On
        failure the id is queued for ``flush_pending``.
        """
        with self._lock:
            conversation = self._find(conversation_id)
            if conversation is None:
                self._pending.discard(conversation_id)
                return False
            snapshot = copy.deepcopy(conversation)
        changes = {
            "title": snapshot.title,
            "messages": snapshot.messages,
            "metadata": snapshot.metadata,
            "updated_at": snapshot.updated_at,
        }
        try:
            try:
                self._repository.update(conversation_id, changes)
            except ConversationNotFoundError:
                self._repository.create(snapshot)
        except Exception as exc:  # best-effort write, retried by flush_pending
            log_event(self._logger, "persist.error", LogContext(conversation_id=conversation_id), op="update", error=str(exc))
            with self._lock:
                self._pending.add(conversation_id)
            return False
        with self._lock:
            self._pending.discard(conversation_id)
        return True

    def _emit(self, event: str) -> None:
        """Notify listeners with a fresh snapshot; called without the lock."""
        with self._lock:
            listeners = list(self._listeners.values())
        if not listeners:
            return
        state = self.state
        for listener in listeners:
            try:
                listener(event, state)
            except Exception as exc:  # listener failures are logged only
                log_event(self._logger, "listener.error", event_name=event, error=str(exc))


__all__ = ["ConversationOrchestrator", "ClientFactory", "Listener"]
