"""
Conversation State Machine
==========================
Drives one voice call session from transport events and user commands.

State flow:
    IDLE --call-start--> GREETING (first call of the session) | ACTIVE
    GREETING/ACTIVE --speech-start--> ACTIVE
    ACTIVE --explicit goodbye / assistant inactivity--> ENDING
    ENDING --grace delay--> transport stop --call-end--> IDLE
    any --call-end / error--> IDLE

Invariants:
- Handlers run to completion on the event loop thread; nothing preempts them
- Every error path leaves listening=False with no timer armed before the
  retry decision is taken
- At most one pending timer per slot (see TimerSet)
- Once closed, the session ignores events and commands
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from ..config import AppConfig, ConfigurationError, require_client_credentials
from ..transport import CallTransport, TransportEvent, TransportFactory
from .context_buffer import DEFAULT_CONTEXT_TURNS, ContextBuffer
from .goodbye import is_explicit_goodbye
from .latency import DEFAULT_WINDOW_SIZE, LatencyRecorder
from .models import ConversationState, Role, Session, SessionSnapshot, SideEffectResult
from .prompts import generate_contextual_prompt
from .retry import RetryPolicy
from .timers import TimerSet, TimerSlot

logger = structlog.get_logger(__name__)

NOT_CONFIGURED_MESSAGE = "Not configured"

SnapshotListener = Callable[[SessionSnapshot], None]


def _extract_error_message(event: Mapping[str, Any]) -> str:
    """Pull a human-readable message out of the transport's error payload."""
    for key in ("message", "error"):
        value = event.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, BaseException):
            return str(value) or type(value).__name__
        if isinstance(value, Mapping):
            for nested in ("message", "errorMsg", "msg"):
                text = value.get(nested)
                if isinstance(text, str) and text.strip():
                    return text.strip()
    return "Unknown error"


class ConversationStateMachine:
    """
    Client-side controller for a single voice call session.

    The transport reports events through ``handle_event``; UI code issues
    ``start``/``stop``/``toggle`` and observes snapshots via listeners.
    """

    def __init__(
        self,
        config: AppConfig,
        transport_factory: TransportFactory,
        *,
        scheduler: Optional[Any] = None,
        clock: Callable[[], float] = time.monotonic,
        context_turns: int = DEFAULT_CONTEXT_TURNS,
        latency_window: int = DEFAULT_WINDOW_SIZE,
    ):
        """
        Args:
            config: Loaded application config (credentials + timing)
            transport_factory: Builds the transport from the public key and event callback
            scheduler: Optional ``call_later`` provider for timers (defaults to the running loop)
            clock: Monotonic clock in seconds, used for latency marks
            context_turns: Number of recent turns kept for contextual prompts
            latency_window: Samples per latency summary
        """
        self.session = Session()
        self.timing = config.timing
        self.timers = TimerSet(scheduler)
        self.context = ContextBuffer(context_turns)
        self.latency = LatencyRecorder(latency_window)
        self.retry_policy = RetryPolicy(
            max_retries=config.timing.max_retries,
            delay_ms=config.timing.retry_delay_ms,
        )
        self.transport: Optional[CallTransport] = None
        self._assistant_id: Optional[str] = None
        self._clock = clock
        self._listeners: List[SnapshotListener] = []
        self._log = logger.bind(session_id=self.session.session_id, correlation_id=self.session.session_id)

        self._handlers: Dict[str, Optional[Callable[[Mapping[str, Any]], None]]] = {
            TransportEvent.CALL_START.value: self._on_call_start,
            TransportEvent.CALL_END.value: self._on_call_end,
            TransportEvent.SPEECH_START.value: self._on_speech_start,
            TransportEvent.SPEECH_END.value: self._on_speech_end,
            TransportEvent.MESSAGE.value: self._on_message,
            TransportEvent.ERROR.value: self._on_error,
            # Reserved for metering; ignored without a snapshot update
            TransportEvent.VOLUME_LEVEL.value: None,
        }

        self._configure(config, transport_factory)

    # ------------------------------------------------------------------ setup

    def _configure(self, config: AppConfig, transport_factory: TransportFactory) -> None:
        try:
            credentials = require_client_credentials(config)
        except ConfigurationError as e:
            self.session.error_message = str(e)
            self._log.error("Voice transport not configured", error=str(e))
            return

        try:
            self.transport = transport_factory(credentials.public_key, self.handle_event)
        except Exception as e:
            self.session.error_message = f"Failed to initialize voice transport: {e}"
            self._log.error("Voice transport initialization failed", error=str(e), exc_info=True)
            return

        self._assistant_id = credentials.assistant_id
        self.session.configured = True
        self._log.info("Voice transport configured", assistant_id=self._assistant_id)

    # -------------------------------------------------------------- observers

    @property
    def state(self) -> ConversationState:
        return self.session.conversation_state

    def snapshot(self) -> SessionSnapshot:
        return self.session.snapshot()

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self) -> List[SideEffectResult]:
        snapshot = self.session.snapshot()
        results = []
        for listener in list(self._listeners):
            name = getattr(listener, "__name__", repr(listener))
            try:
                listener(snapshot)
            except Exception as e:
                self._log.warning("Snapshot listener failed", listener=name, error=str(e), exc_info=True)
                results.append(SideEffectResult.failure(name, e))
            else:
                results.append(SideEffectResult.success(name))
        return results

    # ----------------------------------------------------------------- events

    def handle_event(self, event: Mapping[str, Any]) -> None:
        """Entry point for every transport event."""
        if self.session.closed:
            self._log.debug("Event ignored after close", event_type=event.get("type"))
            return

        event_type = event.get("type")
        if event_type not in self._handlers:
            self._log.debug("Unhandled transport event", event_type=event_type)
            return

        handler = self._handlers[event_type]
        if handler is None:
            return
        handler(event)
        self._publish()

    def _on_call_start(self, event: Mapping[str, Any]) -> None:
        s = self.session
        self.timers.cancel_all()
        s.listening = True
        s.error_message = None
        s.retry_count = 0
        s.busy = False
        s.turn_started_at = None
        s.conversation_state = ConversationState.GREETING if s.first_activation else ConversationState.ACTIVE
        s.first_activation = False
        self._log.info("Call started", conversation_state=s.conversation_state.value)

    def _on_call_end(self, event: Mapping[str, Any]) -> None:
        s = self.session
        self.timers.cancel_all()
        s.listening = False
        s.processing = False
        s.busy = False
        s.turn_started_at = None
        s.conversation_state = ConversationState.IDLE
        self._log.info("Call ended")

    def _on_speech_start(self, event: Mapping[str, Any]) -> None:
        s = self.session
        s.processing = False
        s.busy = False

        if s.conversation_state is ConversationState.ENDING:
            # The closing utterance is playing; keep the pending hangup
            self.timers.cancel(TimerSlot.SILENCE)
            self.timers.cancel(TimerSlot.PROCESSING)
        else:
            self.timers.cancel_all()
            s.conversation_state = ConversationState.ACTIVE

        if s.turn_started_at is not None:
            latency_ms = (self._clock() - s.turn_started_at) * 1000.0
            s.turn_started_at = None
            self.latency.record(latency_ms)

    def _on_speech_end(self, event: Mapping[str, Any]) -> None:
        s = self.session
        s.processing = True
        s.turn_started_at = self._clock()
        self.timers.arm(TimerSlot.SILENCE, self.timing.silence_timeout_ms,
                        self._timer_action(self._on_silence_timeout))
        self.timers.arm(TimerSlot.PROCESSING, self.timing.processing_debounce_ms,
                        self._timer_action(self._on_processing_debounce))

    def _on_message(self, event: Mapping[str, Any]) -> None:
        payload = event.get("message")
        if not isinstance(payload, Mapping):
            payload = {k: v for k, v in event.items() if k != "type"}

        kind = payload.get("type")
        if kind is not None and kind != "transcript":
            self._log.debug("Non-transcript message ignored", message_type=kind)
            return
        transcript_type = payload.get("transcriptType", payload.get("transcript_type"))
        if transcript_type is not None and transcript_type != "final":
            return

        transcript = payload.get("transcript")
        if not isinstance(transcript, str) or not transcript.strip():
            return
        transcript = transcript.strip()

        try:
            role = Role(payload.get("role"))
        except ValueError:
            self._log.debug("Message with unknown role ignored", role=payload.get("role"))
            return

        self.context.add(role, transcript)
        s = self.session

        if role is Role.USER:
            if s.conversation_state is not ConversationState.ENDING and is_explicit_goodbye(transcript):
                self._log.info("Explicit goodbye detected")
                self._enter_ending("goodbye")
            return

        if s.conversation_state is ConversationState.ENDING:
            return
        self.timers.cancel_all()
        self.timers.arm(TimerSlot.ENDING, self.timing.ending_timeout_ms,
                        self._timer_action(lambda: self._enter_ending("inactivity")))

    def _on_error(self, event: Mapping[str, Any]) -> None:
        message = _extract_error_message(event)
        self._log.warning("Transport error", error=message, retry_count=self.session.retry_count)
        self._fail_and_evaluate_retry(message)

    def _fail_and_evaluate_retry(self, message: str) -> None:
        """Reset call state, then let the retry policy classify the failure."""
        s = self.session
        self.timers.cancel_all()
        s.listening = False
        s.processing = False
        s.busy = False
        s.turn_started_at = None
        s.conversation_state = ConversationState.IDLE

        decision = self.retry_policy.evaluate(s, message)
        s.error_message = decision.status_message
        if decision.retry:
            self.timers.arm(TimerSlot.RETRY, decision.delay_ms, self._retry_start)

    # ----------------------------------------------------------------- timers

    def _timer_action(self, action: Callable[[], Any]) -> Callable[[], Any]:
        """Wrap a timer callback so listeners see its effect."""
        def run():
            if self.session.closed:
                return None
            result = action()
            self._publish()
            return result
        return run

    def _enter_ending(self, reason: str) -> None:
        s = self.session
        if s.conversation_state is ConversationState.ENDING or not s.listening:
            return
        self.timers.cancel_all()
        s.conversation_state = ConversationState.ENDING
        s.processing = False
        s.busy = False
        self.timers.arm(TimerSlot.HANGUP, self.timing.goodbye_grace_ms, self._timer_action(self._hangup))
        self._log.info("Conversation ending", reason=reason, grace_ms=self.timing.goodbye_grace_ms)

    def _hangup(self) -> None:
        self._log.info("Stopping call after goodbye grace period")
        self._stop_transport()

    def _on_silence_timeout(self):
        s = self.session
        if not s.listening or s.conversation_state is ConversationState.ENDING:
            return None
        prompt = generate_contextual_prompt(self.context.last_user_utterance())
        s.last_prompt = prompt
        self._log.info("Silence timeout, contextual prompt generated", prompt=prompt)
        if self.transport is not None and self.transport.supports_send:
            return self._deliver_prompt(prompt)
        return None

    async def _deliver_prompt(self, prompt: str) -> SideEffectResult:
        message = {"type": "add-message", "message": {"role": "system", "content": prompt}}
        try:
            await self.transport.send(message)
        except Exception as e:
            self._log.warning("Contextual prompt delivery failed", error=str(e))
            return SideEffectResult.failure("deliver_prompt", e)
        return SideEffectResult.success("deliver_prompt")

    def _on_processing_debounce(self) -> None:
        if self.session.processing:
            self.session.busy = True

    def _retry_start(self):
        s = self.session
        if s.closed or s.listening:
            return None
        self._log.info("Retrying call start", attempt=s.retry_count, max_retries=self.retry_policy.max_retries)
        return self.start(automatic=True)

    # --------------------------------------------------------------- commands

    async def start(self, automatic: bool = False) -> None:
        """
        Start a call. Without credentials this only surfaces an error.

        Args:
            automatic: True for restarts scheduled by the retry policy. Their
                failures go back through the policy like transport errors;
                a failed manual start is terminal.
        """
        s = self.session
        if s.closed:
            return
        if not s.configured or self.transport is None:
            s.error_message = NOT_CONFIGURED_MESSAGE
            self._log.warning("Start requested but voice transport is not configured")
            self._publish()
            return
        if s.listening or s.starting:
            self._log.debug("Start requested while already listening", starting=s.starting)
            return

        self._log.info("Starting call", assistant_id=self._assistant_id, attempt=s.retry_count,
                       automatic=automatic)
        s.starting = True
        try:
            await self.transport.start(self._assistant_id)
        except Exception as e:
            s.listening = False
            self._log.error("Call start failed", error=str(e), automatic=automatic)
            if s.closed:
                return
            if automatic:
                self._fail_and_evaluate_retry(str(e) or type(e).__name__)
            else:
                s.retry_count = 0
                s.error_message = f"Failed to start voice call: {e}"
        finally:
            s.starting = False
        self._publish()

    def stop(self) -> None:
        """Stop the call. Safe to call at any time, including when idle."""
        if self.session.closed:
            return
        self.timers.cancel_all()
        if self.session.listening:
            self._log.info("Stop requested")
        self._stop_transport()
        self._publish()

    async def toggle(self) -> None:
        """Single-button behaviour: stop when listening, start otherwise."""
        if self.session.listening:
            self.stop()
        else:
            await self.start()

    def close(self) -> None:
        """Tear the session down: cancel every timer and release the transport."""
        s = self.session
        if s.closed:
            return
        self.timers.cancel_all()
        self.timers.cancel_running()
        self._stop_transport()
        s.closed = True
        s.listening = False
        s.processing = False
        s.busy = False
        s.conversation_state = ConversationState.IDLE
        self._listeners.clear()
        self._log.info("Session closed")

    def _stop_transport(self) -> None:
        if self.transport is not None:
            self.transport.stop()
