"""
Core data models for the voice call controller.

Typed structures for the session aggregate, conversation turns and the
read-only snapshot handed to UI listeners.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import uuid


class ConversationState(Enum):
    """
    Conversation phase of a session.

    State flow:
        IDLE -> GREETING (first call only) -> ACTIVE -> ENDING -> IDLE
        IDLE -> ACTIVE (every later call)
    """
    IDLE = "idle"
    GREETING = "greeting"
    ACTIVE = "active"
    ENDING = "ending"


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One utterance attributed to the user or the assistant."""
    role: Role
    content: str


@dataclass
class Session:
    """Complete state for one mounted voice widget."""
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Setup state, orthogonal to the conversation phase
    configured: bool = False

    # Call and turn-taking state
    listening: bool = False
    starting: bool = False  # transport.start() awaiting; blocks duplicate starts
    processing: bool = False
    busy: bool = False  # busy indicator, raised after the processing debounce
    conversation_state: ConversationState = ConversationState.IDLE
    first_activation: bool = True

    # Error and retry state
    retry_count: int = 0
    error_message: Optional[str] = None

    # Latency turn-start mark (monotonic seconds)
    turn_started_at: Optional[float] = None

    last_prompt: Optional[str] = None
    closed: bool = False

    def snapshot(self) -> "SessionSnapshot":
        return SessionSnapshot(
            listening=self.listening,
            configured=self.configured,
            processing=self.processing,
            conversation_state=self.conversation_state,
            error_message=self.error_message,
            busy=self.busy,
            retry_count=self.retry_count,
            last_prompt=self.last_prompt,
        )


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a Session for UI renderers."""
    listening: bool
    configured: bool
    processing: bool
    conversation_state: ConversationState
    error_message: Optional[str]
    busy: bool = False
    retry_count: int = 0
    last_prompt: Optional[str] = None


@dataclass(frozen=True)
class SideEffectResult:
    """
    Outcome of an incidental side effect (listener notification, prompt delivery).

    Callers may ignore it; failures are never raised out of event handlers.
    """
    name: str
    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls, name: str) -> "SideEffectResult":
        return cls(name=name, ok=True)

    @classmethod
    def failure(cls, name: str, exc: BaseException) -> "SideEffectResult":
        return cls(name=name, ok=False, error=f"{type(exc).__name__}: {exc}")
