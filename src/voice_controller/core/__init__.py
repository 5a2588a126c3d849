"""
Core session logic: state machine, timers, retry policy, latency and context tracking.
"""

from .context_buffer import ContextBuffer
from .goodbye import is_explicit_goodbye
from .latency import LatencyRecorder, LatencySummary, nearest_rank_percentile
from .models import ConversationState, Role, Session, SessionSnapshot, SideEffectResult, Turn
from .prompts import generate_contextual_prompt
from .retry import MAX_RETRIES, RetryDecision, RetryPolicy, is_retryable
from .state_machine import ConversationStateMachine
from .timers import TimerSet, TimerSlot

__all__ = [
    'ContextBuffer',
    'ConversationState',
    'ConversationStateMachine',
    'LatencyRecorder',
    'LatencySummary',
    'MAX_RETRIES',
    'RetryDecision',
    'RetryPolicy',
    'Role',
    'Session',
    'SessionSnapshot',
    'SideEffectResult',
    'TimerSet',
    'TimerSlot',
    'Turn',
    'generate_contextual_prompt',
    'is_explicit_goodbye',
    'is_retryable',
    'nearest_rank_percentile',
]
