"""
Client-side controller for a voice call session against a conversational-AI transport.
"""

from .config import AppConfig, load_config
from .core import ConversationState, ConversationStateMachine, SessionSnapshot
from .transport import CallTransport, TransportEvent

__version__ = "0.1.0"

__all__ = [
    'AppConfig',
    'CallTransport',
    'ConversationState',
    'ConversationStateMachine',
    'SessionSnapshot',
    'TransportEvent',
    'load_config',
]
