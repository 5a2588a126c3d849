"""
Voice call transport contract.

The transport is the external voice-call SDK or channel. The controller only
drives it through ``start``/``stop`` (and ``send`` when available) and
consumes the lifecycle events it reports through ``on_event``. Socket,
signalling and audio handling live entirely behind this interface.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Mapping


class TransportEvent(str, Enum):
    """Event types reported by a transport, as ``event["type"]``."""
    CALL_START = "call-start"
    CALL_END = "call-end"
    SPEECH_START = "speech-start"  # assistant begins responding
    SPEECH_END = "speech-end"      # user stops talking
    MESSAGE = "message"            # {"message": {"type", "role", "transcript", "transcriptType"}}
    ERROR = "error"                # {"message": str} or {"error": str | dict}
    VOLUME_LEVEL = "volume-level"  # {"level": float}, reserved for metering


EventCallback = Callable[[Mapping[str, Any]], None]


class CallTransport(ABC):
    """
    Base class for voice call transports.

    Events are delivered at least once and in order within a call, by
    calling ``on_event`` with a dict whose ``type`` is a TransportEvent value.
    """

    def __init__(self, on_event: EventCallback):
        self.on_event = on_event

    @abstractmethod
    async def start(self, assistant_id: str) -> None:
        """Start a call with the given assistant. Raises on failure."""

    @abstractmethod
    def stop(self) -> None:
        """Stop the current call. Must be safe to call when no call is active."""

    async def send(self, message: Dict[str, Any]) -> None:
        """Send a control message into the live call (optional capability)."""
        raise NotImplementedError(f"{type(self).__name__} does not support send()")

    @property
    def supports_send(self) -> bool:
        return type(self).send is not CallTransport.send


# (public_key, on_event) -> transport instance
TransportFactory = Callable[[str, EventCallback], CallTransport]
