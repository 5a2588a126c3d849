"""
Shared fixtures: a deterministic scheduler/clock and an in-memory transport.
"""

import asyncio

import pytest

from voice_controller.config import AppConfig, CredentialsConfig, TimingConfig
from voice_controller.core import ConversationStateMachine
from voice_controller.transport import CallTransport

PUBLIC_KEY = "0b5e7b0e-2f1c-4c83-9a3e-4f7d2a1b9c10"
ASSISTANT_ID = "7d9f3c2a-8b41-4e6f-a5d2-1c3b5e7f9a20"

_ISOLATED_ENV_VARS = (
    "VAPI_PUBLIC_KEY",
    "NEXT_PUBLIC_VAPI_KEY",
    "VAPI_ASSISTANT_ID",
    "NEXT_PUBLIC_VAPI_ASSISTANT_ID",
    "VAPI_PRIVATE_KEY",
    "SILENCE_TIMEOUT_MS",
    "ENDING_TIMEOUT_MS",
    "GOODBYE_GRACE_MS",
    "RETRY_DELAY_MS",
    "PROCESSING_DEBOUNCE_MS",
    "MAX_RETRIES",
    "VOICE_CONTROLLER_CONFIG",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_TO_FILE",
    "LOG_FILE_PATH",
    "LOG_COLOR",
    "LOG_SHOW_TRACEBACKS",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep the developer's shell environment out of every test."""
    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class FakeHandle:
    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock exposing the ``call_later`` subset of an asyncio loop."""

    def __init__(self):
        self.now = 0.0
        self._handles = []

    def time(self):
        return self.now

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.now + delay, callback, args)
        self._handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self._handles if not h.cancelled]

    def advance(self, seconds):
        """Move time forward, firing due handles in deadline order."""
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._handles.remove(handle)
            self.now = handle.when
            handle.callback(*handle.args)
        self.now = target


class FakeTransport(CallTransport):
    """Records commands; tests push events through ``emit``."""

    def __init__(self, on_event, public_key=None):
        super().__init__(on_event)
        self.public_key = public_key
        self.start_calls = []
        self.stop_calls = 0
        self.sent = []
        self.start_error = None
        self.start_gate = None
        self.send_error = None

    async def start(self, assistant_id):
        self.start_calls.append(assistant_id)
        if self.start_gate is not None:
            await self.start_gate.wait()
        if self.start_error is not None:
            raise self.start_error

    def stop(self):
        self.stop_calls += 1

    async def send(self, message):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)

    def emit(self, event_type, **payload):
        self.on_event({"type": event_type, **payload})


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def app_config():
    return AppConfig(
        credentials=CredentialsConfig(public_key=PUBLIC_KEY, assistant_id=ASSISTANT_ID),
        timing=TimingConfig(),
    )


@pytest.fixture
def transport_factory():
    def factory(public_key, on_event):
        transport = FakeTransport(on_event, public_key=public_key)
        factory.created.append(transport)
        return transport
    factory.created = []
    return factory


@pytest.fixture
def controller(app_config, transport_factory, scheduler):
    return ConversationStateMachine(
        app_config,
        transport_factory,
        scheduler=scheduler,
        clock=scheduler.time,
    )


async def _drain():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def drain():
    """Await to let tasks spawned by fired timers run to completion."""
    return _drain
