"""
Unit tests for the bounded conversation context buffer.
"""

import pytest

from voice_controller.core.context_buffer import ContextBuffer
from voice_controller.core.models import Role, Turn


def test_keeps_most_recent_turns_in_order():
    buffer = ContextBuffer(max_turns=5)
    for i in range(8):
        buffer.add(Role.USER if i % 2 == 0 else Role.ASSISTANT, f"turn {i}")

    assert len(buffer) == 5
    assert [t.content for t in buffer] == [f"turn {i}" for i in range(3, 8)]


def test_last_user_utterance():
    buffer = ContextBuffer()
    assert buffer.last_user_utterance() is None

    buffer.add(Role.USER, "what do you offer")
    buffer.add(Role.ASSISTANT, "lots")
    assert buffer.last_user_utterance() == "what do you offer"


def test_user_turn_evicted():
    buffer = ContextBuffer(max_turns=2)
    buffer.add(Role.USER, "hello")
    buffer.add(Role.ASSISTANT, "hi")
    buffer.append(Turn(Role.ASSISTANT, "anything else?"))
    assert buffer.last_user_utterance() is None


def test_clear():
    buffer = ContextBuffer()
    buffer.add(Role.USER, "x")
    buffer.clear()
    assert buffer.turns() == []


def test_invalid_size():
    with pytest.raises(ValueError):
        ContextBuffer(max_turns=0)
