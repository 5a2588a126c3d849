"""
Bounded log of recent conversation turns.
"""

from collections import deque
from typing import Iterator, List, Optional

from .models import Role, Turn

DEFAULT_CONTEXT_TURNS = 5


class ContextBuffer:
    """Keeps the most recent turns in arrival order; the oldest is dropped on overflow."""

    def __init__(self, max_turns: int = DEFAULT_CONTEXT_TURNS):
        if max_turns < 1:
            raise ValueError("max_turns must be >= 1")
        self._turns: deque = deque(maxlen=max_turns)

    @property
    def max_turns(self) -> int:
        return self._turns.maxlen

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    def add(self, role: Role, content: str) -> Turn:
        turn = Turn(role=role, content=content)
        self._turns.append(turn)
        return turn

    def turns(self) -> List[Turn]:
        return list(self._turns)

    def last_user_utterance(self) -> Optional[str]:
        """Content of the most recent user turn still in the buffer."""
        for turn in reversed(self._turns):
            if turn.role is Role.USER:
                return turn.content
        return None

    def clear(self) -> None:
        self._turns.clear()

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(list(self._turns))
