"""
Explicit-farewell detection for user transcripts.

Only explicit farewells end a call. Routine politeness ("thanks",
"thank you", "great") is not a goodbye, since callers often thank the
assistant mid-conversation and keep asking questions.
"""

import re
from typing import FrozenSet

GOODBYE_PHRASES: FrozenSet[str] = frozenset({
    "goodbye",
    "good bye",
    "bye bye",
    "bye-bye",
    "see you later",
    "talk to you later",
    "that's all for now",
    "that is all for now",
    "have a good day",
})

_GOODBYE_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in sorted(GOODBYE_PHRASES, key=len, reverse=True)) + r")\b"
)


def _normalize(transcript: str) -> str:
    # Speech-to-text output uses curly apostrophes as often as straight ones
    text = transcript.lower().replace("’", "'")
    return re.sub(r"\s+", " ", text).strip()


def is_explicit_goodbye(transcript: str) -> bool:
    """True when the transcript contains one of the explicit farewell phrases."""
    if not transcript:
        return False
    return _GOODBYE_RE.search(_normalize(transcript)) is not None
