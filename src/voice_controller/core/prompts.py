"""
Contextual follow-up prompts for silent stretches of a call.

Maps the most recent user utterance to a topic-matched follow-up
suggestion. Rules are checked in order; the first rule with a matching
keyword wins, so an utterance about the cost of building an app is a
project question, not a pricing one.
"""

import re
from typing import Optional, Pattern, Tuple

# (topic, keyword patterns, follow-up); patterns are matched on word boundaries
_RULE_SOURCE: Tuple[Tuple[str, Tuple[str, ...], str], ...] = (
    (
        "project",
        (r"projects?", r"develop\w*", r"build\w*", r"apps?", r"websites?", r"software"),
        "Would you like to tell me more about your project so I can suggest how we can help build it?",
    ),
    (
        "contact",
        (r"contact\w*", r"e-?mail\w*", r"phone", r"call", r"reach", r"talk to (?:someone|a person|a human)"),
        "Would you like me to share the best way to get in touch with our team?",
    ),
    (
        "services",
        (r"services?", r"offer\w*", r"provide\w*", r"help with"),
        "Is there a particular service you'd like to hear more about?",
    ),
    (
        "location",
        (r"locat\w*", r"where", r"address", r"offices?"),
        "Would you like directions or details about where we're based?",
    ),
    (
        "pricing",
        (r"price\w*", r"pricing", r"costs?", r"budget\w*", r"quotes?", r"how much", r"rates?"),
        "Would you like a rough idea of pricing, or should I set up a quote for you?",
    ),
)

TOPIC_RULES: Tuple[Tuple[str, Pattern, str], ...] = tuple(
    (topic, re.compile(r"\b(?:" + "|".join(patterns) + r")\b"), follow_up)
    for topic, patterns, follow_up in _RULE_SOURCE
)

GENERIC_FOLLOW_UP = "Is there anything else I can help you with?"
NO_CONTEXT_FOLLOW_UP = "I'm here whenever you're ready. What would you like to know?"


def match_topic(utterance: Optional[str]) -> Optional[str]:
    """Return the first matching topic name, or None."""
    if not utterance or not utterance.strip():
        return None
    text = utterance.lower()
    for topic, pattern, _ in TOPIC_RULES:
        if pattern.search(text):
            return topic
    return None


def generate_contextual_prompt(last_user_utterance: Optional[str]) -> str:
    """
    Build a follow-up suggestion for the given utterance.

    Pure and deterministic. With no prior utterance the no-context fallback
    is returned; with an utterance that matches no rule, the generic one.
    """
    if not last_user_utterance or not last_user_utterance.strip():
        return NO_CONTEXT_FOLLOW_UP
    text = last_user_utterance.lower()
    for _, pattern, follow_up in TOPIC_RULES:
        if pattern.search(text):
            return follow_up
    return GENERIC_FOLLOW_UP
