"""Short motivational messages shown when a timer phase ends."""

from __future__ import annotations

import random

_NUDGES: list[str] = [
    "Session done. That is 50 points closer to your next level.",
    "Every focused block adds up. Keep the streak going.",
    "Nice work. Your future self is grateful.",
    "One more session in the books.",
    "Small steps, done daily, beat cramming every time.",
    "You stayed with it. That is the hard part.",
    "Progress does not have to be perfect to count.",
]

_BREAK_MESSAGES: list[str] = [
    "Break over. Ready for another round?",
    "Stretch, breathe, and let's get back to it.",
    "Refreshed? Time to focus again.",
    "Water break done. Back to the books.",
]


def get_nudge() -> str:
    """Return a single random encouragement message."""
    return random.choice(_NUDGES)


def get_break_message() -> str:
    """Return a message for the end of a break."""
    return random.choice(_BREAK_MESSAGES)
