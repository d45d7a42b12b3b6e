"""Mood labels and their display attributes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MoodAttributes:
    """Numeric value and display hints for a mood label."""

    value: int  # 1 (worst) .. 5 (best)
    emoji: str
    color: str


MOOD_MAPPINGS: dict[str, MoodAttributes] = {
    "Happy": MoodAttributes(value=5, emoji="😊", color="#10B981"),
    "Good": MoodAttributes(value=4, emoji="🙂", color="#059669"),
    "Okay": MoodAttributes(value=3, emoji="😐", color="#F59E0B"),
    "Worried": MoodAttributes(value=2, emoji="😟", color="#EF4444"),
    "Sad": MoodAttributes(value=1, emoji="😢", color="#DC2626"),
}

MIN_MOOD_VALUE = 1
MAX_MOOD_VALUE = 5


def mood_for_value(
    value: int | None,
    mappings: dict[str, MoodAttributes] | None = None,
) -> str | None:
    """Reverse lookup: numeric value -> mood label, or None if unmapped."""
    if value is None:
        return None
    table = MOOD_MAPPINGS if mappings is None else mappings
    for label, attrs in table.items():
        if attrs.value == value:
            return label
    return None
