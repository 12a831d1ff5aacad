"""
recall
------

Recall is a spaced-repetition scheduling engine in the SM-2 family. It moves cards through
their learning, review and relearning states and computes when each card should be shown next.
"""

from recall.card import Card, DEFAULT_EASE_FACTOR
from recall.exceptions import (
    InvalidParameters,
    InvalidRating,
    InvalidTimestamp,
    SchedulingError,
)
from recall.parameters import (
    DEFAULT_PARAMETERS,
    Parameters,
    parse_steps,
    validate_parameters,
)
from recall.rating import Rating
from recall.scheduler import due_cards, is_due, preview_reviews, review_card
from recall.state import State

__all__ = [
    "Card",
    "State",
    "Rating",
    "Parameters",
    "DEFAULT_PARAMETERS",
    "DEFAULT_EASE_FACTOR",
    "review_card",
    "preview_reviews",
    "is_due",
    "due_cards",
    "parse_steps",
    "validate_parameters",
    "SchedulingError",
    "InvalidParameters",
    "InvalidTimestamp",
    "InvalidRating",
]
