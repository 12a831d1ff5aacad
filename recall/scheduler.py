"""
recall.scheduler
----------------

This module defines the functions that review and schedule cards.

The scheduler holds no state of its own: the parameters are passed into every call and a new
Card is returned each time, so cards can be reviewed from several threads at once. Reviews of
the same card must be made one after the other by the caller, each on the latest stored card.

Functions:
    review_card: Reviews a card with a given rating and returns the rescheduled card.
    preview_reviews: Returns the outcome of every possible rating for a card.
    is_due: Whether a card should be shown now.
    due_cards: The cards that should be shown now, in the order they should be shown.
"""

from __future__ import annotations
from collections.abc import Iterable
from copy import copy
from datetime import datetime, timedelta, timezone
import logging
import math
from recall.card import Card
from recall.exceptions import InvalidParameters, InvalidRating, InvalidTimestamp
from recall.parameters import Parameters
from recall.rating import Rating
from recall.state import State

logger = logging.getLogger(__name__)


def review_card(
    card: Card,
    rating: Rating | int,
    parameters: Parameters,
    review_datetime: datetime | None = None,
) -> Card:
    """
    Reviews a card with a given rating at a given time.

    Args:
        card: The card being reviewed. It is not modified.
        rating: The chosen rating for the card being reviewed.
        parameters: The scheduling parameters to review the card with.
        review_datetime: The date and time of the review. Defaults to the current UTC time.

    Returns:
        Card: The updated, reviewed card.

    Raises:
        InvalidRating: If `rating` is not a valid Rating.
        InvalidTimestamp: If `review_datetime` is not timezone-aware and set to UTC, or is before the card's last review.
        InvalidParameters: If `parameters` fail validation.
    """

    try:
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValueError(rating)
        rating = Rating(rating)
    except ValueError:
        raise InvalidRating(f"{rating!r} is not a valid rating") from None

    if review_datetime is None:
        review_datetime = datetime.now(timezone.utc)
    elif (review_datetime.tzinfo is None) or (review_datetime.tzinfo != timezone.utc):
        raise InvalidTimestamp("datetime must be timezone-aware and set to UTC")

    if card.last_review is not None and review_datetime < card.last_review:
        raise InvalidTimestamp(
            f"review at {review_datetime.isoformat()} is before the last review of card "
            f"{card.card_id} at {card.last_review.isoformat()}"
        )

    violations = parameters.validate()
    if violations:
        logger.warning(
            "Refusing to review card %s with invalid parameters: %s",
            card.card_id,
            "; ".join(violations),
        )
        raise InvalidParameters(violations)

    previous_state = card.state
    card = copy(card)

    match card.state:
        case State.New | State.Learning:
            # a new card is rated as if it were on the first learning step
            card.state = State.Learning
            card.interval = 0
            next_interval = _next_step(
                card,
                rating=rating,
                steps=parameters.learning_steps,
                good_interval=parameters.graduating_interval,
                easy_interval=parameters.easy_interval,
            )

        case State.Relearning:
            # the card returns to the interval that was set when it lapsed
            lapsed_interval = max(card.interval, 1)
            next_interval = _next_step(
                card,
                rating=rating,
                steps=parameters.relearning_steps,
                good_interval=lapsed_interval,
                easy_interval=lapsed_interval,
            )

        case State.Review:
            # the floor may have been raised since the card was last scheduled
            card.ease_factor = max(card.ease_factor, parameters.min_ease_factor)

            match rating:
                case Rating.Again:
                    card.ease_factor -= parameters.ease_factor_decrement
                    card.interval = _round_interval(
                        card.interval * parameters.lapse_interval
                    )
                    card.state = State.Relearning
                    card.step = 0
                    next_interval = parameters.relearning_steps[0]

                case Rating.Hard:
                    card.interval = _round_interval(
                        card.interval * parameters.hard_interval_multiplier
                    )
                    next_interval = timedelta(days=card.interval)

                case Rating.Good:
                    card.interval = _round_interval(card.interval * card.ease_factor)
                    next_interval = timedelta(days=card.interval)

                case Rating.Easy:
                    card.ease_factor += parameters.ease_factor_increment
                    card.interval = _round_interval(
                        card.interval * card.ease_factor * parameters.easy_bonus
                    )
                    next_interval = timedelta(days=card.interval)

    card.ease_factor = max(card.ease_factor, parameters.min_ease_factor)
    card.due = review_datetime + next_interval
    card.last_review = review_datetime
    card.iteration += 1

    logger.debug(
        "Reviewed card %s: %s rated %s -> %s, due %s",
        card.card_id,
        previous_state.name,
        rating.name,
        card.state.name,
        card.due.isoformat(),
    )

    return card


def preview_reviews(
    card: Card,
    parameters: Parameters,
    review_datetime: datetime | None = None,
) -> dict[Rating, Card]:
    """
    Returns the card that each rating would produce, without reviewing anything.

    Useful for showing the next due date on each rating button.

    Args:
        card: The card about to be reviewed.
        parameters: The scheduling parameters to review the card with.
        review_datetime: The date and time of the review. Defaults to the current UTC time.

    Returns:
        dict[Rating, Card]: The reviewed card for every rating.
    """

    if review_datetime is None:
        review_datetime = datetime.now(timezone.utc)

    return {
        rating: review_card(
            card=card,
            rating=rating,
            parameters=parameters,
            review_datetime=review_datetime,
        )
        for rating in Rating
    }


def is_due(card: Card, now: datetime | None = None) -> bool:
    """
    Whether a card should be shown at the given time.

    New cards are always due.
    """

    if card.state == State.New or card.due is None:
        return True

    if now is None:
        now = datetime.now(timezone.utc)

    return now >= card.due


def due_cards(cards: Iterable[Card], now: datetime | None = None) -> list[Card]:
    """
    Returns the cards that are due, in the order they should be studied.

    New cards come first, in the order they were given, followed by the scheduled cards
    that are due, earliest due date first.
    """

    if now is None:
        now = datetime.now(timezone.utc)

    new_cards = []
    scheduled_cards = []
    for card in cards:
        if card.state == State.New:
            new_cards.append(card)
        elif is_due(card, now=now):
            scheduled_cards.append(card)

    scheduled_cards.sort(key=lambda card: card.due)

    return new_cards + scheduled_cards


def _next_step(
    card: Card,
    *,
    rating: Rating,
    steps: tuple[timedelta, ...],
    good_interval: int,
    easy_interval: int,
) -> timedelta:
    # the steps may have been shortened since the card was last scheduled
    step = min(card.step, len(steps) - 1)

    match rating:
        case Rating.Again:
            card.step = 0
            return steps[0]

        case Rating.Hard:
            card.step = step
            return steps[step]

        case Rating.Good:
            if step + 1 < len(steps):
                card.step = step + 1
                return steps[card.step]

            return _graduate(card, interval=good_interval)

        case Rating.Easy:
            return _graduate(card, interval=easy_interval)

    raise InvalidRating(f"{rating!r} is not a valid rating")


def _graduate(card: Card, *, interval: int) -> timedelta:
    card.state = State.Review
    card.step = 0
    card.interval = int(interval)

    return timedelta(days=card.interval)


def _round_interval(days: float) -> int:
    # round half up, and never less than a day
    return max(1, math.floor(days + 0.5))


__all__ = ["review_card", "preview_reviews", "is_due", "due_cards"]
