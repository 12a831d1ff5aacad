"""
recall.card
-----------

This module defines the Card class.

Classes:
    Card: Represents a flashcard and its scheduling state.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import json
import time
from typing import TypedDict
from typing_extensions import Self
from recall.state import State

DEFAULT_EASE_FACTOR = 2.5


class CardDict(TypedDict):
    """
    JSON-serializable dictionary representation of a Card object.
    """

    card_id: int
    front: str
    back: str
    state: int
    step: int
    ease_factor: float
    interval: int
    iteration: int
    due: str | None
    last_review: str | None


@dataclass(init=False)
class Card:
    """
    Represents a flashcard and its scheduling state.

    Attributes:
        card_id: The id of the card. Defaults to the epoch milliseconds of when the card was created.
        front: The prompt side of the card.
        back: The answer side of the card.
        state: The card's current scheduling state.
        step: Index into the learning or relearning steps. Always 0 in the New and Review states.
        ease_factor: Multiplier controlling how fast Review intervals grow.
        interval: Days between reviews while in Review. While in Relearning, the interval
            the card returns to once its relearning steps are done. 0 otherwise.
        iteration: The number of completed reviews.
        due: The date and time when the card is due next, or None if the card was never reviewed.
        last_review: The date and time of the card's last review.
    """

    card_id: int
    front: str
    back: str
    state: State
    step: int
    ease_factor: float
    interval: int
    iteration: int
    due: datetime | None
    last_review: datetime | None

    def __init__(
        self,
        card_id: int | None = None,
        front: str = "",
        back: str = "",
        state: State = State.New,
        step: int = 0,
        ease_factor: float = DEFAULT_EASE_FACTOR,
        interval: int = 0,
        iteration: int = 0,
        due: datetime | None = None,
        last_review: datetime | None = None,
    ) -> None:
        if card_id is None:
            # epoch milliseconds of when the card was created
            card_id = int(datetime.now(timezone.utc).timestamp() * 1000)
            # wait 1ms to prevent potential card_id collision on next Card creation
            time.sleep(0.001)
        self.card_id = card_id

        self.front = front
        self.back = back
        self.state = State(state)
        self.step = step
        self.ease_factor = ease_factor
        self.interval = interval
        self.iteration = iteration
        self.due = due
        self.last_review = last_review

        self._check_invariants()

    def _check_invariants(self) -> None:
        if self.step < 0 or self.interval < 0 or self.iteration < 0:
            raise ValueError(
                f"Card {self.card_id}: step, interval and iteration must not be negative"
            )

        if not self.ease_factor > 0:
            raise ValueError(
                f"Card {self.card_id}: ease_factor must be positive, got {self.ease_factor}"
            )

        if self.state == State.New:
            if self.iteration != 0 or self.last_review is not None:
                raise ValueError(
                    f"Card {self.card_id}: a New card can not have been reviewed"
                )
        elif self.iteration == 0 or self.last_review is None or self.due is None:
            raise ValueError(
                f"Card {self.card_id}: a {self.state.name} card needs an iteration, a last_review and a due date"
            )

        for name in ("due", "last_review"):
            value = getattr(self, name)
            if value is not None and (
                (value.tzinfo is None) or (value.tzinfo != timezone.utc)
            ):
                raise ValueError(
                    f"Card {self.card_id}: {name} must be timezone-aware and set to UTC"
                )

        if self.state in (State.New, State.Review) and self.step != 0:
            raise ValueError(
                f"Card {self.card_id}: step must be 0 in the {self.state.name} state"
            )

    def time_until_review(self, now: datetime | None = None) -> timedelta | None:
        """
        Returns how long until the card is due.

        Args:
            now: The current date and time. Defaults to the current UTC time.

        Returns:
            The time left until the card's due date, zero or negative if it is overdue,
            or None for a New card, which is due immediately.
        """

        if self.due is None:
            return None

        if now is None:
            now = datetime.now(timezone.utc)

        return self.due - now

    def to_dict(self) -> CardDict:
        """
        Returns a JSON-serializable dictionary representation of the Card object.

        This method is specifically useful for storing Card objects in a database.

        Returns:
            A dictionary representation of the Card object.
        """

        return {
            "card_id": self.card_id,
            "front": self.front,
            "back": self.back,
            "state": self.state.value,
            "step": self.step,
            "ease_factor": self.ease_factor,
            "interval": self.interval,
            "iteration": self.iteration,
            "due": self.due.isoformat() if self.due else None,
            "last_review": self.last_review.isoformat() if self.last_review else None,
        }

    @classmethod
    def from_dict(cls, source_dict: CardDict) -> Self:
        """
        Creates a Card object from an existing dictionary.

        Args:
            source_dict: A dictionary representing an existing Card object.

        Returns:
            A Card object created from the provided dictionary.

        Raises:
            ValueError: If a field is malformed or the fields describe an inconsistent card.
        """

        return cls(
            card_id=int(source_dict["card_id"]),
            front=str(source_dict["front"]),
            back=str(source_dict["back"]),
            state=State(int(source_dict["state"])),
            step=int(source_dict["step"]),
            ease_factor=float(source_dict["ease_factor"]),
            interval=int(source_dict["interval"]),
            iteration=int(source_dict["iteration"]),
            due=(
                datetime.fromisoformat(source_dict["due"])
                if source_dict["due"]
                else None
            ),
            last_review=(
                datetime.fromisoformat(source_dict["last_review"])
                if source_dict["last_review"]
                else None
            ),
        )

    def to_json(self, indent: int | str | None = None) -> str:
        """
        Returns a JSON-serialized string of the Card object.

        Args:
            indent: Equivalent argument to the indent in json.dumps()

        Returns:
            str: A JSON-serialized string of the Card object.
        """

        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, source_json: str) -> Self:
        """
        Creates a Card object from a JSON-serialized string.

        Args:
            source_json: A JSON-serialized string of an existing Card object.

        Returns:
            Self: A Card object created from the JSON string.
        """

        source_dict: CardDict = json.loads(source_json)
        return cls.from_dict(source_dict=source_dict)


__all__ = ["Card", "DEFAULT_EASE_FACTOR"]
