"""
recall.parameters
-----------------

This module defines the Parameters class, the timing and ease settings shared by all cards,
along with the functions used to validate and edit them.

Classes:
    Parameters: The configurable settings of the scheduler.
"""

from __future__ import annotations
from collections.abc import Callable, Sequence
from dataclasses import dataclass, fields, replace
from datetime import timedelta
from numbers import Real
import json
import math
from typing import TypedDict
from typing_extensions import Self
from recall.card import DEFAULT_EASE_FACTOR
from recall.exceptions import InvalidParameters

STEP_FIELDS = ("learning_steps", "relearning_steps")
DAY_FIELDS = ("graduating_interval", "easy_interval")


class ParametersDict(TypedDict):
    """
    JSON-serializable dictionary representation of a Parameters object.

    Steps are expressed in minutes.
    """

    learning_steps: list[float]
    relearning_steps: list[float]
    graduating_interval: int
    easy_interval: int
    easy_bonus: float
    hard_interval_multiplier: float
    lapse_interval: float
    min_ease_factor: float
    ease_factor_increment: float
    ease_factor_decrement: float


@dataclass(init=False)
class Parameters:
    """
    The configurable settings of the scheduler.

    A Parameters object is passed explicitly to every scheduling call, so edits only affect
    reviews made after them.

    Attributes:
        learning_steps: Short delays that schedule cards in the Learning state.
        relearning_steps: Short delays that schedule cards in the Relearning state.
        graduating_interval: Days assigned to a card leaving the Learning state with a Good rating.
        easy_interval: Days assigned to a card leaving the Learning state with an Easy rating.
        easy_bonus: Extra multiplier applied when a Review card is rated Easy.
        hard_interval_multiplier: Multiplier applied to the interval when a Review card is rated Hard.
        lapse_interval: Multiplier applied to the interval when a Review card is rated Again.
        min_ease_factor: The lowest ease factor a card can have.
        ease_factor_increment: Added to the ease factor when a Review card is rated Easy.
        ease_factor_decrement: Subtracted from the ease factor when a Review card is rated Again.
    """

    learning_steps: tuple[timedelta, ...]
    relearning_steps: tuple[timedelta, ...]
    graduating_interval: int
    easy_interval: int
    easy_bonus: float
    hard_interval_multiplier: float
    lapse_interval: float
    min_ease_factor: float
    ease_factor_increment: float
    ease_factor_decrement: float

    def __init__(
        self,
        learning_steps: Sequence[timedelta] = (
            timedelta(minutes=1),
            timedelta(minutes=10),
        ),
        relearning_steps: Sequence[timedelta] = (timedelta(minutes=10),),
        graduating_interval: int = 1,
        easy_interval: int = 4,
        easy_bonus: float = 1.3,
        hard_interval_multiplier: float = 1.2,
        lapse_interval: float = 0.5,
        min_ease_factor: float = 1.3,
        ease_factor_increment: float = 0.15,
        ease_factor_decrement: float = 0.2,
    ) -> None:
        self.learning_steps = tuple(learning_steps)
        self.relearning_steps = tuple(relearning_steps)
        self.graduating_interval = graduating_interval
        self.easy_interval = easy_interval
        self.easy_bonus = easy_bonus
        self.hard_interval_multiplier = hard_interval_multiplier
        self.lapse_interval = lapse_interval
        self.min_ease_factor = min_ease_factor
        self.ease_factor_increment = ease_factor_increment
        self.ease_factor_decrement = ease_factor_decrement

    def validate(self) -> list[str]:
        """
        Checks the parameters against their constraints.

        Returns:
            list[str]: One message per violated constraint. Empty if the parameters are valid.
        """

        return validate_parameters(self)

    def check(self) -> Self:
        """
        Raises if the parameters are invalid.

        Returns:
            Self: The same Parameters object, for chaining.

        Raises:
            InvalidParameters: If any constraint is violated.
        """

        violations = self.validate()
        if violations:
            raise InvalidParameters(violations)

        return self

    def with_setting(self, name: str, raw_value: str) -> Self:
        """
        Returns a copy of the parameters with one setting replaced by a value typed in by a user.

        Step settings are given as comma-separated minutes (e.g. "1, 10"), every other setting
        as a single number. The current object is left untouched.

        Args:
            name: The name of the setting, e.g. "easy_bonus".
            raw_value: The text entered for the setting.

        Returns:
            Self: A new, validated Parameters object.

        Raises:
            InvalidParameters: If the name is unknown, the text can not be parsed or the
                resulting parameters are invalid.
        """

        if name not in {field.name for field in fields(self)}:
            raise InvalidParameters([f"unknown setting '{name}'"])

        value: tuple[timedelta, ...] | float | int
        if name in STEP_FIELDS:
            value = parse_steps(raw_value)
        else:
            try:
                value = float(raw_value.strip())
            except ValueError:
                raise InvalidParameters(
                    [f"{name}: could not parse {raw_value!r} as a number"]
                ) from None

            if name in DAY_FIELDS and value.is_integer():
                value = int(value)

        return replace(self, **{name: value}).check()

    def to_dict(self) -> ParametersDict:
        """
        Returns a dictionary representation of the Parameters object.

        Returns:
            ParametersDict: A dictionary representation of the Parameters object.
        """

        return {
            "learning_steps": [_to_minutes(step) for step in self.learning_steps],
            "relearning_steps": [_to_minutes(step) for step in self.relearning_steps],
            "graduating_interval": self.graduating_interval,
            "easy_interval": self.easy_interval,
            "easy_bonus": self.easy_bonus,
            "hard_interval_multiplier": self.hard_interval_multiplier,
            "lapse_interval": self.lapse_interval,
            "min_ease_factor": self.min_ease_factor,
            "ease_factor_increment": self.ease_factor_increment,
            "ease_factor_decrement": self.ease_factor_decrement,
        }

    @classmethod
    def from_dict(cls, source_dict: ParametersDict) -> Self:
        """
        Creates a Parameters object from an existing dictionary.

        Every field must be present. Nothing is filled in with a default.

        Args:
            source_dict: A dictionary representing an existing Parameters object.

        Returns:
            Self: A validated Parameters object created from the provided dictionary.

        Raises:
            InvalidParameters: If a field is missing, unknown or out of bounds.
        """

        expected = {field.name for field in fields(cls)}
        violations = [
            f"missing value for '{name}'"
            for name in sorted(expected - source_dict.keys())
        ]
        violations += [
            f"unknown setting '{name}'"
            for name in sorted(source_dict.keys() - expected)
        ]
        if violations:
            raise InvalidParameters(violations)

        kwargs = dict(source_dict)
        for name in STEP_FIELDS:
            steps = source_dict[name]  # type: ignore[literal-required]
            if not isinstance(steps, list) or not all(
                _is_number(minutes) for minutes in steps
            ):
                violations.append(f"{name} must be a list of minutes, got {steps!r}")
                continue
            kwargs[name] = [timedelta(minutes=minutes) for minutes in steps]

        if violations:
            raise InvalidParameters(violations)

        return cls(**kwargs).check()

    def to_json(self, indent: int | str | None = None) -> str:
        """
        Returns a JSON-serialized string of the Parameters object.

        Args:
            indent: Equivalent argument to the indent in json.dumps()

        Returns:
            str: A JSON-serialized string of the Parameters object.
        """

        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, source_json: str) -> Self:
        """
        Creates a Parameters object from a JSON-serialized string.

        Args:
            source_json: A JSON-serialized string of an existing Parameters object.

        Returns:
            Self: A validated Parameters object created from the JSON string.
        """

        source_dict: ParametersDict = json.loads(source_json)
        return cls.from_dict(source_dict=source_dict)


DEFAULT_PARAMETERS = Parameters()


def parse_steps(text: str) -> tuple[timedelta, ...]:
    """
    Parses a comma-separated list of minutes, e.g. "1, 10".

    An empty string gives an empty tuple, which validation then rejects.

    Raises:
        InvalidParameters: If one of the entries is not a number.
    """

    if not text.strip():
        return ()

    steps = []
    for entry in text.split(","):
        try:
            minutes = float(entry.strip())
        except ValueError:
            raise InvalidParameters(
                [f"could not parse step {entry.strip()!r} as a number of minutes"]
            ) from None
        if not math.isfinite(minutes):
            raise InvalidParameters([f"step {entry.strip()!r} is not a finite number"])
        steps.append(timedelta(minutes=minutes))

    return tuple(steps)


def validate_parameters(parameters: Parameters) -> list[str]:
    """
    Checks a Parameters object against its constraints.

    Args:
        parameters: The parameters to check.

    Returns:
        list[str]: One message per violated constraint. Empty if the parameters are valid.
    """

    error_messages = []

    for name in STEP_FIELDS:
        steps = getattr(parameters, name)
        if len(steps) == 0:
            error_messages.append(f"{name} must contain at least one step")
        for index, step in enumerate(steps):
            if not isinstance(step, timedelta) or step <= timedelta(0):
                error_messages.append(
                    f"{name}[{index}] = {step!r} must be a positive duration"
                )

    numeric_names = [
        field.name for field in fields(parameters) if field.name not in STEP_FIELDS
    ]
    bad_numbers = [
        name for name in numeric_names if not _is_number(getattr(parameters, name))
    ]
    for name in bad_numbers:
        error_messages.append(
            f"{name} = {getattr(parameters, name)!r} must be a finite number"
        )

    # range checks only run on fields that are numbers at all
    def check(name: str, condition: Callable[[float], bool], message: str) -> None:
        value = getattr(parameters, name)
        if name not in bad_numbers and not condition(value):
            error_messages.append(f"{name} = {value} {message}")

    check(
        "graduating_interval",
        lambda days: _is_whole(days) and days > 0,
        "must be a positive whole number of days",
    )
    check("easy_interval", _is_whole, "must be a whole number of days")
    if "graduating_interval" not in bad_numbers:
        check(
            "easy_interval",
            lambda days: days >= parameters.graduating_interval,
            f"must not be less than graduating_interval ({parameters.graduating_interval})",
        )
    check("easy_bonus", lambda bonus: bonus >= 1.0, "must be at least 1.0")
    check(
        "hard_interval_multiplier",
        lambda multiplier: multiplier > 0,
        "must be positive",
    )
    check(
        "lapse_interval",
        lambda multiplier: 0 <= multiplier <= 1.0,
        "must be between 0 and 1.0",
    )
    check("min_ease_factor", lambda ease: ease > 0, "must be positive")
    check(
        "min_ease_factor",
        lambda ease: ease < DEFAULT_EASE_FACTOR,
        f"must be less than the starting ease factor ({DEFAULT_EASE_FACTOR})",
    )
    check(
        "ease_factor_increment",
        lambda increment: increment >= 0,
        "must not be negative",
    )
    check(
        "ease_factor_decrement",
        lambda decrement: decrement >= 0,
        "must not be negative",
    )

    return error_messages


def _is_number(value: object) -> bool:
    return (
        isinstance(value, Real)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _is_whole(value: float) -> bool:
    return float(value).is_integer()


def _to_minutes(step: timedelta) -> float:
    minutes = step.total_seconds() / 60
    return int(minutes) if minutes.is_integer() else minutes


__all__ = [
    "Parameters",
    "DEFAULT_PARAMETERS",
    "parse_steps",
    "validate_parameters",
]
