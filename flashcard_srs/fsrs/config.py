"""
Scheduler Configuration

Process-wide algorithm parameters, loaded once at startup and passed
explicitly into the Scheduler.

Environment variables (a local .env file is honoured):
    FSRS_WEIGHTS             comma separated weight vector (19 values)
    FSRS_REQUEST_RETENTION   target retrievability at the due date (default 0.9)
    FSRS_MAXIMUM_INTERVAL    longest interval in days (default 36500)
    FSRS_DECAY               forgetting curve exponent (default -0.5)
    FSRS_LEARNING_STEPS      learning steps in minutes (default "1,10")
    FSRS_RELEARNING_STEPS    relearning steps in minutes (default "10")
"""

from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Sequence

from dotenv import load_dotenv

from flashcard_srs.fsrs.constants import (
    DEFAULT_DECAY,
    DEFAULT_LEARNING_STEPS,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_NEW_CARD_STEPS,
    DEFAULT_RELEARNING_STEPS,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_WEIGHTS,
    MAXIMUM_INTERVAL_LIMIT,
    MINUTES_PER_DAY,
    WEIGHT_COUNT,
    Rating,
    decay_factor,
)
from flashcard_srs.fsrs.errors import InvalidParametersError


@dataclass(frozen=True)
class SchedulerParameters:
    """
    Immutable algorithm configuration.

    Attributes:
        weights: FSRS weight vector (w0..w18)
        request_retention: Retrievability the next interval aims for
        maximum_interval: Upper bound on any Review interval (days)
        decay: Forgetting curve exponent; -1 gives (1 + t / 9S)^-1
        learning_steps: Short steps (minutes) while Learning
        relearning_steps: Short steps (minutes) while Relearning
        new_card_steps: Fixed first-exposure step (minutes) per rating
    """
    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    request_retention: float = DEFAULT_REQUEST_RETENTION
    maximum_interval: int = DEFAULT_MAXIMUM_INTERVAL
    decay: float = DEFAULT_DECAY
    learning_steps: tuple[float, ...] = DEFAULT_LEARNING_STEPS
    relearning_steps: tuple[float, ...] = DEFAULT_RELEARNING_STEPS
    new_card_steps: Mapping[Rating, float] = field(
        default_factory=lambda: dict(DEFAULT_NEW_CARD_STEPS), hash=False
    )

    def __post_init__(self):
        # Normalise sequences so equal configurations compare equal
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))
        object.__setattr__(self, "learning_steps", tuple(float(s) for s in self.learning_steps))
        object.__setattr__(self, "relearning_steps", tuple(float(s) for s in self.relearning_steps))
        object.__setattr__(
            self,
            "new_card_steps",
            {Rating(r): float(m) for r, m in self.new_card_steps.items()},
        )
        self.validate()

    def validate(self) -> None:
        """Raise InvalidParametersError if the configuration is unusable."""
        if len(self.weights) != WEIGHT_COUNT:
            raise InvalidParametersError(
                f"Expected {WEIGHT_COUNT} weights, got {len(self.weights)}"
            )
        if not 0.0 < self.request_retention < 1.0:
            raise InvalidParametersError(
                f"request_retention must be in (0, 1), got {self.request_retention}"
            )
        if not 1 <= self.maximum_interval <= MAXIMUM_INTERVAL_LIMIT:
            raise InvalidParametersError(
                f"maximum_interval must be between 1 and {MAXIMUM_INTERVAL_LIMIT} days, "
                f"got {self.maximum_interval}"
            )
        if not self.decay < 0:
            raise InvalidParametersError(f"decay must be negative, got {self.decay}")
        if not self.learning_steps or not self.relearning_steps:
            raise InvalidParametersError("learning_steps and relearning_steps must not be empty")
        steps = self.learning_steps + self.relearning_steps + tuple(self.new_card_steps.values())
        if any(not step > 0 for step in steps):
            raise InvalidParametersError("All steps must be positive minute values")
        if any(step > MAXIMUM_INTERVAL_LIMIT * MINUTES_PER_DAY for step in steps):
            raise InvalidParametersError("Steps must not exceed the maximum interval limit")
        if set(self.new_card_steps) != set(Rating):
            raise InvalidParametersError("new_card_steps must define a step for every rating")

    @property
    def factor(self) -> float:
        """Forgetting curve factor matching the configured decay."""
        return decay_factor(self.decay)

    def params_hash(self) -> str:
        """Stable fingerprint of this configuration, stored beside each record."""
        payload = {
            "weights": list(self.weights),
            "request_retention": self.request_retention,
            "maximum_interval": self.maximum_interval,
            "decay": self.decay,
            "learning_steps": list(self.learning_steps),
            "relearning_steps": list(self.relearning_steps),
            "new_card_steps": {int(r): m for r, m in sorted(self.new_card_steps.items())},
        }
        encoded = json.dumps(payload, sort_keys=True).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()[:16]


def _parse_floats(raw: str, name: str) -> tuple[float, ...]:
    try:
        return tuple(float(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise InvalidParametersError(f"{name} must be comma separated numbers: {raw!r}") from exc


def load_parameters(
    environ: Optional[Mapping[str, str]] = None,
    dotenv: bool = True
) -> SchedulerParameters:
    """
    Build SchedulerParameters from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)
        dotenv: Load a .env file into os.environ first

    Returns:
        Validated SchedulerParameters (defaults for unset variables)
    """
    if environ is None:
        if dotenv:
            load_dotenv()
        environ = os.environ

    kwargs: dict = {}

    if environ.get("FSRS_WEIGHTS"):
        kwargs["weights"] = _parse_floats(environ["FSRS_WEIGHTS"], "FSRS_WEIGHTS")
    if environ.get("FSRS_LEARNING_STEPS"):
        kwargs["learning_steps"] = _parse_floats(environ["FSRS_LEARNING_STEPS"], "FSRS_LEARNING_STEPS")
    if environ.get("FSRS_RELEARNING_STEPS"):
        kwargs["relearning_steps"] = _parse_floats(
            environ["FSRS_RELEARNING_STEPS"], "FSRS_RELEARNING_STEPS"
        )

    try:
        if environ.get("FSRS_REQUEST_RETENTION"):
            kwargs["request_retention"] = float(environ["FSRS_REQUEST_RETENTION"])
        if environ.get("FSRS_MAXIMUM_INTERVAL"):
            kwargs["maximum_interval"] = int(environ["FSRS_MAXIMUM_INTERVAL"])
        if environ.get("FSRS_DECAY"):
            kwargs["decay"] = float(environ["FSRS_DECAY"])
    except ValueError as exc:
        raise InvalidParametersError(f"Invalid scheduler setting: {exc}") from exc

    return SchedulerParameters(**kwargs)


def with_weights(parameters: SchedulerParameters, weights: Sequence[float]) -> SchedulerParameters:
    """Copy of parameters with an alternate weight set."""
    return replace(parameters, weights=tuple(weights))
