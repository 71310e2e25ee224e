"""Deterministic child outcome classification for the dispatch retry policy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sratools_driver.models import (
    ChildExitFailure,
    ChildOutcome,
    ChildSignaled,
    ChildSuccess,
    ExitCode,
)

RETRYABLE_EXIT_CODES: tuple[int, ...] = (ExitCode.TEMPFAIL,)


class OutcomeAction(str, Enum):
    """What the dispatch loop does next."""

    SUCCESS = "success"
    TRY_NEXT_SOURCE = "try_next_source"
    ABORT_EXIT = "abort_exit"
    ABORT_SIGNAL = "abort_signal"


@dataclass(frozen=True, slots=True)
class OutcomeClassification:
    """Normalized classification result."""

    action: OutcomeAction
    exit_code: int
    detail: str

    @property
    def fatal(self) -> bool:
        return self.action in {OutcomeAction.ABORT_EXIT, OutcomeAction.ABORT_SIGNAL}


def classify_outcome(
    outcome: ChildOutcome,
    *,
    retryable_exit_codes: tuple[int, ...] = RETRYABLE_EXIT_CODES,
) -> OutcomeClassification:
    """Classify one child outcome as success, retryable or fatal."""

    if isinstance(outcome, ChildSuccess):
        return OutcomeClassification(
            action=OutcomeAction.SUCCESS,
            exit_code=ExitCode.OK,
            detail="exit code 0",
        )
    if isinstance(outcome, ChildExitFailure):
        if outcome.exit_code in retryable_exit_codes:
            return OutcomeClassification(
                action=OutcomeAction.TRY_NEXT_SOURCE,
                exit_code=outcome.exit_code,
                detail=f"temporary failure (exit code {outcome.exit_code})",
            )
        return OutcomeClassification(
            action=OutcomeAction.ABORT_EXIT,
            exit_code=outcome.exit_code,
            detail=f"exit code {outcome.exit_code}",
        )
    if isinstance(outcome, ChildSignaled):
        name = f" {outcome.name}" if outcome.name else ""
        return OutcomeClassification(
            action=OutcomeAction.ABORT_SIGNAL,
            exit_code=ExitCode.SIGNALED,
            detail=f"signal {outcome.signal}{name}",
        )
    raise TypeError(f"Unsupported child outcome: {outcome!r}")
