"""Refinement loop configuration."""

from __future__ import annotations

from dataclasses import dataclass

from duochat.core.errors import ConfigError

# Attempts allowed on top of the round budget for retrying failed rounds.
EXTRA_ATTEMPTS = 2


@dataclass(frozen=True)
class RefinementConfig:
    """Round and attempt budgets for one DuoChat instance.

    Declarative: the loop's stop conditions are driven by these values.
    max_attempts is derived, so the pair can never disagree.
    """

    refinement_rounds: int = 3

    def __post_init__(self) -> None:
        if self.refinement_rounds < 1:
            raise ConfigError(
                f"refinement_rounds must be at least 1, got {self.refinement_rounds}"
            )

    @property
    def max_attempts(self) -> int:
        return self.refinement_rounds + EXTRA_ATTEMPTS
