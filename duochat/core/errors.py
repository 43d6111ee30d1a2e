"""Exception hierarchy for the DuoChat project.

DuoChatError is the root. All exceptions inherit from it so callers
can catch broad categories or specific types.
"""

from __future__ import annotations

from typing import Optional, Sequence


class DuoChatError(Exception):
    """Root exception for the entire project."""


# --- Shared errors ---


class ConfigError(DuoChatError):
    """Configuration errors: missing API key, unknown provider, invalid config values."""


class LLMError(DuoChatError):
    """LLM API call failures: network errors, rate limits, missing SDKs."""


# --- Refinement loop ---


class RefinementError(DuoChatError):
    """Base for all refinement loop errors."""


class AgentCallError(RefinementError):
    """An executor or verifier call failed during a round.

    Recoverable: the loop records it, counts the attempt and retries the
    round from the executor step. Never raised to the caller.
    """

    def __init__(self, role: str, round_number: int, attempt: int, cause: BaseException) -> None:
        self.role = role
        self.round_number = round_number
        self.attempt = attempt
        self.cause = cause
        super().__init__(
            f"Round {round_number} {role} call failed on attempt {attempt}: {cause}"
        )


class AttemptsExhaustedError(RefinementError):
    """The attempt budget ran out before any round completed."""

    def __init__(
        self,
        attempts: int,
        failures: Optional[Sequence[AgentCallError]] = None,
    ) -> None:
        self.attempts = attempts
        self.failures = tuple(failures or ())
        super().__init__(f"Failed to generate a solution in {attempts} attempts.")
