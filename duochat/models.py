"""DuoChat data models and refinement state.

Contains all dataclasses that cross module boundaries.
RefinementState is the LangGraph TypedDict for the refinement loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TypedDict

from duochat.core.errors import AgentCallError


# --- Enums ---


class Role(str, Enum):
    """Which agent a call was made to."""

    EXECUTOR = "executor"
    VERIFIER = "verifier"


class Phase(str, Enum):
    """Where the refinement loop is. ACCEPTED and EXHAUSTED are terminal."""

    AWAIT_EXECUTE = "await_execute"
    AWAIT_VERIFY = "await_verify"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"


# --- Dataclasses ---


@dataclass(frozen=True)
class RoundRecord:
    """One completed round: both the executor and the verifier call succeeded.

    Immutable. Only ever appended to a run's history.
    """

    executor_prompt: str
    executor_solution: str
    verifier_prompt: str
    verifier_feedback: str


@dataclass(frozen=True)
class RefinementOutcome:
    """Read-only snapshot of a finished run."""

    solution: str
    history: tuple[RoundRecord, ...]
    attempts: int
    failures: tuple[AgentCallError, ...] = ()

    @property
    def rounds_completed(self) -> int:
        return len(self.history)


# --- Refinement Loop State (LangGraph TypedDict) ---


class RefinementState(TypedDict, total=False):
    """LangGraph state for the executor/verifier refinement loop.

    total=False: all fields optional, enabling incremental building.
    The current round number is never stored; it is len(history) + 1.
    """

    # Set by graph initialization
    task: str

    # Loop bookkeeping
    phase: Phase
    history: list[RoundRecord]
    attempt: int
    failures: list[AgentCallError]

    # Executor output awaiting verification (set by execute node)
    executor_prompt: Optional[str]
    executor_solution: Optional[str]

    # Final answer (set on ACCEPTED)
    solution: Optional[str]


def current_round(state: RefinementState) -> int:
    """1-based number of the round being attempted. Stable across retries."""
    return len(state.get("history", [])) + 1
