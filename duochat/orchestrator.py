"""DuoChat orchestrator.

Pairs an executor and a verifier CompletionModel with a RefinementConfig
and runs the refinement graph once per task. History and counters live
in the graph state of a single run and are discarded when it returns.
"""

from __future__ import annotations

import logging

from duochat.config import RefinementConfig
from duochat.core.errors import AttemptsExhaustedError
from duochat.core.llm import CompletionModel
from duochat.loop import build_refinement_graph, recursion_limit
from duochat.models import Phase, RefinementOutcome, RefinementState

logger = logging.getLogger(__name__)


class DuoChat:
    """Executor/verifier refinement over a bounded number of rounds.

    refinement_rounds and max_attempts are fixed at construction.
    debug may be toggled between runs.
    """

    def __init__(
        self,
        executor: CompletionModel,
        verifier: CompletionModel,
        refinement_rounds: int = 3,
    ) -> None:
        self.executor = executor
        self.verifier = verifier
        self.debug = False
        self._config = RefinementConfig(refinement_rounds=refinement_rounds)

    @property
    def config(self) -> RefinementConfig:
        return self._config

    @property
    def refinement_rounds(self) -> int:
        return self._config.refinement_rounds

    @property
    def max_attempts(self) -> int:
        return self._config.max_attempts

    async def refine(self, task: str) -> RefinementOutcome:
        """Run the refinement loop and return the full outcome.

        Raises:
            AttemptsExhaustedError: The attempt budget ran out before any
                round completed.
        """
        graph = build_refinement_graph(
            self.executor, self.verifier, self._config, debug=self.debug
        )
        initial_state: RefinementState = {
            "task": task,
            "phase": Phase.AWAIT_EXECUTE,
            "history": [],
            "attempt": 0,
            "failures": [],
        }
        final = await graph.ainvoke(
            initial_state, config={"recursion_limit": recursion_limit(self._config)}
        )

        attempts = final.get("attempt", 0)
        failures = tuple(final.get("failures", []))
        if final.get("phase") != Phase.ACCEPTED:
            raise AttemptsExhaustedError(attempts, failures)

        history = tuple(final.get("history", []))
        if self.debug:
            logger.info(
                "Accepted solution after %d attempt(s), %d completed round(s)",
                attempts, len(history),
            )
        return RefinementOutcome(
            solution=final["solution"],
            history=history,
            attempts=attempts,
            failures=failures,
        )

    async def perform(self, task: str) -> str:
        """Run the refinement loop and return the accepted executor solution."""
        outcome = await self.refine(task)
        return outcome.solution


def create_duochat(
    executor: CompletionModel,
    verifier: CompletionModel,
    refinement_rounds: int = 3,
) -> DuoChat:
    """Create a DuoChat with debug output off."""
    return DuoChat(executor, verifier, refinement_rounds=refinement_rounds)
