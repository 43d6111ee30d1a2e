"""Refinement loop graph (LangGraph StateGraph).

Graph topology:
    execute ─┬── "verify"   -> verify ─┬── "execute"  -> execute (next round or retry)
             ├── "execute"  (retry)    └── "finalize" -> finalize -> END
             └── "finalize" -> finalize -> END

Nodes set the next Phase; a single router maps it to the next node.
Rounds are strictly sequential: each prompt depends on the previous round.
"""

from __future__ import annotations

import logging

from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph

from duochat.config import RefinementConfig
from duochat.core.errors import AgentCallError
from duochat.core.llm import CompletionModel
from duochat.models import Phase, RefinementState, Role, RoundRecord, current_round
from duochat.prompts import refinement as prompts

logger = logging.getLogger(__name__)

_NEXT_NODE = {
    Phase.AWAIT_EXECUTE: "execute",
    Phase.AWAIT_VERIFY: "verify",
    Phase.ACCEPTED: "finalize",
    Phase.EXHAUSTED: "finalize",
}


def _budget_phase(attempt: int, config: RefinementConfig) -> Phase:
    """Phase after an attempt ends without a final answer."""
    if attempt >= config.max_attempts:
        return Phase.EXHAUSTED
    return Phase.AWAIT_EXECUTE


def _record_failure(
    state: RefinementState,
    role: Role,
    error: Exception,
    config: RefinementConfig,
    debug: bool,
) -> dict:
    """Discard the current attempt and count it against the budget."""
    round_number = current_round(state)
    attempt = state.get("attempt", 0) + 1
    failure = AgentCallError(role.value, round_number, attempt, error)
    if debug:
        logger.warning("Round %d %s error: %s", round_number, role.value, error)
    return {
        "attempt": attempt,
        "failures": state.get("failures", []) + [failure],
        "executor_prompt": None,
        "executor_solution": None,
        "phase": _budget_phase(attempt, config),
    }


def _make_execute_node(executor: CompletionModel, config: RefinementConfig, debug: bool):
    """Create the executor node that closes over the executor and config.

    LangGraph nodes must have signature (state) -> dict, so dependencies
    are captured via closure rather than passed as arguments.
    """

    async def execute_node(state: RefinementState) -> dict:
        """Ask the executor for a first or refined solution."""
        task = state.get("task", "")
        history = state.get("history", [])
        round_number = current_round(state)

        if history:
            last = history[-1]
            prompt = prompts.execute_followup(task, last.executor_solution, last.verifier_feedback)
        else:
            prompt = prompts.execute_initial(task)

        if debug:
            logger.info(">>>> Round %d executor prompt:\n%s\n", round_number, prompt)
        try:
            solution = await executor.complete(prompt)
        except Exception as e:
            return _record_failure(state, Role.EXECUTOR, e, config, debug)
        if debug:
            logger.info("<<<< Round %d executor solution:\n%s\n", round_number, solution)

        # The last round is never verified.
        if len(history) == config.refinement_rounds - 1:
            return {
                "solution": solution,
                "attempt": state.get("attempt", 0) + 1,
                "phase": Phase.ACCEPTED,
            }

        return {
            "executor_prompt": prompt,
            "executor_solution": solution,
            "phase": Phase.AWAIT_VERIFY,
        }

    return execute_node


def _make_verify_node(verifier: CompletionModel, config: RefinementConfig, debug: bool):
    """Create the verifier node. Same closure factory as _make_execute_node."""

    async def verify_node(state: RefinementState) -> dict:
        """Ask the verifier to critique the solution just produced."""
        task = state.get("task", "")
        history = state.get("history", [])
        round_number = current_round(state)
        executor_prompt = state.get("executor_prompt") or ""
        executor_solution = state.get("executor_solution") or ""

        if history:
            prompt = prompts.verify_followup(task, executor_solution)
        else:
            prompt = prompts.verify_initial(task, executor_solution)

        if debug:
            logger.info(">>>> Round %d verifier prompt:\n%s\n", round_number, prompt)
        try:
            feedback = await verifier.complete(prompt)
        except Exception as e:
            return _record_failure(state, Role.VERIFIER, e, config, debug)
        if debug:
            logger.info("<<<< Round %d verifier feedback:\n%s\n", round_number, feedback)

        record = RoundRecord(
            executor_prompt=executor_prompt,
            executor_solution=executor_solution,
            verifier_prompt=prompt,
            verifier_feedback=feedback,
        )
        attempt = state.get("attempt", 0) + 1
        return {
            "history": history + [record],
            "attempt": attempt,
            "executor_prompt": None,
            "executor_solution": None,
            "phase": _budget_phase(attempt, config),
        }

    return verify_node


async def finalize_node(state: RefinementState) -> dict:
    """Settle a terminal phase.

    EXHAUSTED with completed rounds degrades to ACCEPTED on the latest
    round's solution. EXHAUSTED with no rounds stays EXHAUSTED; the caller
    turns that into AttemptsExhaustedError.
    """
    if state.get("phase") != Phase.EXHAUSTED:
        return {}
    history = state.get("history", [])
    if not history:
        return {}
    return {"solution": history[-1].executor_solution, "phase": Phase.ACCEPTED}


def route_phase(state: RefinementState) -> str:
    """Conditional edge: map the phase a node left behind to the next node.

    Returns:
        "execute"  -> attempt (or retry) a round
        "verify"   -> critique the pending executor solution
        "finalize" -> terminal phase reached
    """
    return _NEXT_NODE[state.get("phase", Phase.AWAIT_EXECUTE)]


def recursion_limit(config: RefinementConfig) -> int:
    """LangGraph step ceiling: two nodes per attempt plus finalize, with headroom."""
    return 2 * config.max_attempts + 5


def build_refinement_graph(
    executor: CompletionModel,
    verifier: CompletionModel,
    config: RefinementConfig = RefinementConfig(),
    debug: bool = False,
) -> CompiledStateGraph:
    """Build the executor/verifier refinement loop as a LangGraph StateGraph.

    Args:
        executor: Produces and refines solutions.
        verifier: Critiques intermediate solutions.
        config: Round and attempt budgets.
        debug: Log every prompt, response and caught failure.

    Returns a compiled StateGraph ready to invoke.
    """
    graph = StateGraph(RefinementState)

    graph.add_node("execute", _make_execute_node(executor, config, debug))
    graph.add_node("verify", _make_verify_node(verifier, config, debug))
    graph.add_node("finalize", finalize_node)

    graph.add_edge(START, "execute")
    graph.add_conditional_edges(
        "execute",
        route_phase,
        {"execute": "execute", "verify": "verify", "finalize": "finalize"},
    )
    graph.add_conditional_edges(
        "verify",
        route_phase,
        {"execute": "execute", "finalize": "finalize"},
    )
    graph.add_edge("finalize", END)

    return graph.compile()
