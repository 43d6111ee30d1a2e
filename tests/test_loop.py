"""Tests for duochat.loop: refinement graph topology, nodes and routing."""

import logging

import pytest

from duochat.config import RefinementConfig
from duochat.core.errors import AgentCallError
from duochat.loop import (
    _make_execute_node,
    _make_verify_node,
    build_refinement_graph,
    finalize_node,
    recursion_limit,
    route_phase,
)
from duochat.models import Phase, RefinementState, RoundRecord
from duochat.prompts import refinement as prompts


class MockLLMClient:
    """Mock completion model replaying responses; Exception entries are raised."""

    def __init__(self, responses):
        if not isinstance(responses, list):
            responses = [responses]
        self.responses = list(responses)
        self.calls: list[str] = []
        self._call_index = 0

    async def complete(self, prompt):
        self.calls.append(prompt)
        response = self.responses[min(self._call_index, len(self.responses) - 1)]
        self._call_index += 1
        if isinstance(response, Exception):
            raise response
        return response


RECORD = RoundRecord(
    executor_prompt="EP1",
    executor_solution="E1",
    verifier_prompt="VP1",
    verifier_feedback="V1",
)


class TestGraphTopology:
    def test_graph_has_expected_nodes(self):
        graph = build_refinement_graph(MockLLMClient("E"), MockLLMClient("V"))
        node_names = set(graph.get_graph().nodes.keys())
        # LangGraph adds __start__ and __end__ nodes
        for name in ["execute", "verify", "finalize"]:
            assert name in node_names

    def test_graph_compiles(self):
        graph = build_refinement_graph(MockLLMClient("E"), MockLLMClient("V"))
        assert graph is not None


class TestRoutePhase:
    @pytest.mark.parametrize(
        "phase, expected",
        [
            (Phase.AWAIT_EXECUTE, "execute"),
            (Phase.AWAIT_VERIFY, "verify"),
            (Phase.ACCEPTED, "finalize"),
            (Phase.EXHAUSTED, "finalize"),
        ],
    )
    def test_phase_to_node(self, phase, expected):
        state: RefinementState = {"phase": phase}
        assert route_phase(state) == expected

    def test_default_state_executes(self):
        state: RefinementState = {}
        assert route_phase(state) == "execute"


class TestExecuteNode:
    @pytest.mark.asyncio
    async def test_first_round_uses_initial_prompt(self):
        executor = MockLLMClient("E1")
        node = _make_execute_node(executor, RefinementConfig(), debug=False)
        result = await node({"task": "T", "history": [], "attempt": 0})
        assert executor.calls == [prompts.execute_initial("T")]
        assert result["phase"] == Phase.AWAIT_VERIFY
        assert result["executor_solution"] == "E1"
        assert result["executor_prompt"] == prompts.execute_initial("T")
        assert "attempt" not in result

    @pytest.mark.asyncio
    async def test_later_round_uses_followup_prompt(self):
        executor = MockLLMClient("E2")
        node = _make_execute_node(executor, RefinementConfig(), debug=False)
        await node({"task": "T", "history": [RECORD], "attempt": 1})
        assert executor.calls == [prompts.execute_followup("T", "E1", "V1")]

    @pytest.mark.asyncio
    async def test_final_round_accepts_without_verification(self):
        executor = MockLLMClient("E2")
        node = _make_execute_node(executor, RefinementConfig(refinement_rounds=2), debug=False)
        result = await node({"task": "T", "history": [RECORD], "attempt": 1})
        assert result["phase"] == Phase.ACCEPTED
        assert result["solution"] == "E2"
        assert result["attempt"] == 2

    @pytest.mark.asyncio
    async def test_single_round_accepts_first_solution(self):
        node = _make_execute_node(MockLLMClient("E1"), RefinementConfig(refinement_rounds=1), debug=False)
        result = await node({"task": "T", "history": [], "attempt": 0})
        assert result["phase"] == Phase.ACCEPTED
        assert result["solution"] == "E1"

    @pytest.mark.asyncio
    async def test_failure_counts_attempt_and_retries(self):
        node = _make_execute_node(MockLLMClient(RuntimeError("boom")), RefinementConfig(), debug=False)
        result = await node({"task": "T", "history": [], "attempt": 0, "failures": []})
        assert result["attempt"] == 1
        assert result["phase"] == Phase.AWAIT_EXECUTE
        assert result["executor_solution"] is None
        [failure] = result["failures"]
        assert isinstance(failure, AgentCallError)
        assert failure.role == "executor"
        assert failure.round_number == 1
        assert failure.attempt == 1

    @pytest.mark.asyncio
    async def test_failure_on_last_attempt_exhausts(self):
        config = RefinementConfig()
        node = _make_execute_node(MockLLMClient(RuntimeError("boom")), config, debug=False)
        result = await node({"task": "T", "history": [], "attempt": config.max_attempts - 1})
        assert result["attempt"] == config.max_attempts
        assert result["phase"] == Phase.EXHAUSTED


class TestVerifyNode:
    @pytest.mark.asyncio
    async def test_first_round_appends_record(self):
        verifier = MockLLMClient("V1")
        node = _make_verify_node(verifier, RefinementConfig(), debug=False)
        state: RefinementState = {
            "task": "T",
            "history": [],
            "attempt": 0,
            "executor_prompt": "EP1",
            "executor_solution": "E1",
        }
        result = await node(state)
        assert verifier.calls == [prompts.verify_initial("T", "E1")]
        assert result["history"] == [
            RoundRecord("EP1", "E1", prompts.verify_initial("T", "E1"), "V1")
        ]
        assert result["attempt"] == 1
        assert result["phase"] == Phase.AWAIT_EXECUTE
        assert result["executor_solution"] is None

    @pytest.mark.asyncio
    async def test_later_round_uses_followup_prompt(self):
        verifier = MockLLMClient("V2")
        node = _make_verify_node(verifier, RefinementConfig(), debug=False)
        state: RefinementState = {
            "task": "T",
            "history": [RECORD],
            "attempt": 1,
            "executor_prompt": "EP2",
            "executor_solution": "E2",
        }
        result = await node(state)
        assert verifier.calls == [prompts.verify_followup("T", "E2")]
        assert len(result["history"]) == 2
        assert state["history"] == [RECORD]

    @pytest.mark.asyncio
    async def test_failure_discards_round(self):
        node = _make_verify_node(MockLLMClient(ValueError("bad")), RefinementConfig(), debug=False)
        state: RefinementState = {
            "task": "T",
            "history": [],
            "attempt": 0,
            "failures": [],
            "executor_prompt": "EP1",
            "executor_solution": "E1",
        }
        result = await node(state)
        assert "history" not in result
        assert result["attempt"] == 1
        assert result["executor_solution"] is None
        assert result["failures"][0].role == "verifier"

    @pytest.mark.asyncio
    async def test_success_on_last_attempt_exhausts(self):
        config = RefinementConfig()
        node = _make_verify_node(MockLLMClient("V"), config, debug=False)
        state: RefinementState = {
            "task": "T",
            "history": [RECORD],
            "attempt": config.max_attempts - 1,
            "executor_prompt": "EP",
            "executor_solution": "E",
        }
        result = await node(state)
        assert result["phase"] == Phase.EXHAUSTED


class TestFinalizeNode:
    @pytest.mark.asyncio
    async def test_exhausted_with_history_degrades_to_accepted(self):
        state: RefinementState = {"phase": Phase.EXHAUSTED, "history": [RECORD]}
        result = await finalize_node(state)
        assert result == {"solution": "E1", "phase": Phase.ACCEPTED}

    @pytest.mark.asyncio
    async def test_exhausted_without_history_stays_exhausted(self):
        state: RefinementState = {"phase": Phase.EXHAUSTED, "history": []}
        assert await finalize_node(state) == {}

    @pytest.mark.asyncio
    async def test_accepted_passthrough(self):
        state: RefinementState = {"phase": Phase.ACCEPTED, "solution": "E3"}
        assert await finalize_node(state) == {}


class TestDebugTrace:
    @pytest.mark.asyncio
    async def test_debug_logs_prompt_and_response(self, caplog):
        caplog.set_level(logging.INFO, logger="duochat.loop")
        node = _make_execute_node(MockLLMClient("E1"), RefinementConfig(), debug=True)
        await node({"task": "T", "history": [], "attempt": 0})
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith(">>>> Round 1 executor prompt:") for m in messages)
        assert any(m.startswith("<<<< Round 1 executor solution:\nE1") for m in messages)

    @pytest.mark.asyncio
    async def test_debug_warns_on_failure(self, caplog):
        caplog.set_level(logging.INFO, logger="duochat.loop")
        node = _make_verify_node(MockLLMClient(RuntimeError("boom")), RefinementConfig(), debug=True)
        await node({"task": "T", "history": [], "attempt": 0, "executor_solution": "E1"})
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "Round 1 verifier error: boom" in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_silent_without_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger="duochat.loop")
        node = _make_execute_node(MockLLMClient(RuntimeError("boom")), RefinementConfig(), debug=False)
        await node({"task": "T", "history": [], "attempt": 0})
        assert caplog.records == []


def test_recursion_limit_covers_attempt_budget():
    config = RefinementConfig(refinement_rounds=10)
    assert recursion_limit(config) > 2 * config.max_attempts + 1
