"""Prompt templates for the executor/verifier refinement rounds.

Separated from loop.py so prompt iteration doesn't touch logic.
Every input is embedded through fence_block(), so text containing
``` sequences stays verbatim and recoverable with extract_fenced_blocks().
"""

from __future__ import annotations

from duochat.core.parsing import fence_block

EXECUTE_INITIAL_TEMPLATE = (
    "As the task executor, your job is to complete the task described below:\n"
    "{task}\n"
    "Generate a solution accordingly."
)

EXECUTE_FOLLOWUP_TEMPLATE = (
    "As the task executor, based on the verifier's feedback, refine the solution "
    "for the following task:\n"
    "{task}\n"
    "Your previous solution was: \n"
    "{previous_solution}\n"
    "The verifier's feedback on your previous solution was: \n"
    "{verifier_feedback}\n"
    "Please provide an updated solution accordingly."
)

VERIFY_INITIAL_TEMPLATE = (
    "As the task verifier, critically review the solution for the task described below:\n"
    "{task}\n"
    "The provided solution is: \n"
    "{executor_solution}\n"
    "Highlight any areas for improvement."
)

VERIFY_FOLLOWUP_TEMPLATE = (
    "As the task verifier, based on the refined solution, please review it again "
    "for the following task:\n"
    "{task}\n"
    "The updated solution is: \n"
    "{executor_solution}\n"
    "Identify any remaining areas that need further refinement."
)


def execute_initial(task: str) -> str:
    """Ask the executor for a first solution to task."""
    return EXECUTE_INITIAL_TEMPLATE.format(task=fence_block(task))


def execute_followup(task: str, previous_solution: str, verifier_feedback: str) -> str:
    """Ask the executor to revise previous_solution in light of verifier_feedback.

    Args:
        task: The original task description.
        previous_solution: Executor solution from the last completed round.
        verifier_feedback: Verifier feedback on that solution.
    """
    return EXECUTE_FOLLOWUP_TEMPLATE.format(
        task=fence_block(task),
        previous_solution=fence_block(previous_solution),
        verifier_feedback=fence_block(verifier_feedback),
    )


def verify_initial(task: str, executor_solution: str) -> str:
    """Ask the verifier to critique the executor's first solution."""
    return VERIFY_INITIAL_TEMPLATE.format(
        task=fence_block(task),
        executor_solution=fence_block(executor_solution),
    )


def verify_followup(task: str, executor_solution: str) -> str:
    """Ask the verifier to review a revised solution again."""
    return VERIFY_FOLLOWUP_TEMPLATE.format(
        task=fence_block(task),
        executor_solution=fence_block(executor_solution),
    )
