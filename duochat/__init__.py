# duochat/__init__.py

from __future__ import annotations

from duochat.config import RefinementConfig
from duochat.core.errors import (
    AgentCallError,
    AttemptsExhaustedError,
    ConfigError,
    DuoChatError,
    LLMError,
    RefinementError,
)
from duochat.core.llm import CompletionModel, create_language_model
from duochat.models import RefinementOutcome, RoundRecord
from duochat.orchestrator import DuoChat, create_duochat

__all__ = [
    "AgentCallError",
    "AttemptsExhaustedError",
    "CompletionModel",
    "ConfigError",
    "DuoChat",
    "DuoChatError",
    "LLMError",
    "RefinementConfig",
    "RefinementError",
    "RefinementOutcome",
    "RoundRecord",
    "create_duochat",
    "create_language_model",
]
