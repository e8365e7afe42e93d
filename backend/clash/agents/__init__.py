"""The two battling agents and their token scoring strategies."""

from .strategies import (
    AGENTS,
    CODEX,
    OPUS,
    AgentStrategy,
    CodexStrategy,
    OpusStrategy,
    STRATEGIES,
    get_strategy,
)

__all__ = [
    "AGENTS",
    "CODEX",
    "OPUS",
    "AgentStrategy",
    "CodexStrategy",
    "OpusStrategy",
    "STRATEGIES",
    "get_strategy",
]
