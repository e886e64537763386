"""CS2 log line classifier - parsing only, no database operations."""
from .logparser import LogClassifier, GrammarError, GRAMMARS
from .schemas import (
    CS2Event,
    Failed,
    LineResult,
    LogLine,
    ParseBatchResult,
    ParseOutcome,
    Parsed,
    PlayerDescriptor,
    RoundStats,
)

__all__ = [
    "LogClassifier",
    "GrammarError",
    "GRAMMARS",
    "CS2Event",
    "Failed",
    "LineResult",
    "LogLine",
    "ParseBatchResult",
    "ParseOutcome",
    "Parsed",
    "PlayerDescriptor",
    "RoundStats",
]
