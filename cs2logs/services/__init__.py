"""Services layer - classification, ingestion and background helpers."""
from .logparser import LogClassifier
from .ingestion import LogIngestionService, RoundStatsAssembler

__all__ = ["LogClassifier", "LogIngestionService", "RoundStatsAssembler"]
