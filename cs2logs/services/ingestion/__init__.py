from .service import LogIngestionService, IngestResult
from .stats_assembler import RoundStatsAssembler, AssemblerOutcome

__all__ = ["LogIngestionService", "IngestResult", "RoundStatsAssembler", "AssemblerOutcome"]
