"""Log ingestion service - classification plus persistence.

This service orchestrates:
- Raw log persistence via RawLogRepository
- Round statistics assembly via RoundStatsAssembler
- Classification via LogClassifier
- Parsed/failed persistence via ParsedLogRepository and FailedParseRepository
- Session attribution via SessionTracker
- Re-classification of stored failures

Repositories are bound to the caller's database session, so the same service
instance serves every request and every scheduled job.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID

from cs2logs.domain.logs.models import RawLog, ParsedLog, FailedParse
from cs2logs.domain.logs.repositories import (
    RawLogRepository,
    ParsedLogRepository,
    FailedParseRepository,
)
from cs2logs.domain.sessions.repositories import GameSessionRepository
from cs2logs.domain.sessions.service import SessionTracker
from cs2logs.services.logparser.logparser import LogClassifier, iter_nonblank
from cs2logs.services.logparser.schemas import Failed, LogLine, ParseOutcome, Parsed

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from cs2logs.domain.servers.models import GameServer
    from cs2logs.services.ingestion.stats_assembler import RoundStatsAssembler


logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Summary returned to the game server after one ingest request."""

    server_id: UUID
    line_count: int
    parsed_count: int
    failed_count: int
    timestamp: datetime
    received: bool = True


@dataclass
class ReparseResult:
    resolved: int = 0
    still_failing: int = 0
    errors: list[str] = field(default_factory=list)


class LogIngestionService:
    """Stores, classifies and attributes CS2 log lines.

    Example:
        service = LogIngestionService(classifier=classifier, assembler=assembler)
        result = await service.ingest(db_session, server, body)
    """

    def __init__(
        self,
        classifier: LogClassifier,
        assembler: "RoundStatsAssembler",
    ) -> None:
        """Initialize the log ingestion service.

        Args:
            classifier: Shared LogClassifier instance.
            assembler: Shared round statistics assembler.
        """
        self.classifier: LogClassifier = classifier
        self.assembler: RoundStatsAssembler = assembler

        # Statistics
        self.total_requests: int = 0
        self.total_lines: int = 0
        self.parsed_lines: int = 0
        self.failed_lines: int = 0
        self.buffered_lines: int = 0
        self.reparsed_lines: int = 0
        self.last_ingest_at: datetime | None = None

    def _outcome(self, server_id: UUID, line: LogLine) -> ParseOutcome | None:
        """Classify a line, or return None while it is buffered in a stats block."""
        assembled = self.assembler.feed(str(server_id), line.body)
        if assembled is None:
            return self.classifier.classify_line(line)
        if not assembled.complete:
            return None
        if assembled.event is not None:
            return Parsed(event=assembled.event)
        return Failed(error=f"line {line.line_number}: round_stats: {assembled.error}")

    async def ingest(
        self,
        db_session: "AsyncSession",
        server: "GameServer",
        text: str,
        *,
        source_ip: str | None = None,
    ) -> IngestResult:
        """Persist and classify one pushed block of log lines.

        Args:
            db_session: Session of the surrounding transaction.
            server: The authenticated sending server.
            text: Request body, one CS2 log line per line.
            source_ip: Address the request came from.
        """
        raw_repo = RawLogRepository(session=db_session)
        parsed_repo = ParsedLogRepository(session=db_session)
        failed_repo = FailedParseRepository(session=db_session)
        tracker = SessionTracker(GameSessionRepository(session=db_session))

        now = datetime.now(timezone.utc)
        raw_logs: list[RawLog] = []
        parsed_logs: list[ParsedLog] = []
        failed_parses: list[FailedParse] = []

        # Round stats buffers are shared across requests; undo this request's
        # changes to them when storing fails
        checkpoint = self.assembler.checkpoint(str(server.id))
        try:
            for number, raw in enumerate(iter_nonblank([text]), start=1):
                line = self.classifier.prepare_line(raw, number)
                raw_log = RawLog(server_id=server.id, content=line.raw_content, logged_at=line.logged_at)
                raw_logs.append(raw_log)

                outcome = self._outcome(server.id, line)
                if outcome is None:
                    self.buffered_lines += 1
                    continue

                if isinstance(outcome, Parsed):
                    game_session = await tracker.apply(server.id, outcome.event, line.logged_at or now)
                    parsed_logs.append(
                        ParsedLog(
                            server_id=server.id,
                            raw_log=raw_log,
                            session=game_session,
                            event_type=outcome.event_type,
                            event_data=outcome.event_data,
                            content=line.raw_content,
                            logged_at=line.logged_at,
                        )
                    )
                else:
                    failed_parses.append(
                        FailedParse(
                            server_id=server.id,
                            raw_log=raw_log,
                            line_number=number,
                            content=line.raw_content,
                            error_message=outcome.error,
                        )
                    )

            if raw_logs:
                await raw_repo.add_many(raw_logs)
            if parsed_logs:
                await parsed_repo.add_many(parsed_logs)
            if failed_parses:
                await failed_repo.add_many(failed_parses)
        except Exception:
            self.assembler.restore(str(server.id), checkpoint)
            raise

        server.last_seen = now
        if source_ip:
            server.ip_address = source_ip

        self.total_requests += 1
        self.total_lines += len(raw_logs)
        self.parsed_lines += len(parsed_logs)
        self.failed_lines += len(failed_parses)
        self.last_ingest_at = now

        logger.info(
            "Ingested %d line(s) from server %s: %d parsed, %d failed",
            len(raw_logs), server.id, len(parsed_logs), len(failed_parses),
        )
        return IngestResult(
            server_id=server.id,
            line_count=len(raw_logs),
            parsed_count=len(parsed_logs),
            failed_count=len(failed_parses),
            timestamp=now,
        )

    async def reparse_failed(
        self,
        db_session: "AsyncSession",
        *,
        batch_size: int,
        max_retries: int,
    ) -> ReparseResult:
        """Re-classify stored failures, e.g. after new grammars were added.

        A line that now classifies gets a ParsedLog and is marked resolved.
        Otherwise its retry counter and error message are updated.
        """
        failed_repo = FailedParseRepository(session=db_session)
        parsed_repo = ParsedLogRepository(session=db_session)

        now = datetime.now(timezone.utc)
        result = ReparseResult()
        for failure in await failed_repo.list_retryable(max_retries=max_retries, limit=batch_size):
            line = self.classifier.prepare_line(failure.content, failure.line_number)
            outcome = self.classifier.classify_line(line)
            failure.retry_count += 1
            failure.last_retry = now
            if isinstance(outcome, Parsed):
                await parsed_repo.add(
                    ParsedLog(
                        server_id=failure.server_id,
                        raw_log_id=failure.raw_log_id,
                        event_type=outcome.event_type,
                        event_data=outcome.event_data,
                        content=failure.content,
                        logged_at=line.logged_at,
                    )
                )
                failure.resolved = True
                result.resolved += 1
            else:
                failure.error_message = outcome.error
                result.still_failing += 1
                result.errors.append(outcome.error)

        self.reparsed_lines += result.resolved
        return result

    def snapshot(self) -> dict[str, Any]:
        """Counters exposed by the stats endpoint."""
        return {
            "total_requests": self.total_requests,
            "total_lines": self.total_lines,
            "parsed_lines": self.parsed_lines,
            "failed_lines": self.failed_lines,
            "buffered_lines": self.buffered_lines,
            "reparsed_lines": self.reparsed_lines,
            "open_stats_buffers": self.assembler.open_buffers,
            "last_ingest_at": self.last_ingest_at.isoformat() if self.last_ingest_at else None,
        }
