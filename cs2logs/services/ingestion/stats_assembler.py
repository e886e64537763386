"""Assembly of multi-line ``JSON_BEGIN{ ... }}JSON_END`` round statistics.

CS2 prints end-of-round statistics as a JSON object spread over many log
lines. Each line arrives as an ordinary log line, so the blocks have to be
buffered per server until the closing marker is seen.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any

from litestar.exceptions import SerializationException
from litestar.serialization import decode_json

from cs2logs.services.logparser.schemas import RoundStats


logger = logging.getLogger(__name__)

BEGIN_MARKER = "JSON_BEGIN"
END_MARKER = "JSON_END"


@dataclass
class _Buffer:
    started_at: float
    lines: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AssemblerOutcome:
    """Result of feeding one line that belongs to a statistics block.

    ``complete`` is False while the block is still being buffered. A completed
    block carries either ``event`` or ``error``.
    """

    complete: bool = False
    event: RoundStats | None = None
    error: str | None = None


class RoundStatsAssembler:
    """Per-server buffers of unfinished statistics blocks.

    Shared by every ingest request, so buffer access is guarded by a lock.
    """

    def __init__(self) -> None:
        self._buffers: dict[str, _Buffer] = {}
        self._lock = threading.Lock()

    @property
    def open_buffers(self) -> int:
        with self._lock:
            return len(self._buffers)

    def feed(self, server_id: str, body: str) -> AssemblerOutcome | None:
        """Offer a prefix-stripped line to the assembler.

        Returns None when the line is not part of a statistics block and should
        be classified normally.
        """
        with self._lock:
            if body.startswith(BEGIN_MARKER):
                if server_id in self._buffers:
                    logger.warning("Discarding unfinished round stats block for server %s", server_id)
                opening = body[len(BEGIN_MARKER):].strip() or "{"
                self._buffers[server_id] = _Buffer(started_at=time.monotonic(), lines=[opening])
                return AssemblerOutcome()

            buffer = self._buffers.get(server_id)
            if buffer is None:
                return None

            if body.endswith(END_MARKER):
                buffer.lines.append(body[: -len(END_MARKER)].strip())
                del self._buffers[server_id]
                return self._assemble(server_id, buffer.lines)

            buffer.lines.append(body)
            return AssemblerOutcome()

    @staticmethod
    def _assemble(server_id: str, lines: list[str]) -> AssemblerOutcome:
        document = "\n".join(lines)
        try:
            payload: Any = decode_json(document)
        except SerializationException as e:
            logger.debug("Invalid round stats block from server %s: %s", server_id, e)
            return AssemblerOutcome(complete=True, error=f"invalid round stats JSON: {e}")
        if not isinstance(payload, dict):
            return AssemblerOutcome(complete=True, error="round stats block is not a JSON object")
        return AssemblerOutcome(complete=True, event=RoundStats(payload=payload))

    def checkpoint(self, server_id: str) -> list[str] | None:
        """Copy of the open block of a server, for undoing a failed ingest."""
        with self._lock:
            buffer = self._buffers.get(server_id)
            return list(buffer.lines) if buffer is not None else None

    def restore(self, server_id: str, lines: list[str] | None) -> None:
        """Put back the state returned by :meth:`checkpoint`."""
        with self._lock:
            if lines is None:
                self._buffers.pop(server_id, None)
            else:
                self._buffers[server_id] = _Buffer(started_at=time.monotonic(), lines=list(lines))

    def cleanup(self, max_age_seconds: float) -> int:
        """Drop buffers older than ``max_age_seconds``; returns how many were dropped."""
        cutoff = time.monotonic() - max_age_seconds
        with self._lock:
            stale = [sid for sid, buf in self._buffers.items() if buf.started_at < cutoff]
            for server_id in stale:
                del self._buffers[server_id]
        if stale:
            logger.info("Dropped %d stale round stats buffer(s)", len(stale))
        return len(stale)
