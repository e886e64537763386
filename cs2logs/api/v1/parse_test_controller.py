"""Parse-test endpoint: classify pasted log text without storing anything."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from litestar import Controller, post
from litestar.exceptions import ClientException
from litestar.status_codes import HTTP_200_OK

from cs2logs.config.settings import Settings
from cs2logs.services.logparser import LogClassifier


logger = logging.getLogger(__name__)


@dataclass
class ParseTestRequest:
    """Multi-line block of CS2 log text, one event per line."""

    logs: str


class ParseTestController(Controller):
    """Classification harness used to check grammars against real log samples."""

    path = "/api/parse-test"
    tags = ["Parse Test"]

    @post("/", status_code=HTTP_200_OK)
    async def parse_test(
        self,
        data: ParseTestRequest,
        log_classifier: LogClassifier,
        settings: Settings,
    ) -> dict[str, Any]:
        """Classify every non-blank line and return per-line outcomes with totals."""
        if not data.logs.strip():
            raise ClientException(detail="logs must contain at least one non-blank line")

        line_count = log_classifier.count_lines(data.logs)
        max_lines = settings.logparser.max_lines
        if line_count > max_lines:
            raise ClientException(detail=f"too many lines: {line_count} (maximum {max_lines})")

        result = log_classifier.parse_text(data.logs)
        logger.debug(
            "Parse test: %d line(s), %d parsed, %d failed",
            result.total_lines, result.parsed_count, result.failed_count,
        )
        return result.to_dict()
