"""DTOs for raw, parsed and failed log data transfer."""
from __future__ import annotations

from advanced_alchemy.extensions.litestar import SQLAlchemyDTO, SQLAlchemyDTOConfig

from cs2logs.domain.logs.models import RawLog, ParsedLog, FailedParse


class RawLogDTO(SQLAlchemyDTO[RawLog]):
    """Data transfer object for RawLog model."""
    config = SQLAlchemyDTOConfig(exclude={"updated_at"})


class ParsedLogDTO(SQLAlchemyDTO[ParsedLog]):
    """Data transfer object for ParsedLog model."""
    config = SQLAlchemyDTOConfig(exclude={"updated_at", "raw_log", "session"})


class FailedParseDTO(SQLAlchemyDTO[FailedParse]):
    """Data transfer object for FailedParse model."""
    config = SQLAlchemyDTOConfig(exclude={"updated_at", "raw_log"})
