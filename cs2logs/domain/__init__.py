from .servers.models import GameServer
from .logs.models import RawLog
from .logs.models import ParsedLog
from .logs.models import FailedParse
from .sessions.models import GameSession

__all__ = [
    "GameServer",
    "RawLog",
    "ParsedLog",
    "FailedParse",
    "GameSession",
]
