"""Central route registration."""
from litestar.types import ControllerRouterHandler

from cs2logs.api.v1.parse_test_controller import ParseTestController
from cs2logs.api.v1.ingest_controller import IngestController
from cs2logs.api.v1.logs_controller import LogsController
from cs2logs.api.v1.sessions_controller import GameSessionController
from cs2logs.api.v1.servers_controller import GameServerController
from cs2logs.api.v1.stats import stats
from cs2logs.api.v1.health import health


def get_route_handlers() -> list[ControllerRouterHandler]:
    """Get all route handlers for the application."""
    return [
        ParseTestController,
        IngestController,
        LogsController,
        GameSessionController,
        GameServerController,
        stats,
        health,
    ]
