# 业务逻辑服务包
from .team_service import TeamService, determine_team
from .game_service import GameService
from .round_service import RoundService
from .feed_service import FeedService
from .ingest_service import IngestService
from .stats_service import StatsService
from .scheduler import TournamentScheduler

__all__ = [
    "TeamService", "determine_team", "GameService", "RoundService",
    "FeedService", "IngestService", "StatsService", "TournamentScheduler"
]
