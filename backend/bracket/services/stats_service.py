"""
游戏概览统计服务
"""

from typing import Optional
from sqlalchemy import case, func
from sqlalchemy.orm import Session
from bracket.core.config import Settings
from bracket.models.game_participant import GameParticipant
from bracket.models.round_model import Round
from bracket.models.round_participant import RoundParticipant, PARTICIPANT_ACTIVE
from bracket.models.elimination import Elimination
from bracket.schemas.game_schemas import GameOverview, GameResponse, RoundInfo, RoundSummary, TeamStats
from bracket.services.round_service import RoundService

class StatsService:
    """当前游戏的概览统计"""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.round_service = RoundService(db, config=config)
        self.game_service = self.round_service.game_service

    async def get_current_stats(self) -> GameOverview:
        """获取当前游戏、当前轮次、预计淘汰线、队伍人数和各轮概要"""
        current_game = await self.game_service.get_current_game()
        if not current_game:
            return GameOverview(status="no-game")

        current_round = await self.round_service.get_current_round()

        team_rows = self.db.query(
            GameParticipant.team,
            func.count(GameParticipant.user_id),
            func.sum(case((GameParticipant.status == PARTICIPANT_ACTIVE, 1), else_=0))
        ).filter(
            GameParticipant.game_id == current_game.id
        ).group_by(GameParticipant.team).order_by(GameParticipant.team).all()

        round_rows = self.db.query(
            Round,
            func.count(Elimination.id)
        ).outerjoin(
            Elimination, Elimination.round_id == Round.id
        ).filter(
            Round.game_id == current_game.id
        ).group_by(Round.id).order_by(Round.start_time.asc(), Round.id.asc()).all()

        # 预计淘汰线：当前轮次中 active 参与者的最低点赞数
        projected_threshold = None
        if current_round:
            min_likes = self.db.query(func.min(RoundParticipant.total_likes)).filter(
                RoundParticipant.round_id == current_round.id,
                RoundParticipant.status == PARTICIPANT_ACTIVE
            ).scalar()
            projected_threshold = int(min_likes or 0)

        return GameOverview(
            status=current_game.status,
            game=GameResponse.model_validate(current_game),
            current_round=RoundInfo.model_validate(current_round) if current_round else None,
            projected_threshold=projected_threshold,
            team_stats=[
                TeamStats(team=team, total_players=int(total), active_players=int(active or 0))
                for team, total, active in team_rows
            ],
            rounds=[
                RoundSummary(
                    id=round_obj.id,
                    status=round_obj.status,
                    start_time=round_obj.start_time,
                    end_time=round_obj.end_time,
                    cutoff_likes=round_obj.cutoff_likes,
                    elimination_count=int(count)
                )
                for round_obj, count in round_rows
            ]
        )
