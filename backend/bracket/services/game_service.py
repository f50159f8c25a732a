"""
游戏管理服务
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from bracket.core.config import Settings, settings
from bracket.core.database import transaction
from bracket.core.utils import chunked, utcnow
from bracket.models.user import User
from bracket.models.game import Game, GAME_REGISTRATION, GAME_ACTIVE, GAME_COMPLETED
from bracket.models.game_participant import GameParticipant
from bracket.models.round_model import Round
from bracket.models.round_participant import RoundParticipant, PARTICIPANT_ACTIVE
from bracket.services.readiness import validate_team_readiness
from bracket.services.round_service import RoundService

logger = logging.getLogger(__name__)

class GameService:
    """游戏生命周期管理：创建、开始、结束游戏"""

    def __init__(self, db: Session, round_service: Optional[RoundService] = None,
                 config: Optional[Settings] = None):
        self.db = db
        self.config = config or settings
        self.round_service = round_service or RoundService(db, game_service=self, config=self.config)

    async def get_current_game(self) -> Optional[Game]:
        """获取当前处于报名或进行中状态的游戏"""
        return self.db.query(Game).filter(
            Game.status.in_([GAME_REGISTRATION, GAME_ACTIVE])
        ).order_by(Game.start_time.desc(), Game.id.desc()).first()

    async def create_new_game(self) -> Optional[Game]:
        """创建新游戏并把所有未分配的用户加入其中

        只有当每支队伍都有至少 MIN_USERS_PER_TEAM 名未分配用户时才会创建，
        否则返回 None。就绪检查与用户分配在同一个事务中完成。
        """
        now = utcnow()
        end_time = now + timedelta(hours=self.config.GAME_DURATION_HOURS)

        with transaction(self.db):
            readiness = validate_team_readiness(
                self.db,
                self.config.MIN_USERS_PER_TEAM,
                self.config.TOTAL_TEAMS,
                "game"
            )
            if not readiness.is_ready:
                logger.info(
                    "人数不足，无法创建游戏: 达标队伍 %d/%d，每队至少需要 %d 人，缺少 %d 支队伍",
                    readiness.ready_teams, self.config.TOTAL_TEAMS,
                    self.config.MIN_USERS_PER_TEAM, len(readiness.missing_teams)
                )
                return None

            game = Game(
                start_time=now,
                end_time=end_time,
                status=GAME_REGISTRATION,
                max_players_per_team=self.config.PLAYERS_PER_TEAM,
                current_round_id=None,
                winner=None
            )
            self.db.add(game)
            self.db.flush()

            assigned = self._assign_users(game.id, now)
            logger.info("🎮 新游戏 %s 已创建，分配用户 %d 名，队伍 %d 支", game.id, assigned, readiness.ready_teams)

        return game

    def _assign_users(self, game_id: int, now: datetime) -> int:
        """把所有未分配的用户分批加入游戏"""
        unassigned = self.db.query(User.did, User.team).filter(
            User.current_game_id.is_(None)
        ).order_by(User.did).all()

        for batch in chunked(unassigned, self.config.BATCH_SIZE):
            self.db.bulk_insert_mappings(GameParticipant, [
                {
                    "game_id": game_id,
                    "user_id": user.did,
                    "team": user.team,
                    "joined_at": now,
                    "status": PARTICIPANT_ACTIVE
                }
                for user in batch
            ])
            self.db.query(User).filter(
                User.did.in_([user.did for user in batch])
            ).update({User.current_game_id: game_id}, synchronize_session=False)
            logger.debug("游戏 %s 用户分配批次完成: %d 名", game_id, len(batch))

        return len(unassigned)

    async def start_game(self, game_id: int) -> Optional[Tuple[Game, Round]]:
        """开始游戏：创建首轮、初始化轮次参与者、回填帖子"""
        now = utcnow()

        with transaction(self.db):
            game = self.db.query(Game).filter(
                Game.id == game_id,
                Game.status == GAME_REGISTRATION
            ).first()
            if not game:
                logger.warning("游戏 %s 不存在或不处于报名状态，无法开始", game_id)
                return None

            # 以本游戏中仍然 active 的参与者重新检查人数
            readiness = validate_team_readiness(
                self.db,
                self.config.MIN_USERS_PER_TEAM,
                self.config.TOTAL_TEAMS,
                "round",
                game_id
            )
            if not readiness.is_ready:
                logger.info(
                    "游戏 %s 活跃参与者不足，暂不开始: 缺少 %d 支队伍",
                    game_id, len(readiness.missing_teams)
                )
                return None

            round_obj = await self.round_service.create_initial_round(game_id, now)
            participants = await self.round_service.initialize_round_participants(game_id, round_obj.id)

            game.status = GAME_ACTIVE
            game.current_round_id = round_obj.id

            await self.round_service.backfill_posts(
                game_id,
                round_obj.id,
                game.start_time,
                round_obj.end_time,
                [p.user_id for p in participants]
            )
            self.db.flush()

            logger.info(
                "🚀 游戏 %s 已开始: 首轮 %s，参与者 %d 名，队伍 %d 支",
                game_id, round_obj.id, len(participants), readiness.ready_teams
            )

        return game, round_obj

    async def complete_game(self, game_id: int) -> Optional[int]:
        """结束游戏，按队伍统计仍存活参与者的点赞总数决出冠军，返回获胜队伍编号"""
        logger.info("游戏 %s 即将结束", game_id)

        with transaction(self.db):
            game = self.db.query(Game).filter(
                Game.id == game_id,
                Game.status.in_([GAME_REGISTRATION, GAME_ACTIVE])
            ).first()
            if not game:
                logger.warning("游戏 %s 不存在或已结束", game_id)
                return None

            team_scores = self._team_scores(game_id)
            winner = team_scores[0].team if team_scores else None

            game.status = GAME_COMPLETED
            game.winner = winner

            released = self.db.query(User).filter(
                User.current_game_id == game_id
            ).update({User.current_game_id: None}, synchronize_session=False)
            self.db.flush()

            logger.info(
                "🏆 游戏 %s 已结束: 获胜队伍 %s，释放用户 %d 名，队伍得分 %s",
                game_id, winner, released,
                [(row.team, int(row.player_count), int(row.total_likes)) for row in team_scores]
            )

        return winner

    def _team_scores(self, game_id: int) -> List:
        """按队伍汇总仍然 active 的游戏参与者在本游戏各轮中的点赞数"""
        total_likes = func.coalesce(func.sum(RoundParticipant.total_likes), 0).label("total_likes")

        return self.db.query(
            GameParticipant.team,
            func.count(func.distinct(GameParticipant.user_id)).label("player_count"),
            total_likes
        ).join(
            RoundParticipant, RoundParticipant.user_id == GameParticipant.user_id
        ).join(
            Round, Round.id == RoundParticipant.round_id
        ).filter(
            GameParticipant.game_id == game_id,
            GameParticipant.status == PARTICIPANT_ACTIVE,
            Round.game_id == game_id
        ).group_by(
            GameParticipant.team
        ).order_by(
            total_likes.desc(),
            GameParticipant.team
        ).all()

    async def ensure_active_game(self) -> Optional[Game]:
        """确保存在一个进行中的游戏；条件不满足时返回 None"""
        current_game = await self.get_current_game()

        if not current_game:
            logger.info("当前没有游戏，尝试创建新游戏...")
            game = await self.create_new_game()
            if not game:
                logger.info("用户不足，暂不创建新游戏")
                return None

            game_id = game.id
            if not await self.start_game(game_id):
                logger.warning("新创建的游戏 %s 无法开始", game_id)
                return None
            return game

        if current_game.status == GAME_REGISTRATION:
            game_id = current_game.id
            logger.info("尝试开始报名中的游戏 %s...", game_id)
            if not await self.start_game(game_id):
                logger.warning("报名中的游戏 %s 无法开始", game_id)
                return None

        return current_game

    async def check_game_status(self) -> Optional[Game]:
        """周期性检查：没有游戏时尝试创建，游戏到期时结束并进入下一局"""
        current_game = await self.get_current_game()
        if not current_game:
            return await self.ensure_active_game()

        if current_game.end_time <= utcnow():
            await self.complete_game(current_game.id)
            return await self.ensure_active_game()

        return current_game
