"""
轮次管理服务
"""

import logging
import math
import time
from datetime import datetime, timedelta
from typing import List, Optional, Set
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from bracket.core.config import Settings, settings
from bracket.core.database import transaction
from bracket.core.utils import chunked, utcnow
from bracket.models.post import Post
from bracket.models.game import Game, GAME_ACTIVE
from bracket.models.game_participant import GameParticipant
from bracket.models.round_model import Round, ROUND_ACTIVE, ROUND_COMPLETED
from bracket.models.round_participant import RoundParticipant, PARTICIPANT_ACTIVE, PARTICIPANT_ELIMINATED
from bracket.models.elimination import Elimination
from bracket.schemas.game_schemas import (
    RoundStatus, RoundLiveStats, RoundStats, RoundInfo,
    ParticipantGroup, EliminationGroup, TeamCutoff
)

logger = logging.getLogger(__name__)

class RoundService:
    """轮次生命周期管理：创建轮次、淘汰结算、推进到下一轮"""

    def __init__(self, db: Session, game_service=None, processing_rounds: Optional[Set[int]] = None,
                 config: Optional[Settings] = None):
        self.db = db
        self.config = config or (game_service.config if game_service else settings)
        if game_service is None:
            from bracket.services.game_service import GameService
            game_service = GameService(db, round_service=self, config=self.config)
        self.game_service = game_service
        # 正在结算中的轮次ID（仅在本进程内有效）
        self._processing_rounds = processing_rounds if processing_rounds is not None else set()

    @property
    def round_duration(self) -> timedelta:
        return timedelta(hours=self.config.ROUND_DURATION_HOURS)

    async def get_current_round(self) -> Optional[Round]:
        """获取当前游戏中进行中的轮次"""
        current_game = await self.game_service.get_current_game()
        if not current_game or not current_game.current_round_id:
            return None

        return self.db.query(Round).filter(
            Round.id == current_game.current_round_id,
            Round.status == ROUND_ACTIVE
        ).first()

    async def create_initial_round(self, game_id: int, now: datetime) -> Round:
        """创建游戏的首轮（由调用方负责提交事务）"""
        round_obj = Round(
            game_id=game_id,
            start_time=now,
            end_time=now + self.round_duration,
            status=ROUND_ACTIVE,
            cutoff_likes=None
        )
        self.db.add(round_obj)
        self.db.flush()
        return round_obj

    async def initialize_round_participants(self, game_id: int, round_id: int) -> List:
        """把游戏中所有 active 参与者加入首轮"""
        participants = self.db.query(
            GameParticipant.user_id,
            GameParticipant.team
        ).filter(
            GameParticipant.game_id == game_id,
            GameParticipant.status == PARTICIPANT_ACTIVE
        ).order_by(GameParticipant.user_id).all()

        if not participants:
            raise RuntimeError(f"游戏 {game_id} 没有活跃参与者")

        logger.info("初始化轮次参与者: 游戏 %s，轮次 %s，共 %d 名", game_id, round_id, len(participants))

        done = 0
        for batch in chunked(participants, self.config.BATCH_SIZE):
            self._insert_round_participants(round_id, batch)
            done += len(batch)
            logger.debug("轮次 %s 参与者批次完成: %d/%d", round_id, done, len(participants))

        return participants

    def _insert_round_participants(self, round_id: int, participants) -> None:
        self.db.bulk_insert_mappings(RoundParticipant, [
            {
                "round_id": round_id,
                "user_id": p.user_id,
                "team": p.team,
                "total_likes": 0,
                "status": PARTICIPANT_ACTIVE
            }
            for p in participants
        ])

    async def backfill_posts(self, game_id: int, round_id: int, game_start: datetime,
                             round_end: datetime, user_ids: List[str]) -> int:
        """把参与者在游戏开始后发布的帖子归入本游戏和本轮"""
        for batch in chunked(user_ids, self.config.BATCH_SIZE):
            self.db.query(Post).filter(
                Post.user_id.in_(batch),
                Post.active.is_(True),
                (Post.game_id.is_(None)) | (Post.game_id == game_id),
                Post.indexed_at >= game_start,
                Post.indexed_at <= round_end
            ).update({Post.game_id: game_id, Post.round_id: round_id}, synchronize_session=False)

        updated = self.db.query(func.count(Post.uri)).filter(
            Post.game_id == game_id,
            Post.round_id == round_id
        ).scalar() or 0

        logger.info("游戏 %s 帖子回填完成: 轮次 %s，帖子 %d 条", game_id, round_id, updated)
        return int(updated)

    async def create_next_round(self, game_id: int) -> Optional[Round]:
        """创建下一轮，并把上一轮仍然存活的参与者带入（点赞数清零）"""
        now = utcnow()

        with transaction(self.db):
            game = self.db.query(Game).filter(
                Game.id == game_id,
                Game.status == GAME_ACTIVE
            ).first()
            if not game:
                logger.warning("游戏 %s 不在进行中，无法创建下一轮", game_id)
                return None

            previous_round_id = game.current_round_id
            round_obj = Round(
                game_id=game_id,
                start_time=now,
                end_time=now + self.round_duration,
                status=ROUND_ACTIVE,
                cutoff_likes=None
            )
            self.db.add(round_obj)
            self.db.flush()

            carried = 0
            if previous_round_id:
                survivors = self.db.query(
                    RoundParticipant.user_id,
                    RoundParticipant.team
                ).filter(
                    RoundParticipant.round_id == previous_round_id,
                    RoundParticipant.status == PARTICIPANT_ACTIVE
                ).order_by(RoundParticipant.user_id).all()

                for batch in chunked(survivors, self.config.BATCH_SIZE):
                    self._insert_round_participants(round_obj.id, batch)
                carried = len(survivors)

            game.current_round_id = round_obj.id
            self.db.flush()

            logger.info(
                "游戏 %s 新一轮 %s 已创建（上一轮 %s，晋级 %d 名）",
                game_id, round_obj.id, previous_round_id, carried
            )

        return round_obj

    def _refresh_total_likes(self, round_id: int, team: int) -> None:
        """按本轮帖子重新汇总队伍成员的点赞数"""
        total = select(
            func.coalesce(func.sum(Post.like_count), 0)
        ).where(
            Post.user_id == RoundParticipant.user_id,
            Post.round_id == round_id
        ).correlate(RoundParticipant).scalar_subquery()

        self.db.query(RoundParticipant).filter(
            RoundParticipant.round_id == round_id,
            RoundParticipant.team == team
        ).update({RoundParticipant.total_likes: total}, synchronize_session=False)

    async def process_round_eliminations(self, round_id: int) -> Optional[int]:
        """淘汰结算

        每支队伍独立处理：重新汇总点赞数后按升序排列（同分按 user_id），
        淘汰前 ceil(n/2) 名。全部队伍处理完后记录本轮淘汰线
        （被淘汰者中的最高点赞数，无人淘汰时为 0），并把轮次标记为 completed。
        整个过程在同一个事务中完成，返回淘汰线。
        """
        started = time.monotonic()
        processed = 0

        try:
            logger.info("开始结算轮次 %s", round_id)

            with transaction(self.db):
                round_obj = self.db.query(Round).filter(
                    Round.id == round_id,
                    Round.status == ROUND_ACTIVE
                ).first()
                if not round_obj:
                    logger.warning("轮次 %s 不存在或不在进行中，跳过淘汰结算", round_id)
                    return None

                now = utcnow()
                teams = [team for (team,) in self.db.query(RoundParticipant.team).filter(
                    RoundParticipant.round_id == round_id,
                    RoundParticipant.status == PARTICIPANT_ACTIVE
                ).distinct().order_by(RoundParticipant.team).all()]

                logger.debug("轮次 %s 待处理队伍 %d 支", round_id, len(teams))

                for team in teams:
                    self._refresh_total_likes(round_id, team)

                    participants = self.db.query(RoundParticipant).filter(
                        RoundParticipant.round_id == round_id,
                        RoundParticipant.team == team,
                        RoundParticipant.status == PARTICIPANT_ACTIVE
                    ).order_by(
                        RoundParticipant.total_likes.asc(),
                        RoundParticipant.user_id.asc()
                    ).populate_existing().all()

                    if not participants:
                        continue

                    eliminated = participants[:math.ceil(len(participants) / 2)]

                    for batch in chunked(eliminated, self.config.BATCH_SIZE):
                        user_ids = [p.user_id for p in batch]

                        self.db.query(RoundParticipant).filter(
                            RoundParticipant.round_id == round_id,
                            RoundParticipant.user_id.in_(user_ids)
                        ).update({RoundParticipant.status: PARTICIPANT_ELIMINATED}, synchronize_session=False)

                        self.db.query(GameParticipant).filter(
                            GameParticipant.game_id == round_obj.game_id,
                            GameParticipant.user_id.in_(user_ids)
                        ).update({GameParticipant.status: PARTICIPANT_ELIMINATED}, synchronize_session=False)

                        self.db.bulk_insert_mappings(Elimination, [
                            {
                                "round_id": round_id,
                                "user_id": p.user_id,
                                "team": p.team,
                                "like_count": p.total_likes,
                                "eliminated_at": now
                            }
                            for p in batch
                        ])
                        processed += len(batch)

                    logger.debug(
                        "轮次 %s 队伍 %s 淘汰 %d 名，剩余 %d 名",
                        round_id, team, len(eliminated), len(participants) - len(eliminated)
                    )

                max_likes = self.db.query(func.max(RoundParticipant.total_likes)).filter(
                    RoundParticipant.round_id == round_id,
                    RoundParticipant.status == PARTICIPANT_ELIMINATED
                ).scalar()
                cutoff_likes = int(max_likes or 0)

                round_obj.status = ROUND_COMPLETED
                round_obj.cutoff_likes = cutoff_likes
                self.db.flush()

                logger.info(
                    "✅ 轮次 %s 结算完成: 淘汰 %d 名，淘汰线 %d，耗时 %d ms",
                    round_id, processed, cutoff_likes, (time.monotonic() - started) * 1000
                )

            return cutoff_likes
        except Exception:
            logger.exception(
                "轮次 %s 淘汰结算失败（已处理 %d 名，耗时 %d ms）",
                round_id, processed, (time.monotonic() - started) * 1000
            )
            raise

    async def check_and_progress_round(self) -> Optional[Round]:
        """检查当前轮次是否到期；到期则结算并创建下一轮

        同一轮次同时只允许一次结算，正在结算的轮次会被直接跳过。
        如果游戏的当前轮次已经结算但下一轮没有创建成功，本次检查会补建下一轮。
        """
        current_game = await self.game_service.get_current_game()
        if not current_game or current_game.status != GAME_ACTIVE or not current_game.current_round_id:
            logger.debug("当前没有进行中的轮次")
            return None

        round_id = current_game.current_round_id
        game_id = current_game.id

        if round_id in self._processing_rounds:
            logger.debug("轮次 %s 正在结算中，跳过本次检查", round_id)
            return None

        current_round = self.db.query(Round).filter(Round.id == round_id).first()
        if not current_round:
            logger.warning("游戏 %s 的当前轮次 %s 不存在", game_id, round_id)
            return None

        needs_eliminations = current_round.status == ROUND_ACTIVE
        if needs_eliminations and utcnow() < current_round.end_time:
            return None

        self._processing_rounds.add(round_id)
        try:
            if needs_eliminations:
                logger.info("轮次 %s 已到期，开始推进", round_id)
                await self.process_round_eliminations(round_id)
            else:
                logger.warning("轮次 %s 已结算但没有下一轮，补建下一轮", round_id)

            new_round = await self.create_next_round(game_id)

            logger.info(
                "轮次推进完成: %s -> %s",
                round_id, new_round.id if new_round else None
            )
            return new_round
        finally:
            self._processing_rounds.discard(round_id)

    async def get_round_status(self) -> Optional[RoundStatus]:
        """获取当前轮次状态及实时统计"""
        current_round = await self.get_current_round()
        if not current_round:
            return None

        now = utcnow()
        start_time = current_round.start_time
        end_time = current_round.end_time
        duration = (end_time - start_time).total_seconds()
        progress = (now - start_time).total_seconds() / duration * 100 if duration > 0 else 100.0

        active = (
            RoundParticipant.round_id == current_round.id,
            RoundParticipant.status == PARTICIPANT_ACTIVE
        )
        round_posts = (
            Post.round_id == current_round.id,
            Post.active.is_(True)
        )

        stats = RoundLiveStats(
            total_teams=self.db.query(func.count(func.distinct(RoundParticipant.team))).filter(*active).scalar() or 0,
            total_users=self.db.query(func.count(RoundParticipant.user_id)).filter(*active).scalar() or 0,
            total_posts=self.db.query(func.count(Post.uri)).filter(*round_posts).scalar() or 0,
            total_likes=self.db.query(func.coalesce(func.sum(Post.like_count), 0)).filter(*round_posts).scalar() or 0
        )

        return RoundStatus(
            round_id=current_round.id,
            status=current_round.status,
            start_time=start_time,
            end_time=end_time,
            time_remaining=(end_time - now) // timedelta(milliseconds=1),
            progress=progress,
            stats=stats
        )

    async def get_round_stats(self, round_id: int) -> RoundStats:
        """获取指定轮次的统计"""
        round_obj = self.db.query(Round).filter(Round.id == round_id).first()

        participant_stats = self.db.query(
            RoundParticipant.team,
            RoundParticipant.status,
            func.count(RoundParticipant.user_id)
        ).filter(
            RoundParticipant.round_id == round_id
        ).group_by(
            RoundParticipant.team, RoundParticipant.status
        ).order_by(RoundParticipant.team, RoundParticipant.status).all()

        post_count, total_likes = self.db.query(
            func.count(Post.uri),
            func.coalesce(func.sum(Post.like_count), 0)
        ).filter(Post.round_id == round_id).one()

        eliminations = self.db.query(
            RoundParticipant.team,
            RoundParticipant.status,
            RoundParticipant.total_likes,
            func.count(RoundParticipant.user_id)
        ).filter(
            RoundParticipant.round_id == round_id
        ).group_by(
            RoundParticipant.team, RoundParticipant.status, RoundParticipant.total_likes
        ).order_by(
            RoundParticipant.team.asc(), RoundParticipant.total_likes.desc()
        ).all()

        return RoundStats(
            round=RoundInfo.model_validate(round_obj) if round_obj else None,
            participant_stats=[
                ParticipantGroup(team=team, status=status, count=count)
                for team, status, count in participant_stats
            ],
            post_count=int(post_count or 0),
            total_likes=int(total_likes or 0),
            eliminations=[
                EliminationGroup(team=team, status=status, total_likes=likes, count=count)
                for team, status, likes, count in eliminations
            ]
        )

    async def get_round_cutoffs(self, round_id: int) -> List[TeamCutoff]:
        """按队伍获取某轮的淘汰线（来自淘汰记录）"""
        rows = self.db.query(
            Elimination.team,
            func.max(Elimination.like_count)
        ).filter(
            Elimination.round_id == round_id
        ).group_by(Elimination.team).order_by(Elimination.team).all()

        return [TeamCutoff(team=team, cutoff_likes=int(cutoff)) for team, cutoff in rows]
