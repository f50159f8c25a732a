"""
Feed 排序服务
"""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy import and_, case, or_
from sqlalchemy.orm import Session
from bracket.core.config import Settings, settings
from bracket.core.utils import from_epoch_ms, to_epoch_ms, utcnow
from bracket.models.post import Post
from bracket.models.user import User
from bracket.models.round_participant import RoundParticipant, PARTICIPANT_ACTIVE
from bracket.schemas.feed_schemas import FeedSkeleton, SkeletonItem, FeedGeneratorDescription, FeedInfo
from bracket.services.team_service import determine_team

logger = logging.getLogger(__name__)

FEED_COLLECTION = "app.bsky.feed.generator"


class UnsupportedAlgorithmError(ValueError):
    """请求的 feed 不是本服务发布的"""


class InvalidCursorError(ValueError):
    """分页游标无法解析"""


class FeedService:
    """按队伍生成排序后的帖子流"""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.config = config or settings

    @property
    def feed_uri(self) -> str:
        return f"at://{self.config.PUBLISHER_DID}/{FEED_COLLECTION}/{self.config.FEED_SHORTNAME}"

    async def describe_feed_generator(self) -> FeedGeneratorDescription:
        """描述本服务发布的 feed"""
        return FeedGeneratorDescription(
            did=self.config.SERVICE_DID,
            feeds=[FeedInfo(uri=self.feed_uri)]
        )

    async def rank_posts(self, team: int, current_game_id: Optional[int],
                         cursor_time: datetime, limit: int) -> List[Post]:
        """查询并排序队伍的帖子

        用户在游戏中时：本游戏的帖子排在最前，然后按点赞数、时间倒序；
        属于某轮的帖子只有在作者仍是该轮 active 参与者时才显示。
        用户不在游戏中时：只按点赞数、时间倒序。
        """
        conditions = [
            Post.team == team,
            Post.indexed_at < cursor_time,
            Post.active.is_(True)
        ]
        ordering = []
        query = self.db.query(Post)

        if current_game_id is not None:
            query = query.outerjoin(
                RoundParticipant,
                and_(
                    RoundParticipant.round_id == Post.round_id,
                    RoundParticipant.user_id == Post.user_id
                )
            )
            conditions.append(or_(
                Post.round_id.is_(None),
                RoundParticipant.status == PARTICIPANT_ACTIVE
            ))
            ordering.append(case((Post.game_id == current_game_id, 1), else_=0).desc())

        ordering.extend([Post.like_count.desc(), Post.indexed_at.desc()])

        return query.filter(*conditions).order_by(*ordering).limit(limit).all()

    def _parse_cursor(self, cursor: Optional[str]) -> datetime:
        if not cursor:
            return utcnow()
        try:
            return from_epoch_ms(int(cursor))
        except (TypeError, ValueError, OverflowError):
            raise InvalidCursorError(f"无效的游标: {cursor}")

    async def get_feed(self, did: str, cursor: Optional[str], limit: int) -> FeedSkeleton:
        """为请求用户生成一页 feed"""
        if limit < 1:
            raise ValueError("limit 必须大于 0")

        user = self.db.get(User, did)
        # 尚未发过帖的用户按哈希计算队伍，不写入数据库
        team = user.team if user else determine_team(did, self.config.TOTAL_TEAMS)
        current_game_id = user.current_game_id if user else None

        posts = await self.rank_posts(team, current_game_id, self._parse_cursor(cursor), limit)

        logger.debug(
            "Feed 已生成: 用户 %s，队伍 %s，游戏 %s，帖子 %d 条",
            did, team, current_game_id, len(posts)
        )

        return FeedSkeleton(
            cursor=str(to_epoch_ms(posts[-1].indexed_at)) if posts else None,
            feed=[SkeletonItem(post=post.uri) for post in posts]
        )

    async def get_feed_skeleton(self, feed: str, did: str, cursor: Optional[str], limit: int) -> FeedSkeleton:
        """校验 feed URI 后生成一页 feed"""
        if feed != self.feed_uri:
            raise UnsupportedAlgorithmError(f"不支持的 feed: {feed}")
        return await self.get_feed(did, cursor, limit)
