"""
帖子接入服务：处理事件流送来的用户与帖子通知
"""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from bracket.core.config import Settings, settings
from bracket.core.database import transaction
from bracket.core.utils import utcnow
from bracket.models.game import GAME_ACTIVE
from bracket.models.post import Post
from bracket.models.round_model import Round, ROUND_ACTIVE
from bracket.models.user import User
from bracket.services.game_service import GameService
from bracket.services.team_service import determine_team

logger = logging.getLogger(__name__)

class IngestService:
    """写入新用户与新帖子"""

    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.config = config or settings

    def _ensure_user(self, did: str) -> User:
        user = self.db.get(User, did)
        if user:
            return user

        user = User(
            did=did,
            first_seen=utcnow(),
            team=determine_team(did, self.config.TOTAL_TEAMS),
            current_game_id=None
        )
        self.db.add(user)
        self.db.flush()
        logger.debug("新用户 %s 加入队伍 %s", did, user.team)
        return user

    async def record_user(self, did: str) -> User:
        """首次看到用户时创建用户记录，队伍只在此时分配"""
        with transaction(self.db):
            user = self._ensure_user(did)
        return user

    async def record_post(self, did: str, uri: str, cid: str = "",
                          indexed_at: Optional[datetime] = None) -> Optional[Post]:
        """记录新帖子；当前有进行中的轮次时为帖子打上游戏与轮次标记

        重复的 uri 会被忽略并返回 None。
        """
        with transaction(self.db):
            user = self._ensure_user(did)

            if self.db.get(Post, uri):
                logger.debug("帖子 %s 已存在，跳过", uri)
                return None

            game_id = None
            round_id = None
            current_game = await GameService(self.db, config=self.config).get_current_game()
            if current_game and current_game.status == GAME_ACTIVE and current_game.current_round_id:
                # 当前轮次已结算而下一轮尚未创建时不打标记
                round_active = self.db.query(Round.id).filter(
                    Round.id == current_game.current_round_id,
                    Round.status == ROUND_ACTIVE
                ).first()
                if round_active:
                    game_id = current_game.id
                    round_id = current_game.current_round_id

            post = Post(
                uri=uri,
                cid=cid,
                indexed_at=indexed_at or utcnow(),
                team=user.team,
                user_id=did,
                game_id=game_id,
                round_id=round_id,
                like_count=0,
                active=True
            )
            self.db.add(post)
            self.db.flush()

        return post

    async def update_like_count(self, uri: str, like_count: int) -> bool:
        """更新帖子的点赞数"""
        with transaction(self.db):
            updated = self.db.query(Post).filter(Post.uri == uri).update(
                {Post.like_count: like_count}, synchronize_session=False
            )
        if not updated:
            logger.debug("帖子 %s 不存在，忽略点赞更新", uri)
        return bool(updated)

    async def deactivate_post(self, uri: str) -> bool:
        """软删除帖子"""
        with transaction(self.db):
            updated = self.db.query(Post).filter(Post.uri == uri).update(
                {Post.active: False}, synchronize_session=False
            )
        return bool(updated)
