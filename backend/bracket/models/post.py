"""
帖子数据模型
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Index
from bracket.core.database import Base

class Post(Base):
    """帖子表"""
    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_team_indexed_at", "team", "indexed_at"),
    )
    
    uri = Column(String(512), primary_key=True)
    cid = Column(String(255), nullable=False, default="")
    indexed_at = Column(DateTime, nullable=False)
    team = Column(Integer, nullable=False)                   # 发帖时从作者复制
    user_id = Column(String(255), nullable=False, index=True)
    game_id = Column(Integer, nullable=True)
    round_id = Column(Integer, nullable=True, index=True)
    like_count = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)   # 软删除标记
