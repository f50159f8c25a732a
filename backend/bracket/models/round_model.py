"""
轮次数据模型
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from bracket.core.database import Base

ROUND_ACTIVE = "active"
ROUND_COMPLETED = "completed"

class Round(Base):
    """淘汰轮次表"""
    __tablename__ = "rounds"
    
    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=ROUND_ACTIVE)  # active, completed
    cutoff_likes = Column(Integer, nullable=True)            # 本轮被淘汰者中的最高点赞数，结束时设置
