"""
淘汰记录数据模型
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from bracket.core.database import Base

class Elimination(Base):
    """淘汰记录表（只追加）"""
    __tablename__ = "eliminations"
    
    id = Column(Integer, primary_key=True, index=True)
    round_id = Column(Integer, ForeignKey("rounds.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False)
    team = Column(Integer, nullable=False, index=True)
    like_count = Column(Integer, nullable=False)             # 被淘汰时的点赞总数
    eliminated_at = Column(DateTime, nullable=False)
