"""
轮次参与者数据模型
"""

from sqlalchemy import Column, Integer, String, ForeignKey
from bracket.core.database import Base

PARTICIPANT_ACTIVE = "active"
PARTICIPANT_ELIMINATED = "eliminated"

class RoundParticipant(Base):
    """轮次参与者表"""
    __tablename__ = "round_participants"
    
    round_id = Column(Integer, ForeignKey("rounds.id"), primary_key=True)
    user_id = Column(String(255), primary_key=True)
    team = Column(Integer, nullable=False, index=True)
    total_likes = Column(Integer, nullable=False, default=0)  # 每次结算时从帖子重新汇总
    status = Column(String(20), nullable=False, default=PARTICIPANT_ACTIVE)  # active, eliminated
