"""
游戏参与者数据模型
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from bracket.core.database import Base

class GameParticipant(Base):
    """游戏参与者表"""
    __tablename__ = "game_participants"
    
    game_id = Column(Integer, ForeignKey("games.id"), primary_key=True)
    user_id = Column(String(255), primary_key=True)
    team = Column(Integer, nullable=False)
    joined_at = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="active")  # active, eliminated
