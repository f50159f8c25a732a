"""
游戏数据模型
"""

from sqlalchemy import Column, Integer, String, DateTime
from bracket.core.database import Base

GAME_REGISTRATION = "registration"
GAME_ACTIVE = "active"
GAME_COMPLETED = "completed"

class Game(Base):
    """游戏表"""
    __tablename__ = "games"
    
    id = Column(Integer, primary_key=True, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=GAME_REGISTRATION)  # registration, active, completed
    max_players_per_team = Column(Integer, nullable=False)
    current_round_id = Column(Integer, nullable=True)        # 开始前为空
    winner = Column(Integer, nullable=True)                  # 获胜队伍编号，仅在结束时设置
