"""
用户数据模型
"""

from sqlalchemy import Column, Integer, String, DateTime
from bracket.core.database import Base

class User(Base):
    """用户表（首次看到其发帖时创建）"""
    __tablename__ = "users"
    
    did = Column(String(255), primary_key=True)              # 外部稳定标识
    display_name = Column(String(255), nullable=True)
    handle = Column(String(255), nullable=True)
    first_seen = Column(DateTime, nullable=False)
    team = Column(Integer, nullable=False, index=True)       # 创建时分配，永不改变
    current_game_id = Column(Integer, nullable=True, index=True)  # 参赛期间设置，游戏结束时清空
