"""
队伍相关的数据模式
"""

from pydantic import BaseModel, field_serializer
from datetime import datetime

class TeamInfo(BaseModel):
    """队伍及成员数量"""
    id: int
    member_count: int

class TeamElimination(BaseModel):
    """队伍的历史淘汰记录"""
    round_id: int
    like_count: int
    eliminated_at: datetime
    
    @field_serializer('eliminated_at')
    def serialize_dt(self, dt: datetime) -> str:
        return dt.isoformat() + 'Z'
    
    class Config:
        from_attributes = True
