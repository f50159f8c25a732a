"""
游戏与轮次相关的数据模式
"""

from pydantic import BaseModel, field_serializer
from typing import Optional, List
from datetime import datetime

class GameResponse(BaseModel):
    """游戏响应模式"""
    id: int
    status: str
    start_time: datetime
    end_time: datetime
    max_players_per_team: int
    current_round_id: Optional[int] = None
    winner: Optional[int] = None
    
    @field_serializer('start_time', 'end_time')
    def serialize_dt(self, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        return dt.isoformat() + 'Z'
    
    class Config:
        from_attributes = True

class RoundInfo(BaseModel):
    """轮次信息"""
    id: int
    game_id: int
    status: str
    start_time: datetime
    end_time: datetime
    cutoff_likes: Optional[int] = None
    
    @field_serializer('start_time', 'end_time')
    def serialize_dt(self, dt: Optional[datetime]) -> Optional[str]:
        if dt is None:
            return None
        return dt.isoformat() + 'Z'
    
    class Config:
        from_attributes = True

class RoundLiveStats(BaseModel):
    """当前轮次的实时统计"""
    total_teams: int
    total_users: int
    total_posts: int
    total_likes: int

class RoundStatus(BaseModel):
    """当前轮次状态"""
    round_id: int
    status: str
    start_time: datetime
    end_time: datetime
    time_remaining: int  # 毫秒
    progress: float      # 百分比
    stats: RoundLiveStats
    
    @field_serializer('start_time', 'end_time')
    def serialize_dt(self, dt: datetime) -> str:
        return dt.isoformat() + 'Z'

class ParticipantGroup(BaseModel):
    """按队伍和状态分组的参与者数量"""
    team: int
    status: str
    count: int

class EliminationGroup(BaseModel):
    """按队伍、状态和点赞数分组的淘汰明细"""
    team: int
    status: str
    total_likes: int
    count: int

class RoundStats(BaseModel):
    """指定轮次的统计"""
    round: Optional[RoundInfo] = None
    participant_stats: List[ParticipantGroup]
    post_count: int
    total_likes: int
    eliminations: List[EliminationGroup]

class TeamCutoff(BaseModel):
    """单个队伍在某轮的淘汰线"""
    team: int
    cutoff_likes: int

class TeamStats(BaseModel):
    """单个队伍在当前游戏中的人数"""
    team: int
    total_players: int
    active_players: int

class RoundSummary(BaseModel):
    """游戏中某一轮的概要"""
    id: int
    status: str
    start_time: datetime
    end_time: datetime
    cutoff_likes: Optional[int] = None
    elimination_count: int
    
    @field_serializer('start_time', 'end_time')
    def serialize_dt(self, dt: datetime) -> str:
        return dt.isoformat() + 'Z'

class GameOverview(BaseModel):
    """当前游戏概览"""
    status: str
    game: Optional[GameResponse] = None
    current_round: Optional[RoundInfo] = None
    projected_threshold: Optional[int] = None
    team_stats: List[TeamStats] = []
    rounds: List[RoundSummary] = []
