"""
队伍服务：队伍分配与队伍查询
"""

from typing import List
from sqlalchemy import func
from sqlalchemy.orm import Session
from bracket.models.user import User
from bracket.models.elimination import Elimination
from bracket.schemas.team_schemas import TeamInfo, TeamElimination

DEFAULT_TOTAL_TEAMS = 512


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def determine_team(did: str, total_teams: int = DEFAULT_TOTAL_TEAMS) -> int:
    """根据用户标识确定所属队伍
    
    对 UTF-16 码元做 h = h * 31 + c 的32位滚动哈希，取无符号值后对队伍数取模。
    同一个标识永远得到同一个队伍；用户创建后队伍不再重新计算。
    """
    data = did.encode("utf-16-le", "surrogatepass")
    hash_value = 0
    for i in range(0, len(data), 2):
        code_unit = int.from_bytes(data[i:i + 2], "little")
        hash_value = _to_int32((hash_value << 5) - hash_value + code_unit)
    return (hash_value & 0xFFFFFFFF) % total_teams


class TeamService:
    """队伍查询服务"""
    
    def __init__(self, db: Session):
        self.db = db
    
    async def list_teams(self) -> List[TeamInfo]:
        """列出所有队伍及成员数量"""
        rows = self.db.query(
            User.team,
            func.count(User.did).label("member_count")
        ).group_by(User.team).order_by(User.team).all()
        
        return [TeamInfo(id=row.team, member_count=int(row.member_count)) for row in rows]
    
    async def get_team_eliminations(self, team: int) -> List[TeamElimination]:
        """获取队伍的历史淘汰记录（最近的轮次在前）"""
        eliminations = self.db.query(Elimination).filter(
            Elimination.team == team
        ).order_by(Elimination.round_id.desc(), Elimination.user_id).all()
        
        return [TeamElimination.model_validate(e) for e in eliminations]
