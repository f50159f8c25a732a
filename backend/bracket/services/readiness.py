"""
队伍就绪检查
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from bracket.models.user import User
from bracket.models.game_participant import GameParticipant
from bracket.models.round_participant import PARTICIPANT_ACTIVE


@dataclass
class TeamReadiness:
    """就绪检查结果"""
    team_counts: Dict[int, int] = field(default_factory=dict)  # 达到最低人数的队伍 -> 人数
    missing_teams: List[int] = field(default_factory=list)
    
    @property
    def ready_teams(self) -> int:
        return len(self.team_counts)
    
    @property
    def is_ready(self) -> bool:
        return not self.missing_teams


def validate_team_readiness(
    db: Session,
    min_users_per_team: int,
    total_teams: int,
    context: str,
    game_id: Optional[int] = None
) -> TeamReadiness:
    """检查每支队伍是否都有足够的人数
    
    context="game": 统计当前未加入任何游戏的用户
    context="round": 统计指定游戏中仍处于 active 状态的参与者
    """
    if context == "game":
        member = User.did
        query = db.query(User.team, func.count(member)).filter(
            User.current_game_id.is_(None)
        ).group_by(User.team)
    elif context == "round":
        if game_id is None:
            raise ValueError("round 就绪检查需要提供 game_id")
        member = GameParticipant.user_id
        query = db.query(GameParticipant.team, func.count(member)).filter(
            GameParticipant.game_id == game_id,
            GameParticipant.status == PARTICIPANT_ACTIVE
        ).group_by(GameParticipant.team)
    else:
        raise ValueError(f"未知的就绪检查上下文: {context}")
    
    rows = query.having(func.count(member) >= min_users_per_team).all()
    team_counts = {team: int(count) for team, count in rows}
    missing_teams = [team for team in range(total_teams) if team not in team_counts]
    
    return TeamReadiness(team_counts=team_counts, missing_teams=missing_teams)
