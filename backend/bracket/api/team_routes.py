"""
队伍相关API路由
"""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from bracket.core.database import get_db
from bracket.services.team_service import TeamService
from bracket.schemas.team_schemas import TeamInfo, TeamElimination

router = APIRouter()

@router.get("", response_model=List[TeamInfo])
async def list_teams(db: Session = Depends(get_db)):
    """获取队伍列表及成员数量"""
    team_service = TeamService(db)
    return await team_service.list_teams()

@router.get("/{team_id}/eliminations", response_model=List[TeamElimination])
async def get_team_eliminations(
    team_id: int,
    db: Session = Depends(get_db)
):
    """获取队伍的淘汰历史"""
    team_service = TeamService(db)
    return await team_service.get_team_eliminations(team_id)
