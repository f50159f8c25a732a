"""
轮次相关API路由
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from bracket.core.database import get_db
from bracket.services.round_service import RoundService
from bracket.schemas.game_schemas import RoundInfo, RoundStatus, RoundStats, TeamCutoff

router = APIRouter()

@router.get("/current", response_model=Optional[RoundInfo])
async def get_current_round(db: Session = Depends(get_db)):
    """获取当前轮次"""
    round_service = RoundService(db)
    current_round = await round_service.get_current_round()
    if not current_round:
        return None
    return RoundInfo.model_validate(current_round)

@router.get("/status", response_model=Optional[RoundStatus])
async def get_round_status(db: Session = Depends(get_db)):
    """获取当前轮次状态及实时统计"""
    round_service = RoundService(db)
    return await round_service.get_round_status()

@router.get("/{round_id}/stats", response_model=RoundStats)
async def get_round_stats(
    round_id: int,
    db: Session = Depends(get_db)
):
    """获取指定轮次的统计"""
    round_service = RoundService(db)
    stats = await round_service.get_round_stats(round_id)
    if stats.round is None:
        raise HTTPException(status_code=404, detail="轮次不存在")
    return stats

@router.get("/{round_id}/cutoffs", response_model=List[TeamCutoff])
async def get_round_cutoffs(
    round_id: int,
    db: Session = Depends(get_db)
):
    """获取指定轮次各队伍的淘汰线"""
    round_service = RoundService(db)
    return await round_service.get_round_cutoffs(round_id)
