"""
游戏相关API路由
"""

from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from bracket.core.database import get_db
from bracket.services.game_service import GameService
from bracket.services.stats_service import StatsService
from bracket.schemas.game_schemas import GameResponse, GameOverview

router = APIRouter()

@router.get("/current", response_model=Optional[GameResponse])
async def get_current_game(db: Session = Depends(get_db)):
    """获取当前游戏"""
    game_service = GameService(db)
    game = await game_service.get_current_game()
    if not game:
        return None
    return GameResponse.model_validate(game)

@router.get("/stats", response_model=GameOverview)
async def get_current_stats(db: Session = Depends(get_db)):
    """获取当前游戏概览"""
    stats_service = StatsService(db)
    return await stats_service.get_current_stats()
