"""
API路由模块
"""

from fastapi import APIRouter
from .game_routes import router as game_router
from .round_routes import router as round_router
from .team_routes import router as team_router
from .feed_routes import router as feed_router

# 创建主路由器
api_router = APIRouter()

# 注册各个功能模块的路由
api_router.include_router(game_router, prefix="/game", tags=["游戏"])
api_router.include_router(round_router, prefix="/rounds", tags=["轮次"])
api_router.include_router(team_router, prefix="/teams", tags=["队伍"])

# Feed 生成器使用 XRPC 路径，单独挂载在根路径下
xrpc_router = APIRouter()
xrpc_router.include_router(feed_router, prefix="/xrpc", tags=["Feed"])
