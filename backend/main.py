#!/usr/bin/env python3
"""
Bracket Feed - 后端主入口
"""

import logging
import uvicorn
from fastapi import FastAPI
from bracket.core.config import settings
from bracket.core.log_config import setup_logging
from bracket.api import api_router, xrpc_router
from bracket.core.database import init_db, SessionLocal
from bracket.services.game_service import GameService
from bracket.services.scheduler import TournamentScheduler

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("bracket.main")

app = FastAPI(
    title=settings.APP_NAME,
    description="按队伍淘汰赛排序的 Feed 生成器",
    version=settings.VERSION
)

# 注册API路由
app.include_router(api_router, prefix="/api")
app.include_router(xrpc_router)

scheduler = TournamentScheduler()

@app.on_event("startup")
async def startup_event():
    """应用启动时的初始化"""
    logger.info("🚀 启动 Bracket Feed 服务...")
    await init_db()
    logger.info("✅ 数据库初始化完成")

    # 启动前先确保有一个进行中的游戏
    db = SessionLocal()
    try:
        await GameService(db).ensure_active_game()
    except Exception:
        logger.exception("⚠️ 初始化游戏时出现错误，服务将继续启动，由调度器稍后重试")
    finally:
        db.close()

    scheduler.start()

@app.on_event("shutdown")
async def shutdown_event():
    """应用关闭时停止调度"""
    await scheduler.stop()

@app.get("/")
async def root():
    """根路径健康检查"""
    return {"message": "Bracket Feed 运行中", "status": "healthy"}

@app.get("/health")
async def health_check():
    """健康检查端点"""
    return {"status": "healthy", "service": "bracket-feed"}

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
