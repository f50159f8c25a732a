"""
Feed 生成器路由
"""

from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session
from bracket.core.config import settings
from bracket.core.database import get_db
from bracket.services.feed_service import FeedService, UnsupportedAlgorithmError, InvalidCursorError
from bracket.schemas.feed_schemas import FeedSkeleton, FeedGeneratorDescription

router = APIRouter()

@router.get("/app.bsky.feed.getFeedSkeleton", response_model=FeedSkeleton, response_model_exclude_none=True)
async def get_feed_skeleton(
    feed: str,
    cursor: Optional[str] = None,
    limit: int = Query(default=settings.FEED_DEFAULT_LIMIT, ge=1, le=settings.FEED_MAX_LIMIT),
    requester_did: str = Header(..., alias="X-Requester-Did"),
    db: Session = Depends(get_db)
):
    """获取 feed 骨架（请求者身份由上游鉴权层校验后写入请求头）"""
    feed_service = FeedService(db)
    try:
        return await feed_service.get_feed_skeleton(feed, requester_did, cursor, limit)
    except UnsupportedAlgorithmError as e:
        raise HTTPException(status_code=400, detail={"error": "UnsupportedAlgorithm", "message": str(e)})
    except InvalidCursorError as e:
        raise HTTPException(status_code=400, detail={"error": "InvalidCursor", "message": str(e)})

@router.get("/app.bsky.feed.describeFeedGenerator", response_model=FeedGeneratorDescription)
async def describe_feed_generator(db: Session = Depends(get_db)):
    """描述本服务发布的 feed"""
    feed_service = FeedService(db)
    return await feed_service.describe_feed_generator()
