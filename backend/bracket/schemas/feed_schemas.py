"""
Feed 相关的数据模式
"""

from pydantic import BaseModel
from typing import Optional, List

class SkeletonItem(BaseModel):
    """Feed 骨架中的单条帖子"""
    post: str

class FeedSkeleton(BaseModel):
    """Feed 骨架响应"""
    cursor: Optional[str] = None
    feed: List[SkeletonItem]

class FeedInfo(BaseModel):
    uri: str

class FeedGeneratorDescription(BaseModel):
    """Feed 生成器描述"""
    did: str
    feeds: List[FeedInfo]
