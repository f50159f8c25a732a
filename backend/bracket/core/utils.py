"""
工具函数模块
"""

from datetime import datetime, timedelta, timezone
from typing import Iterator, List, Sequence, TypeVar

T = TypeVar("T")

EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    """当前UTC时间（不带时区信息，与数据库中的存储格式一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch_ms(timestamp: datetime) -> int:
    """把UTC时间转换为毫秒时间戳（分页游标使用）"""
    return (timestamp - EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(value: int) -> datetime:
    """把毫秒时间戳还原为UTC时间"""
    return EPOCH + timedelta(milliseconds=value)


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """按固定大小切分列表"""
    for start in range(0, len(items), size):
        yield list(items[start:start + size])
