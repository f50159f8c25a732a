"""
Bracket - 基于帖子点赞数的团队淘汰赛 Feed 生成器
"""

__version__ = "1.0.0"
