"""
应用配置模块
"""

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """应用设置"""
    
    # 基础设置
    APP_NAME: str = "Bracket Feed"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    
    # 服务器设置
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    
    # 数据库设置
    DATABASE_URL: str = "sqlite:///./bracket.db"
    
    # Feed 生成器身份
    SERVICE_DID: str = "did:web:example.com"
    PUBLISHER_DID: str = "did:example:alice"
    FEED_SHORTNAME: str = "bracket-feed"
    FEED_DEFAULT_LIMIT: int = 50
    FEED_MAX_LIMIT: int = 100
    
    # 游戏设置
    TOTAL_TEAMS: int = 512
    MIN_USERS_PER_TEAM: int = 16
    PLAYERS_PER_TEAM: int = 64
    GAME_DURATION_HOURS: float = 168  # 一周
    ROUND_DURATION_HOURS: float = 24  # 一天
    BATCH_SIZE: int = 100  # 批量写入的分块大小
    
    # 调度设置（秒）
    GAME_CHECK_INTERVAL: float = 60
    ROUND_CHECK_INTERVAL: float = 60
    
    class Config:
        env_file = ".env"
        case_sensitive = True

# 全局设置实例
settings = Settings()
