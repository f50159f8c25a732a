"""
数据库配置
"""
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from bracket.core.config import settings

def _connect_args(url: str) -> dict:
    # SQLite 连接需要跨线程使用（调度任务与请求处理共享引擎）
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    echo=False  # 设置为True可以看到SQL查询日志
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def transaction(db: Session):
    """事务作用域：正常退出时提交，出现任何异常时回滚并重新抛出"""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise

def import_models():
    """导入所有模型，确保它们注册到 Base.metadata"""
    from bracket.models.user import User
    from bracket.models.post import Post
    from bracket.models.game import Game
    from bracket.models.game_participant import GameParticipant
    from bracket.models.round_model import Round
    from bracket.models.round_participant import RoundParticipant
    from bracket.models.elimination import Elimination
    return [User, Post, Game, GameParticipant, Round, RoundParticipant, Elimination]

async def init_db(bind=None):
    """初始化数据库"""
    import_models()
    
    # 创建所有表
    Base.metadata.create_all(bind=bind or engine)
