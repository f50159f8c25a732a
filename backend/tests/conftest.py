"""
tests/conftest.py - 公共测试夹具

每个测试使用独立的内存 SQLite 数据库，以及较小的队伍配置。
"""

from datetime import timedelta
from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bracket.core.config import Settings
from bracket.core.database import Base, import_models
from bracket.core.utils import utcnow
from bracket.models.user import User
from bracket.models.post import Post
from bracket.models.game import Game, GAME_ACTIVE
from bracket.models.game_participant import GameParticipant
from bracket.models.round_model import Round, ROUND_ACTIVE
from bracket.models.round_participant import RoundParticipant
from bracket.services.round_service import RoundService


@pytest.fixture
def engine():
    import_models()
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def config():
    """两支队伍，每队至少两人，批量大小为3以覆盖分批写入"""
    return Settings(
        TOTAL_TEAMS=2,
        MIN_USERS_PER_TEAM=2,
        PLAYERS_PER_TEAM=4,
        BATCH_SIZE=3,
        GAME_DURATION_HOURS=168,
        ROUND_DURATION_HOURS=24,
    )


@pytest.fixture
def round_service(db, config):
    return RoundService(db, config=config)


@pytest.fixture
def game_service(round_service):
    return round_service.game_service


@pytest.fixture
def make_user(db):
    def _make(did: str, team: int, current_game_id: Optional[int] = None) -> User:
        user = User(did=did, team=team, first_seen=utcnow(), current_game_id=current_game_id)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_post(db):
    def _make(
        uri: str,
        user_id: str,
        team: int,
        indexed_at=None,
        like_count: int = 0,
        game_id: Optional[int] = None,
        round_id: Optional[int] = None,
        active: bool = True,
    ) -> Post:
        post = Post(
            uri=uri,
            cid="cid",
            user_id=user_id,
            team=team,
            indexed_at=indexed_at or utcnow() - timedelta(minutes=1),
            like_count=like_count,
            game_id=game_id,
            round_id=round_id,
            active=active,
        )
        db.add(post)
        db.commit()
        return post

    return _make


@pytest.fixture
def make_active_game(db):
    """直接构造一个进行中的游戏和首轮，teams: {队伍: [用户ID, ...]}"""

    def _make(teams: Dict[int, List[str]]):
        now = utcnow()
        game = Game(
            start_time=now - timedelta(hours=1),
            end_time=now + timedelta(days=7),
            status=GAME_ACTIVE,
            max_players_per_team=64,
        )
        db.add(game)
        db.flush()

        round_obj = Round(
            game_id=game.id,
            start_time=now - timedelta(hours=1),
            end_time=now + timedelta(hours=23),
            status=ROUND_ACTIVE,
        )
        db.add(round_obj)
        db.flush()
        game.current_round_id = round_obj.id

        for team, user_ids in teams.items():
            for user_id in user_ids:
                db.add(User(did=user_id, team=team, first_seen=now, current_game_id=game.id))
                db.add(GameParticipant(
                    game_id=game.id, user_id=user_id, team=team, joined_at=now, status="active"
                ))
                db.add(RoundParticipant(
                    round_id=round_obj.id, user_id=user_id, team=team, total_likes=0, status="active"
                ))
        db.commit()
        return game, round_obj

    return _make
