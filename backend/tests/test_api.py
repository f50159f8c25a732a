"""
tests/test_api.py - HTTP 路由

使用 FastAPI 的 TestClient，不启动调度器，数据库会话替换为测试会话。
"""

from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from bracket.api import api_router, xrpc_router
from bracket.core.config import settings
from bracket.core.database import get_db
from bracket.core.utils import utcnow
from bracket.models.elimination import Elimination

FEED_URI = f"at://{settings.PUBLISHER_DID}/app.bsky.feed.generator/{settings.FEED_SHORTNAME}"


@pytest.fixture
def client(session_factory):
    test_app = FastAPI()
    test_app.include_router(api_router, prefix="/api")
    test_app.include_router(xrpc_router)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    test_app.dependency_overrides[get_db] = override_get_db
    with TestClient(test_app) as c:
        yield c


class TestGameRoutes:
    def test_no_current_game(self, client):
        resp = client.get("/api/game/current")
        assert resp.status_code == 200
        assert resp.json() is None

    def test_current_game(self, client, make_active_game):
        game, round_obj = make_active_game({0: ["a1"]})
        game_id, round_id = game.id, round_obj.id

        data = client.get("/api/game/current").json()

        assert data["id"] == game_id
        assert data["status"] == "active"
        assert data["current_round_id"] == round_id
        assert data["start_time"].endswith("Z")

    def test_stats_without_game(self, client):
        assert client.get("/api/game/stats").json()["status"] == "no-game"

    def test_stats_with_game(self, client, make_active_game):
        make_active_game({0: ["a1", "a2"], 1: ["b1"]})

        data = client.get("/api/game/stats").json()

        assert data["status"] == "active"
        assert data["projected_threshold"] == 0
        assert {t["team"]: t["active_players"] for t in data["team_stats"]} == {0: 2, 1: 1}
        assert len(data["rounds"]) == 1
        assert data["rounds"][0]["elimination_count"] == 0


class TestRoundRoutes:
    def test_current_round_and_status(self, client, make_active_game):
        _, round_obj = make_active_game({0: ["a1", "a2"]})
        round_id = round_obj.id

        assert client.get("/api/rounds/current").json()["id"] == round_id
        status = client.get("/api/rounds/status").json()
        assert status["round_id"] == round_id
        assert status["stats"]["total_users"] == 2

    def test_unknown_round_stats(self, client):
        assert client.get("/api/rounds/404/stats").status_code == 404

    def test_round_cutoffs(self, client, db):
        now = utcnow()
        db.add_all([
            Elimination(round_id=3, user_id="a1", team=0, like_count=2, eliminated_at=now),
            Elimination(round_id=3, user_id="a2", team=0, like_count=6, eliminated_at=now),
            Elimination(round_id=3, user_id="b1", team=1, like_count=1, eliminated_at=now),
        ])
        db.commit()

        data = client.get("/api/rounds/3/cutoffs").json()

        assert data == [{"team": 0, "cutoff_likes": 6}, {"team": 1, "cutoff_likes": 1}]


class TestTeamRoutes:
    def test_list_teams(self, client, make_user):
        make_user("a1", 4)
        make_user("a2", 4)

        assert client.get("/api/teams").json() == [{"id": 4, "member_count": 2}]

    def test_team_eliminations(self, client, db):
        db.add(Elimination(round_id=2, user_id="a1", team=4, like_count=3, eliminated_at=utcnow()))
        db.commit()

        data = client.get("/api/teams/4/eliminations").json()

        assert [(e["round_id"], e["like_count"]) for e in data] == [(2, 3)]


class TestFeedRoutes:
    def test_describe(self, client):
        data = client.get("/xrpc/app.bsky.feed.describeFeedGenerator").json()

        assert data["did"] == settings.SERVICE_DID
        assert data["feeds"] == [{"uri": FEED_URI}]

    def test_skeleton(self, client, make_user, make_post):
        make_user("viewer", 0)
        base = utcnow().replace(microsecond=0) - timedelta(hours=1)
        make_post("p1", "author", 0, indexed_at=base, like_count=3)
        make_post("p2", "author", 0, indexed_at=base - timedelta(minutes=1), like_count=1)

        resp = client.get(
            "/xrpc/app.bsky.feed.getFeedSkeleton",
            params={"feed": FEED_URI, "limit": 1},
            headers={"X-Requester-Did": "viewer"},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["feed"] == [{"post": "p1"}]

        resp = client.get(
            "/xrpc/app.bsky.feed.getFeedSkeleton",
            params={"feed": FEED_URI, "limit": 1, "cursor": data["cursor"]},
            headers={"X-Requester-Did": "viewer"},
        )
        assert resp.json()["feed"] == [{"post": "p2"}]

    def test_empty_page_has_no_cursor(self, client, make_user):
        make_user("viewer", 0)

        resp = client.get(
            "/xrpc/app.bsky.feed.getFeedSkeleton",
            params={"feed": FEED_URI},
            headers={"X-Requester-Did": "viewer"},
        )

        assert resp.json() == {"feed": []}

    def test_unsupported_feed(self, client):
        resp = client.get(
            "/xrpc/app.bsky.feed.getFeedSkeleton",
            params={"feed": "at://did:example:bob/app.bsky.feed.generator/other"},
            headers={"X-Requester-Did": "viewer"},
        )
        assert resp.status_code == 400

    def test_bad_cursor(self, client):
        resp = client.get(
            "/xrpc/app.bsky.feed.getFeedSkeleton",
            params={"feed": FEED_URI, "cursor": "abc"},
            headers={"X-Requester-Did": "viewer"},
        )
        assert resp.status_code == 400

    def test_requester_header_required(self, client):
        resp = client.get("/xrpc/app.bsky.feed.getFeedSkeleton", params={"feed": FEED_URI})
        assert resp.status_code == 422

    def test_limit_bounds(self, client):
        resp = client.get(
            "/xrpc/app.bsky.feed.getFeedSkeleton",
            params={"feed": FEED_URI, "limit": 0},
            headers={"X-Requester-Did": "viewer"},
        )
        assert resp.status_code == 422
