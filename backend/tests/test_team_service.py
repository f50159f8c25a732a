"""
tests/test_team_service.py - 队伍分配、就绪检查与队伍查询
"""

from collections import Counter
from datetime import timedelta

import pytest

from bracket.core.utils import utcnow
from bracket.models.elimination import Elimination
from bracket.models.game_participant import GameParticipant
from bracket.services.readiness import validate_team_readiness
from bracket.services.team_service import TeamService, determine_team


class TestDetermineTeam:
    def test_same_id_same_team(self):
        did = "did:plc:z72i7hdynmk6r22z27h6tvur"
        assert determine_team(did) == determine_team(did)

    def test_known_values(self):
        # h("a") = 97, h("ab") = 97 * 31 + 98 = 3105
        assert determine_team("a") == 97
        assert determine_team("ab") == 3105 % 512

    def test_empty_id_is_team_zero(self):
        assert determine_team("") == 0

    def test_negative_hash_is_folded_to_unsigned(self):
        did = "did:plc:" + "z" * 40
        team = determine_team(did)
        assert 0 <= team < 512

    def test_lone_surrogate_is_hashed_as_code_unit(self):
        did = "did:plc:\ud800x"
        expected = 0
        for ch in did:
            expected = (expected * 31 + ord(ch)) & 0xFFFFFFFF
        assert determine_team(did) == expected % 512

    def test_range_respects_team_count(self):
        for i in range(200):
            assert 0 <= determine_team(f"did:plc:user{i}", total_teams=7) < 7

    def test_distribution_is_roughly_uniform(self):
        counts = Counter(determine_team(f"did:plc:{i:06d}", total_teams=10) for i in range(10000))
        assert set(counts) == set(range(10))
        for count in counts.values():
            assert 500 <= count <= 1500


class TestReadiness:
    def test_game_context_counts_unassigned_users(self, db, make_user):
        make_user("a1", 0)
        make_user("a2", 0)
        make_user("b1", 1)
        make_user("b2", 1, current_game_id=99)

        readiness = validate_team_readiness(db, 2, 2, "game")

        assert readiness.team_counts == {0: 2}
        assert readiness.missing_teams == [1]
        assert readiness.ready_teams == 1
        assert not readiness.is_ready

    def test_game_context_ready(self, db, make_user):
        for did, team in [("a1", 0), ("a2", 0), ("b1", 1), ("b2", 1)]:
            make_user(did, team)

        readiness = validate_team_readiness(db, 2, 2, "game")

        assert readiness.is_ready
        assert readiness.team_counts == {0: 2, 1: 2}

    def test_round_context_counts_active_participants(self, db):
        now = utcnow()
        db.add_all([
            GameParticipant(game_id=1, user_id="a1", team=0, joined_at=now, status="active"),
            GameParticipant(game_id=1, user_id="a2", team=0, joined_at=now, status="active"),
            GameParticipant(game_id=1, user_id="b1", team=1, joined_at=now, status="active"),
            GameParticipant(game_id=1, user_id="b2", team=1, joined_at=now, status="eliminated"),
            GameParticipant(game_id=2, user_id="b3", team=1, joined_at=now, status="active"),
        ])
        db.commit()

        readiness = validate_team_readiness(db, 2, 2, "round", game_id=1)

        assert readiness.missing_teams == [1]

    def test_round_context_requires_game_id(self, db):
        with pytest.raises(ValueError):
            validate_team_readiness(db, 2, 2, "round")

    def test_unknown_context(self, db):
        with pytest.raises(ValueError):
            validate_team_readiness(db, 2, 2, "season")


class TestTeamQueries:
    async def test_list_teams(self, db, make_user):
        make_user("a1", 3)
        make_user("a2", 3)
        make_user("b1", 5)

        teams = await TeamService(db).list_teams()

        assert [(t.id, t.member_count) for t in teams] == [(3, 2), (5, 1)]

    async def test_team_eliminations_newest_round_first(self, db):
        now = utcnow()
        db.add_all([
            Elimination(round_id=1, user_id="a1", team=3, like_count=2, eliminated_at=now - timedelta(days=1)),
            Elimination(round_id=2, user_id="a2", team=3, like_count=5, eliminated_at=now),
            Elimination(round_id=2, user_id="b1", team=4, like_count=9, eliminated_at=now),
        ])
        db.commit()

        history = await TeamService(db).get_team_eliminations(3)

        assert [(e.round_id, e.like_count) for e in history] == [(2, 5), (1, 2)]
