from wordbomb.game_types import Player
from wordbomb.scoring import rank_players, rank_teams, team_rosters


def make_player(player_id, score, joined_at, team=None, spectator=False, bot=False):
    return Player(
        id=player_id,
        room_code='ABC123',
        name=player_id.title(),
        score=score,
        joined_at=joined_at,
        team_number=team,
        is_spectator=spectator,
        is_bot=bot,
    )


def test_players_rank_by_score_and_share_places_on_ties():
    standings = rank_players(
        [
            make_player('alice', 120, 1),
            make_player('bob', 200, 2),
            make_player('carol', 120, 3),
            make_player('dave', 50, 4),
            make_player('eve', 999, 5, spectator=True),
        ]
    )
    assert [(item.place, item.player_id) for item in standings] == [
        (1, 'bob'),
        (2, 'alice'),
        (2, 'carol'),
        (4, 'dave'),
    ]


def test_team_scores_are_member_sums():
    standings = rank_teams(
        [
            make_player('alice', 100, 1, team=1),
            make_player('bob', 40, 2, team=2),
            make_player('carol', 80, 3, team=2),
            make_player('dave', 10, 4, team=1),
            make_player('erin', 500, 5),
        ]
    )
    assert [(item.place, item.name, item.score) for item in standings] == [
        (1, 'Red', 120),
        (2, 'Blue', 110),
    ]
    assert [member.player_id for member in standings[0].members] == ['carol', 'bob']


def test_tied_teams_share_a_place():
    standings = rank_teams([make_player('alice', 60, 1, team=3), make_player('bob', 60, 2, team=1)])
    assert [(item.place, item.team_number) for item in standings] == [(1, 1), (1, 3)]


def test_rosters_list_empty_teams_and_waiting_players():
    rosters = team_rosters(
        [
            make_player('alice', 0, 1, team=1),
            make_player('bob', 0, 2),
            make_player('carol', 0, 3, team=5),
            make_player('dave', 0, 4, team=2, spectator=True),
        ],
        3,
    )
    assert sorted(key for key in rosters if key is not None) == [1, 2, 3]
    assert [player.id for player in rosters[1]] == ['alice']
    assert rosters[2] == [] and rosters[3] == []
    assert [player.id for player in rosters[None]] == ['bob', 'carol']
