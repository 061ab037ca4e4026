"""
Unit tests for player statistics and awards.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine.models import Group, Matchup, TournamentStage, TournamentState
from engine.stats import (
    aggregate_player_stats,
    calculate_awards,
    get_stage_label,
    head_to_head,
    tournament_stats,
)
from conftest import make_assignments


def by_id(stats):
    return {s['id']: s for s in stats}


class TestStageLabels:
    def test_labels_from_match_ids(self):
        a = make_assignments(2)
        assert get_stage_label(Matchup('gA-0-1', a[0], a[1])) == 'Group Stage'
        assert get_stage_label(Matchup('round-2-match-0', a[0], a[1])) == 'Knockout (R2)'
        assert get_stage_label(Matchup('round-3-3rd-place', a[0], a[1], is_third_place=True)) == 'Third Place'
        assert get_stage_label(Matchup('friendly', a[0], a[1])) == 'Tournament'


class TestAggregation:
    def test_win_and_loss(self):
        a = make_assignments(2)
        match = Matchup('round-1-match-0', a[0], a[1]).with_scores(3, 1).finish()
        stats = by_id(aggregate_player_stats([match]))
        assert stats['p1']['points'] == 3
        assert stats['p1']['wins'] == 1
        assert stats['p2']['losses'] == 1
        assert stats['p2']['goal_diff'] == -2
        assert stats['p1']['form'] == [{'result': 'W', 'stage': 'Knockout (R1)'}]

    def test_plain_draw_awards_one_point_each(self):
        a = make_assignments(2)
        match = Matchup('gA-0-1', a[0], a[1]).with_scores(1, 1).finish()
        stats = by_id(aggregate_player_stats([match]))
        assert stats['p1']['points'] == 1
        assert stats['p2']['points'] == 1
        assert stats['p1']['draws'] == 1

    def test_shootout_awards_two_and_one(self):
        """A level match decided on penalties gives 2 points to the winner and 1 to the loser."""
        a = make_assignments(2)
        match = Matchup('round-1-match-0', a[0], a[1]).with_scores(2, 2).finish(a[1].player_id)
        stats = by_id(aggregate_player_stats([match]))
        assert stats['p2']['points'] == 2
        assert stats['p1']['points'] == 1
        assert stats['p2']['wins'] == 1
        assert stats['p1']['losses'] == 1
        assert stats['p1']['draws'] == 0

    def test_win_corrected_to_draw_scores_as_draw(self):
        a = make_assignments(2)
        match = Matchup('gA-0-1', a[0], a[1]).with_scores(2, 1).finish().with_scores(1, 1)
        stats = by_id(aggregate_player_stats([match]))
        assert stats['p1']['points'] == 1
        assert stats['p2']['points'] == 1
        assert stats['p1']['draws'] == 1
        assert stats['p1']['wins'] == 0

    def test_byes_and_unfinished_matches_ignored(self):
        a = make_assignments(3)
        matches = [
            Matchup.bye('round-1-match-1', a[2]),
            Matchup('round-1-match-0', a[0], a[1]).start().with_scores(5, 0),
            Matchup('round-2-3rd-place', a[0], a[1], score1=0, score2=0, is_third_place=True),
        ]
        assert aggregate_player_stats(matches) == []

    def test_unknown_players_skipped(self):
        a = make_assignments(2)
        match = Matchup('gA-0-1', a[0], a[1]).with_scores(1, 0).finish()
        assert aggregate_player_stats([match], known_player_ids={'p1'}) == []

    def test_match_history_in_order(self):
        a = make_assignments(3)
        matches = [
            Matchup('gA-0-1', a[0], a[1]).with_scores(1, 0).finish(),
            Matchup('gA-0-2', a[0], a[2]).with_scores(0, 2).finish(),
        ]
        history = by_id(aggregate_player_stats(matches))['p1']['match_history']
        assert [h['opponent_id'] for h in history] == ['p2', 'p3']
        assert [h['result'] for h in history] == ['W', 'L']
        assert history[1]['score_own'] == 0
        assert history[1]['score_opp'] == 2

    def test_ranking(self):
        """Points first, then wins, goal difference and goals for."""
        a = make_assignments(4)
        matches = [
            Matchup('gA-0-1', a[0], a[1]).with_scores(1, 0).finish(),
            Matchup('gA-2-3', a[2], a[3]).with_scores(4, 0).finish(),
        ]
        assert [s['id'] for s in aggregate_player_stats(matches)] == ['p3', 'p1', 'p2', 'p4']

    def test_custom_points(self):
        a = make_assignments(2)
        match = Matchup('gA-0-1', a[0], a[1]).with_scores(1, 0).finish()
        stats = by_id(aggregate_player_stats([match], points={'win': 2}))
        assert stats['p1']['points'] == 2


class TestTournamentStats:
    def test_groups_and_bracket_counted(self):
        a = make_assignments(2)
        state = TournamentState(
            step='game',
            players=[x.player for x in a],
            stage=TournamentStage.BRACKET,
            groups=[Group('A', a, [Matchup('gA-0-1', a[0], a[1]).with_scores(0, 0).finish()])],
            history=[[Matchup('round-1-match-0', a[0], a[1]).with_scores(2, 1).finish()]],
            matchups=[Matchup('round-2-match-0', a[0], a[1]).with_scores(0, 3).finish()],
        )
        stats = by_id(tournament_stats(state))
        assert stats['p1']['played'] == 3
        assert [f['stage'] for f in stats['p1']['form']] == ['Group Stage', 'Knockout (R1)', 'Knockout (R2)']


class TestAwards:
    def test_empty_stats(self):
        assert calculate_awards([]) == {
            'best_attack': None, 'best_defense': None, 'top_scorer': None, 'most_defeated': None}

    def test_awards(self):
        a = make_assignments(4)
        matches = [
            Matchup('gA-0-1', a[0], a[1]).with_scores(5, 0).finish(),
            Matchup('gA-2-3', a[2], a[3]).with_scores(1, 0).finish(),
            Matchup('gA-0-2', a[0], a[2]).with_scores(1, 0).finish(),
            Matchup('gA-1-3', a[1], a[3]).with_scores(0, 3).finish(),
        ]
        awards = calculate_awards(aggregate_player_stats(matches))
        assert awards['best_attack']['id'] == 'p1'
        assert awards['top_scorer']['id'] == 'p1'
        assert awards['best_defense']['id'] == 'p1'
        assert awards['most_defeated']['id'] == 'p2'


class TestHeadToHead:
    def test_meetings_between_two_players(self):
        a = make_assignments(3)
        matches = [
            Matchup('gA-0-1', a[0], a[1]).with_scores(1, 0).finish(),
            Matchup('round-1-match-0', a[1], a[0]).with_scores(2, 2).finish(a[1].player_id),
            Matchup('gA-0-2', a[0], a[2]).with_scores(3, 0).finish(),
        ]
        summary = head_to_head(aggregate_player_stats(matches), 'p1', 'p2')
        assert summary['played'] == 2
        assert summary['wins'] == 1
        assert summary['losses'] == 1
        assert summary['goals_for'] == 3
        assert summary['goals_against'] == 2

    def test_unknown_player(self):
        assert head_to_head([], 'p1', 'p2')['played'] == 0
