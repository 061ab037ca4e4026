"""
Tests for tournament state transitions, from setup to the podium.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from engine import tournament as t
from engine.errors import (
    GroupsNotReadyError,
    InsufficientTeamsError,
    InvalidTransitionError,
    NotEnoughPlayersError,
    PreconditionError,
    RoundNotDecidedError,
    UnknownMatchError,
)
from engine.models import Team, TournamentStage
from engine.presets import find_preset, get_default_presets
from conftest import make_teams


@pytest.fixture
def preset():
    return {'id': 'test', 'name': 'Test Cup', 'teams': make_teams(8), 'is_custom': False}


def ready_state(preset, names, group_stage=False):
    state = t.select_preset(t.new_tournament(), preset)
    state = t.add_players(state, names)
    return t.set_group_stage(state, group_stage)


def finish_all(state, score=(1, 0)):
    """Finish every open match of the current stage with a decisive score."""
    if state.stage is TournamentStage.GROUPS:
        matches = state.group_matches()
    else:
        matches = state.matchups
    for match in matches:
        if not match.is_finished:
            state = t.set_match_scores(state, match.id, *score)
            state = t.finish_match(state, match.id)
    return state


class TestSetup:
    def test_select_preset(self, preset):
        state = t.select_preset(t.new_tournament(), preset)
        assert state.step == 'players'
        assert state.tournament_type == 'Test Cup'
        assert len(state.current_teams) == 8

    def test_add_players_trims_and_skips_blank(self, preset):
        state = t.add_players(t.select_preset(t.new_tournament(), preset), ['  Anna ', '', '   ', 'Ben'])
        assert [p.name for p in state.players] == ['Anna', 'Ben']
        assert len({p.id for p in state.players}) == 2

    def test_add_players_needs_a_name(self, preset):
        with pytest.raises(PreconditionError):
            t.add_players(t.new_tournament(), ['  '])

    def test_remove_player(self, preset):
        state = ready_state(preset, ['Anna', 'Ben'])
        state = t.remove_player(state, state.players[0].id)
        assert [p.name for p in state.players] == ['Ben']

    def test_team_editing(self, preset):
        state = t.select_preset(t.new_tournament(), preset)
        state = t.add_team(state, Team('New FC', rating=3))
        assert state.current_teams[-1].id is not None
        state = t.update_team(state, 0, Team('Renamed', rating=1, id='t1'))
        assert state.current_teams[0].name == 'Renamed'
        state = t.remove_team(state, 0)
        assert len(state.current_teams) == 8

    def test_unknown_team_index(self, preset):
        with pytest.raises(PreconditionError):
            t.remove_team(t.select_preset(t.new_tournament(), preset), 99)

    def test_reset_teams(self, preset):
        state = t.remove_team(t.select_preset(t.new_tournament(), preset), 0)
        state = t.reset_teams(state, [preset])
        assert len(state.current_teams) == 8

    def test_custom_preset_requires_name(self):
        with pytest.raises(PreconditionError):
            t.create_custom_preset('  ')
        custom = t.create_custom_preset('Office Cup')
        assert custom['id'].startswith('custom-')
        assert custom['teams'] == []

    def test_default_presets(self):
        presets = get_default_presets()
        assert len(presets) >= 5
        assert find_preset(presets, 'champions')['teams']
        for p in presets:
            assert len({team.id for team in p['teams']}) == len(p['teams'])


class TestStart:
    def test_needs_two_players(self, preset, rng):
        with pytest.raises(NotEnoughPlayersError):
            t.start_tournament(ready_state(preset, ['Solo']), rng)

    def test_needs_a_tournament(self, rng):
        state = t.add_players(t.new_tournament(), ['Anna', 'Ben'])
        with pytest.raises(NotEnoughPlayersError):
            t.start_tournament(state, rng)

    def test_needs_enough_teams(self, rng):
        small = {'id': 's', 'name': 'Small', 'teams': make_teams(2), 'is_custom': True}
        with pytest.raises(InsufficientTeamsError):
            t.start_tournament(ready_state(small, ['A', 'B', 'C']), rng)

    def test_knockout_start(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B', 'C', 'D']), rng)
        assert state.step == 'game'
        assert state.stage is TournamentStage.BRACKET
        assert state.round == 1
        assert len(state.matchups) == 2
        assert not state.groups

    def test_group_start(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B', 'C', 'D', 'E'], True), rng)
        assert state.stage is TournamentStage.GROUPS
        assert [g.id for g in state.groups] == ['A', 'B']
        assert not state.matchups

    def test_group_stage_needs_four_players(self, preset, rng):
        """Fewer than 4 players fall back to a straight knockout."""
        state = t.start_tournament(ready_state(preset, ['A', 'B', 'C'], True), rng)
        assert state.stage is TournamentStage.BRACKET
        assert state.matchups[-1].is_bye

    def test_setup_locked_after_start(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B']), rng)
        with pytest.raises(InvalidTransitionError):
            t.add_players(state, ['Late'])
        with pytest.raises(InvalidTransitionError):
            t.start_tournament(state, rng)

    def test_start_does_not_modify_input(self, preset, rng):
        state = ready_state(preset, ['A', 'B'])
        t.start_tournament(state, rng)
        assert state.step == 'players'


class TestMatchEditing:
    def test_unknown_match(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B']), rng)
        with pytest.raises(UnknownMatchError):
            t.start_match(state, 'round-9-match-0')

    def test_knockout_draw_needs_shootout_winner(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B']), rng)
        match_id = state.matchups[0].id
        state = t.set_match_scores(state, match_id, 1, 1)
        with pytest.raises(InvalidTransitionError):
            t.finish_match(state, match_id)
        winner = state.matchups[0].player2.player_id
        state = t.finish_match(state, match_id, winner)
        assert state.matchups[0].winner_id == winner

    def test_knockout_win_corrected_to_draw_rejected(self, preset, rng):
        """A finished knockout match cannot be re-scored level without a shootout winner."""
        state = t.start_tournament(ready_state(preset, ['A', 'B']), rng)
        match_id = state.matchups[0].id
        state = t.finish_match(t.set_match_scores(state, match_id, 2, 1), match_id)
        with pytest.raises(InvalidTransitionError):
            t.set_match_scores(state, match_id, 1, 1)
        assert state.matchups[0].winner_id == state.matchups[0].player1.player_id

    def test_finish_with_scores_is_all_or_nothing(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B']), rng)
        match_id = state.matchups[0].id
        with pytest.raises(InvalidTransitionError):
            t.finish_match(state, match_id, scores=(1, 1))
        state = t.finish_match(state, match_id, scores=(0, 2))
        assert state.matchups[0].winner_id == state.matchups[0].player2.player_id

    def test_decide_and_reopen(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B']), rng)
        match = state.matchups[0]
        state = t.decide_match(state, match.id, match.player1.player_id)
        assert state.matchups[0].is_decided
        state = t.reopen_match(state, match.id)
        assert state.matchups[0].winner_id is None

    def test_group_matches_locked_after_groups(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B', 'C', 'D'], True), rng)
        state = t.advance_from_groups(finish_all(state), rng)
        group_match_id = state.groups[0].matches[0].id
        with pytest.raises(InvalidTransitionError):
            t.reopen_match(state, group_match_id)


class TestAdvancement:
    def test_groups_not_ready(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B', 'C', 'D'], True), rng)
        with pytest.raises(GroupsNotReadyError) as exc_info:
            t.advance_from_groups(state, rng)
        assert exc_info.value.pending == 6

    def test_advance_from_groups(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B', 'C', 'D', 'E', 'F', 'G', 'H'], True), rng)
        state = t.advance_from_groups(finish_all(state), rng)
        assert state.stage is TournamentStage.BRACKET
        assert state.round == 1
        assert len(state.matchups) == 2
        qualifiers = {a.player_id for m in state.matchups for a in m.participants}
        assert len(qualifiers) == 4

    def test_round_not_decided(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B', 'C', 'D']), rng)
        with pytest.raises(RoundNotDecidedError) as exc_info:
            t.advance_round(state, rng)
        assert exc_info.value.pending == 2

    def test_full_knockout_to_podium(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B', 'C', 'D']), rng)
        state = t.advance_round(finish_all(state), rng)
        assert state.round == 2
        assert len(state.history) == 1
        assert state.matchups[1].is_third_place
        assert t.is_final_stage(state)
        assert t.podium(state) is None

        state = finish_all(state)
        podium = t.podium(state)
        assert podium['champion'] is not None
        assert podium['third_place'] is not None
        assert t.advance_round(state, rng) is state

    def test_history_is_frozen(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B', 'C', 'D']), rng)
        state = t.advance_round(finish_all(state), rng)
        with pytest.raises(UnknownMatchError):
            t.reopen_match(state, state.history[0][0].id)

    def test_no_duplicate_match_ids(self, preset, rng):
        names = [f'P{i}' for i in range(7)]
        state = t.start_tournament(ready_state(preset, names), rng)
        while t.podium(state) is None:
            state = t.advance_round(finish_all(state), rng)
            state = finish_all(state)
        assert t.validate_state(state) == []


class TestValidation:
    def test_unknown_player_reported(self, preset, rng):
        state = t.start_tournament(ready_state(preset, ['A', 'B']), rng)
        state = state.replace(players=state.players[:1])
        problems = t.validate_state(state)
        assert problems and 'unknown player' in problems[0]
