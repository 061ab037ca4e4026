"""
State transitions of a tournament run.

Every function takes a TournamentState and returns a new one; the input is
never modified. Rejected operations raise a PreconditionError subclass and
leave nothing half-applied.
"""
import logging
import random
import secrets
from typing import Dict, List, Optional, Sequence, Tuple

from .draw import new_player_id, perform_draw, shuffle
from .elimination import (
    advance_bracket,
    create_round_matchups,
    find_final,
    get_podium,
    undecided_matches,
)
from .errors import (
    GroupsNotReadyError,
    IntegrityError,
    InvalidTransitionError,
    NotEnoughPlayersError,
    PreconditionError,
    RoundNotDecidedError,
    UnknownMatchError,
)
from .groups import (
    MIN_PLAYERS_FOR_GROUPS,
    calculate_group_table,
    generate_groups,
    pending_group_matches,
    select_qualifiers,
)
from .models import Player, Team, TournamentStage, TournamentState
from .settings import get_default_settings

logger = logging.getLogger(__name__)


def new_tournament() -> TournamentState:
    return TournamentState()


def create_custom_preset(name: str) -> Dict:
    name = (name or '').strip()
    if not name:
        raise PreconditionError('Tournament name is required.')
    return {'id': f'custom-{secrets.token_hex(4)}', 'name': name, 'teams': [], 'is_custom': True}


def _require_setup(state: TournamentState, action: str):
    if state.step == 'game':
        raise InvalidTransitionError(f'Cannot {action} once the tournament has started.')


def select_preset(state: TournamentState, preset: Dict) -> TournamentState:
    _require_setup(state, 'change the tournament')
    return state.replace(
        tournament_type=preset['name'],
        current_teams=list(preset['teams']),
        step='players',
    )


def add_player(state: TournamentState, name: str) -> TournamentState:
    return add_players(state, [name])


def add_players(state: TournamentState, names: Sequence[str]) -> TournamentState:
    """Register players by name. Names are trimmed; blank names are ignored."""
    _require_setup(state, 'add players')
    new_players = [Player(new_player_id(), name.strip()) for name in names if name and name.strip()]
    if not new_players:
        raise PreconditionError('No player names given.')
    known_ids = {p.id for p in state.players}
    for player in new_players:
        if player.id in known_ids:
            raise IntegrityError(f'Duplicate player id {player.id}')
        known_ids.add(player.id)
    return state.replace(players=state.players + new_players)


def remove_player(state: TournamentState, player_id: str) -> TournamentState:
    _require_setup(state, 'remove players')
    return state.replace(players=[p for p in state.players if p.id != player_id])


def _team_index(state: TournamentState, index: int) -> int:
    if not 0 <= index < len(state.current_teams):
        raise PreconditionError(f'Team {index} not found')
    return index


def add_team(state: TournamentState, team: Team) -> TournamentState:
    _require_setup(state, 'edit teams')
    if team.id is None:
        team = Team(team.name, team.league, team.rating, team.logo, team.star_player,
                    id=secrets.token_hex(5), logo_color=team.logo_color)
    return state.replace(current_teams=state.current_teams + [team])


def update_team(state: TournamentState, index: int, team: Team) -> TournamentState:
    _require_setup(state, 'edit teams')
    teams = list(state.current_teams)
    teams[_team_index(state, index)] = team
    return state.replace(current_teams=teams)


def remove_team(state: TournamentState, index: int) -> TournamentState:
    _require_setup(state, 'edit teams')
    teams = list(state.current_teams)
    del teams[_team_index(state, index)]
    return state.replace(current_teams=teams)


def reset_teams(state: TournamentState, presets: Sequence[Dict]) -> TournamentState:
    """Restore the team pool of the selected preset."""
    _require_setup(state, 'edit teams')
    for preset in presets:
        if preset['name'] == state.tournament_type:
            return state.replace(current_teams=list(preset['teams']))
    return state


def set_group_stage(state: TournamentState, enabled: bool) -> TournamentState:
    _require_setup(state, 'change the format')
    return state.replace(use_group_stage=bool(enabled))


def start_tournament(state: TournamentState, rng: random.Random,
                     settings: Optional[Dict] = None) -> TournamentState:
    """
    Perform the draw and open the first stage.

    With the group stage enabled and at least 4 players the groups are
    generated; otherwise the assignments are re-shuffled and paired into
    bracket round 1.
    """
    settings = settings or get_default_settings()
    _require_setup(state, 'draw again')
    if not state.tournament_type or len(state.players) < 2:
        raise NotEnoughPlayersError()

    assignments = perform_draw(state.players, state.current_teams, rng)

    if state.use_group_stage and len(assignments) >= MIN_PLAYERS_FOR_GROUPS:
        groups = generate_groups(assignments, rng, settings['target_group_size'])
        logger.info('Tournament %s started with a group stage', state.tournament_type)
        return state.replace(
            step='game',
            stage=TournamentStage.GROUPS,
            groups=groups,
            matchups=[],
            history=[],
            round=1,
        )

    matchups = create_round_matchups(shuffle(assignments, rng), 1, tuple(settings['bye_score']))
    logger.info('Tournament %s started as a straight knockout', state.tournament_type)
    return state.replace(
        step='game',
        stage=TournamentStage.BRACKET,
        groups=[],
        matchups=matchups,
        history=[],
        round=1,
    )


def find_match(state: TournamentState, match_id: str):
    """
    Locate an editable match.

    Returns (group_id, match) for a group match or (None, match) for a match of
    the current bracket round. Past rounds are not editable.
    """
    for group in state.groups:
        match = group.find_match(match_id)
        if match is not None:
            return group.id, match
    for match in state.matchups:
        if match.id == match_id:
            return None, match
    raise UnknownMatchError(match_id)


def _replace_match(state: TournamentState, match_id: str, transform) -> TournamentState:
    group_id, match = find_match(state, match_id)
    if group_id is not None:
        if state.stage is not TournamentStage.GROUPS:
            raise InvalidTransitionError('The group stage is closed.')
        updated = transform(match)
        groups = [g.with_match(updated) if g.id == group_id else g for g in state.groups]
        return state.replace(groups=groups)

    updated = transform(match)
    if updated.is_finished and updated.winner_id is None:
        raise InvalidTransitionError('Knockout matches need a winner; pick the shootout winner.')
    return state.replace(matchups=[updated if m.id == match_id else m for m in state.matchups])


def set_match_scores(state: TournamentState, match_id: str, score1: int, score2: int) -> TournamentState:
    return _replace_match(state, match_id, lambda m: m.with_scores(score1, score2))


def start_match(state: TournamentState, match_id: str) -> TournamentState:
    return _replace_match(state, match_id, lambda m: m.start())


def finish_match(state: TournamentState, match_id: str,
                 shootout_winner_id: Optional[str] = None,
                 scores: Optional[Tuple[int, int]] = None) -> TournamentState:
    """Close a match, first recording the final scores when given."""
    def transform(match):
        if scores is not None:
            match = match.with_scores(*scores)
        return match.finish(shootout_winner_id)
    return _replace_match(state, match_id, transform)


def decide_match(state: TournamentState, match_id: str, winner_id: str) -> TournamentState:
    return _replace_match(state, match_id, lambda m: m.with_winner(winner_id))


def reopen_match(state: TournamentState, match_id: str) -> TournamentState:
    return _replace_match(state, match_id, lambda m: m.reopen())


def group_tables(state: TournamentState, settings: Optional[Dict] = None) -> Dict[str, List[Dict]]:
    settings = settings or get_default_settings()
    return {
        g.id: calculate_group_table(g, settings['points_for_win'], settings['points_for_draw'])
        for g in state.groups
    }


def advance_from_groups(state: TournamentState, rng: random.Random,
                        settings: Optional[Dict] = None) -> TournamentState:
    """Seed bracket round 1 with the shuffled group qualifiers."""
    settings = settings or get_default_settings()
    if state.stage is not TournamentStage.GROUPS:
        raise InvalidTransitionError('There is no group stage to close.')
    qualifiers = select_qualifiers(state.groups, settings['qualifiers_per_group'],
                                   settings['points_for_win'], settings['points_for_draw'])
    if qualifiers is None:
        raise GroupsNotReadyError(len(pending_group_matches(state.groups)))

    logger.info('%d players qualified from %d groups', len(qualifiers), len(state.groups))
    return state.replace(
        stage=TournamentStage.BRACKET,
        round=1,
        history=[],
        matchups=create_round_matchups(shuffle(qualifiers, rng), 1, tuple(settings['bye_score'])),
    )


def advance_round(state: TournamentState, rng: random.Random,
                  settings: Optional[Dict] = None) -> TournamentState:
    """
    Close the current round and open the next one.

    Rejected while any match of the round has no winner. Returns the state
    unchanged when the bracket engine has nothing to advance (the final).
    """
    settings = settings or get_default_settings()
    if state.stage is not TournamentStage.BRACKET or not state.matchups:
        raise InvalidTransitionError('There is no knockout round in play.')
    pending = undecided_matches(state.matchups)
    if pending:
        raise RoundNotDecidedError(len(pending))

    new_matchups = advance_bracket(state.matchups, state.round, rng, tuple(settings['bye_score']))
    if new_matchups is None:
        return state
    return state.replace(
        round=state.round + 1,
        history=state.history + [state.matchups],
        matchups=new_matchups,
    )


def is_final_stage(state: TournamentState) -> bool:
    """True while the current round is the final (with or without a third place match)."""
    return state.stage is TournamentStage.BRACKET and find_final(state.matchups) is not None


def podium(state: TournamentState) -> Optional[Dict]:
    if state.stage is not TournamentStage.BRACKET:
        return None
    return get_podium(state.matchups)


def validate_state(state: TournamentState) -> List[str]:
    """
    List integrity problems: duplicate match ids, or matches referencing a
    player that is not registered. An empty list means the snapshot is
    render-complete.
    """
    problems = []
    player_ids = {p.id for p in state.players}
    seen = set()
    for match in state.all_matches():
        if match.id in seen:
            problems.append(f'Duplicate match id {match.id}')
        seen.add(match.id)
        for assignment in match.participants:
            if assignment.player_id not in player_ids:
                problems.append(f'Match {match.id} references unknown player {assignment.player_id}')
    for group in state.groups:
        for assignment in group.assignments:
            if assignment.player_id not in player_ids:
                problems.append(f'Group {group.id} references unknown player {assignment.player_id}')
    return problems
